import streamlit as st

from core.ui import start_app_services, render_sidebar
from services.query_service import get_filtered_patients

start_app_services()
render_sidebar()

st.title("Patient List")

# Filters
col1, col2, col3 = st.columns([3, 1, 1])
with col1:
    search_query = st.text_input("Search by name", placeholder="e.g. Maria")
with col2:
    type_filter = st.selectbox("Type", ["all", "Regular", "Ortho"])
with col3:
    sex_filter = st.selectbox("Sex", ["all", "Male", "Female", "Other"])

col4, col5 = st.columns(2)
with col4:
    sort_by = st.selectbox("Sort by", ["registration_date", "name", "age", "type"])
with col5:
    sort_direction = st.radio("Order", ["desc", "asc"], horizontal=True)

result = get_filtered_patients(search_query, type_filter, sex_filter, sort_by, sort_direction)
if not result["success"]:
    st.error(result["error"])
    st.stop()

patients = result["patients"]
if not patients:
    st.info("No patients found.")
    st.stop()

st.caption(f"{len(patients)} patient(s)")

for p in patients:
    with st.container():
        c1, c2 = st.columns([4, 1])
        with c1:
            st.write(f"**{p['name']}**  ({p['type']})")
            st.caption(f"Sex: {p['sex'] or '-'} • Age: {p['age'] or '-'} • Registered: {p['registration_date'] or '-'}")
        with c2:
            if st.button("Open", key=f"open_{p['type']}_{p['patient_id']}"):
                st.session_state["selected_patient"] = (p["patient_id"], p["type"])
                st.switch_page("pages/patient_profile.py")
        st.markdown("---")
