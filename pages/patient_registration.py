from datetime import date

import streamlit as st

from core.ui import start_app_services, render_sidebar, notify
from services import patient_service, orthodontic_service

start_app_services()
render_sidebar()

st.title("Register New Patient")

patient_type = st.radio("Patient type", ["Regular", "Orthodontic"], horizontal=True)

# Step 1: check for an existing patient with the same name
name = st.text_input("Full Name", placeholder="Juan Dela Cruz")
if name.strip():
    exists = (
        patient_service.name_exists(name)
        if patient_type == "Regular"
        else orthodontic_service.name_exists(name)
    )
    if exists:
        st.warning("A patient with this name is already registered.")

st.write("---")

if patient_type == "Regular":
    with st.form("regular_patient_form"):
        birthday = st.date_input("Birthday", value=None, max_value=date.today())
        sex = st.selectbox("Sex", ["Male", "Female", "Other"])
        age = st.number_input("Age", min_value=0, max_value=120, step=1)
        religion = st.text_input("Religion")
        nationality = st.text_input("Nationality")
        home_address = st.text_input("Home Address")
        cellphone_number = st.text_input("Cellphone Number")
        submitted = st.form_submit_button("Create Patient")

    if submitted:
        result = patient_service.create_regular_patient({
            "name": name,
            "birthday": birthday,
            "sex": sex,
            "age": int(age),
            "religion": religion,
            "nationality": nationality,
            "home_address": home_address,
            "cellphone_number": cellphone_number,
        })
        if notify(result, "Patient created"):
            st.session_state["selected_patient"] = (result["patient_id"], "Regular")
            st.switch_page("pages/patient_profile.py")

else:
    with st.form("ortho_patient_form"):
        birthdate = st.date_input("Birthdate", value=None, max_value=date.today())
        sex = st.selectbox("Sex", ["Male", "Female", "Other"])
        age = st.number_input("Age", min_value=0, max_value=120, step=1)
        parents_guardians_name = st.text_input("Parent/Guardian")
        address = st.text_input("Address")
        cellphone = st.text_input("Cellphone")
        email = st.text_input("Email")
        chart_number = st.text_input("Chart Number")
        st.markdown("**Contract**")
        contract_price = st.number_input("Contract Price", min_value=0.0, step=500.0)
        contract_months = st.number_input("Contract Months", min_value=1, step=1, value=24)
        submitted = st.form_submit_button("Create Patient")

    if submitted:
        result = orthodontic_service.create_orthodontic_patient(
            {
                "name": name,
                "birthdate": birthdate,
                "sex": sex,
                "age": int(age),
                "parents_guardians_name": parents_guardians_name,
                "address": address,
                "cellphone": cellphone,
                "email": email,
                "chart_number": chart_number,
            },
            contract_price=float(contract_price),
            contract_months=int(contract_months),
        )
        if notify(result, "Orthodontic patient created"):
            st.session_state["selected_patient"] = (result["patient_id"], "Ortho")
            st.switch_page("pages/patient_profile.py")
