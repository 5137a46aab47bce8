import streamlit as st

from core.ui import start_app_services, render_sidebar
from services.query_service import get_patient_counts, get_recent_patients, get_monthly_patient_counts


def main():
    st.set_page_config(
        page_title="Dental Clinic",
        page_icon="🦷",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    start_app_services()
    render_sidebar()

    st.title("Dental Clinic")
    st.write("---")

    counts = get_patient_counts()
    if counts["success"]:
        c1, c2, c3 = st.columns(3)
        c1.metric("Total Patients", counts["total"])
        c2.metric("Regular", counts["regular"])
        c3.metric("Orthodontic", counts["orthodontic"])
    else:
        st.error(counts["error"])

    st.subheader("Registrations per month")
    monthly = get_monthly_patient_counts()
    if monthly["success"] and monthly["data"]:
        rows = [{"month": f"{r['year']}-{r['month']:02d}", "count": r["count"]} for r in monthly["data"]]
        st.bar_chart(rows, x="month", y="count")
    else:
        st.info("No registrations yet.")

    st.subheader("Recent patients")
    recent = get_recent_patients(limit=8)
    if recent["success"] and recent["patients"]:
        for p in recent["patients"]:
            col1, col2 = st.columns([4, 1])
            with col1:
                st.write(f"**{p['name']}** ({p['type']}) registered {p['registration_date']}")
            with col2:
                if st.button("Open", key=f"recent_{p['type']}_{p['patient_id']}"):
                    st.session_state["selected_patient"] = (p["patient_id"], p["type"])
                    st.switch_page("pages/patient_profile.py")
    else:
        st.info("No patients registered yet.")


if __name__ == "__main__":
    main()
