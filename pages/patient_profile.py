from datetime import date

import streamlit as st

from core.helpers import format_money
from core.ui import start_app_services, render_sidebar, notify, confirmed
from models.orthodontic import CHARGE_FIELDS, STATUS_COMPLETED
from services import patient_service, orthodontic_service, payment_service
from services.query_service import get_patient_details

start_app_services()
render_sidebar()

st.title("Patient Profile")

# Ensure a patient is selected from previous page
if "selected_patient" not in st.session_state:
    st.error("No patient selected. Please go back to the patient list.")
    if st.button("Back to Patient List"):
        st.switch_page("pages/patient_list.py")
    st.stop()

patient_id, patient_type = st.session_state["selected_patient"]
result = get_patient_details(patient_id, patient_type)
if not result["success"]:
    st.error(result["error"])
    st.stop()

details = result["patient"]
info = details["info"]

st.subheader(f"{info['name']} ({patient_type})")
st.caption(f"Sex: {info.get('sex') or '-'} • Age: {info.get('age') or '-'} • Registered: {info.get('registration_date') or '-'}")


def render_payments():
    st.markdown("#### Payment History")
    if not details["payment_history"]:
        st.info("No payments recorded.")
        return
    st.dataframe(
        [
            {
                "Date": p["payment_date"],
                "Amount": format_money(p["amount_paid"]),
                "Method": p["payment_method"],
                "Remaining": format_money(p["remaining_balance"]),
                "Notes": p["notes"] or "",
            }
            for p in details["payment_history"]
        ],
        use_container_width=True,
    )


# -----------------------------
# Regular patient
# -----------------------------
if patient_type == "Regular":
    tab_records, tab_history, tab_payments = st.tabs(["Treatment Records", "Medical History", "Payments"])

    with tab_records:
        for record in details["treatment_records"]:
            with st.expander(f"{record['treatment_date']} • {record['procedure'] or 'Treatment'} • balance {format_money(record['balance'])}"):
                st.write(f"Tooth: {record['tooth_number'] or '-'} • Dentist: {record['dentist_name'] or '-'}")
                st.write(f"Charged: {format_money(record['amount_charged'])} • Paid: {format_money(record['amount_paid'])}")
                if record["balance"]:
                    with st.form(f"pay_{record['record_id']}"):
                        amount = st.number_input("Amount", min_value=0.0, max_value=float(record["balance"]), value=float(record["balance"]))
                        method = st.selectbox("Method", ["Cash", "GCash", "Card", "Bank Transfer"])
                        if st.form_submit_button("Record Payment"):
                            if notify(payment_service.add_payment(
                                patient_id, "Regular", amount,
                                payment_method=method, treatment_record_id=record["record_id"],
                            ), "Payment recorded"):
                                st.rerun()

        with st.form("new_regular_record"):
            st.markdown("**New Treatment Record**")
            treatment_date = st.date_input("Date", value=date.today())
            procedure = st.text_input("Procedure")
            tooth_number = st.text_input("Tooth Number")
            dentist_name = st.text_input("Dentist")
            amount_charged = st.number_input("Amount Charged", min_value=0.0, step=100.0)
            amount_paid = st.number_input("Amount Paid", min_value=0.0, step=100.0)
            mode_of_payment = st.selectbox("Mode of Payment", ["Cash", "GCash", "Card", "Bank Transfer"])
            if st.form_submit_button("Add Record"):
                if notify(patient_service.add_treatment_record(patient_id, {
                    "treatment_date": treatment_date,
                    "procedure": procedure,
                    "tooth_number": tooth_number,
                    "dentist_name": dentist_name,
                    "amount_charged": amount_charged,
                    "amount_paid": amount_paid,
                    "mode_of_payment": mode_of_payment,
                }), "Treatment record added"):
                    st.rerun()

    with tab_history:
        for history in details["medical_history"]:
            with st.expander(f"History #{history['history_id']} ({history['created_at'] or ''})"):
                st.json(history)
        with st.form("new_history"):
            st.markdown("**New Medical History**")
            general_health = st.selectbox("General Health", ["Good", "Fair", "Poor"])
            taking_medications = st.checkbox("Taking medications")
            medications_list = st.text_input("Medications")
            list_of_allergies = st.text_input("Allergies")
            blood_type = st.text_input("Blood Type")
            blood_pressure = st.text_input("Blood Pressure")
            if st.form_submit_button("Add History"):
                if notify(patient_service.add_medical_history(patient_id, {
                    "general_health": general_health,
                    "taking_medications": taking_medications,
                    "medications_list": medications_list,
                    "list_of_allergies": list_of_allergies,
                    "blood_type": blood_type,
                    "blood_pressure": blood_pressure,
                }), "Medical history added"):
                    st.rerun()

    with tab_payments:
        render_payments()

# -----------------------------
# Orthodontic patient
# -----------------------------
else:
    summary = details["cycle_summary"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Cycle", info["treatment_cycle"])
    c2.metric("Status", info["treatment_status"])
    c3.metric("Contract Balance", format_money(info["current_balance"]))
    c4.metric("Cycle Total (incl. charges)", format_money(summary["total_balance"]))
    st.caption(
        "Contract Balance tracks payments against the contract. "
        "Cycle Total also includes additional per-visit charges."
    )

    tab_records, tab_payment, tab_contract, tab_payments = st.tabs(
        ["Treatment Records", "Record Payment", "Contract", "Payments"]
    )

    with tab_records:
        current = [r for r in details["treatment_records"] if r["treatment_cycle"] == info["treatment_cycle"]]
        if current:
            st.dataframe(
                [
                    {
                        "Appt": r["appt_no"],
                        "Date": r["date"],
                        "Arch Wire": r["arch_wire"] or "",
                        "Procedure": r["procedure"] or "",
                        "Paid": format_money(r["amount_paid"]),
                        "Charges": format_money(r["additional_charges_total"]),
                    }
                    for r in current
                ],
                use_container_width=True,
            )

        next_appt = orthodontic_service.get_next_appointment_number(patient_id)
        with st.form("new_ortho_record"):
            st.markdown(f"**Appointment #{next_appt.get('next_appt_no', '')}**")
            record_date = st.date_input("Date", value=date.today())
            arch_wire = st.text_input("Arch Wire")
            procedure = st.text_input("Procedure")
            amount_paid = st.number_input("Amount Paid", min_value=0.0, step=100.0)
            mode_of_payment = st.selectbox("Mode of Payment", ["Cash", "GCash", "Card", "Bank Transfer"])
            next_schedule = st.date_input("Next Schedule", value=None)
            st.markdown("Additional charges")
            charge_cols = st.columns(len(CHARGE_FIELDS))
            counters = {}
            for col, field in zip(charge_cols, CHARGE_FIELDS):
                with col:
                    counters[field] = st.number_input(field.replace("_", " ").title(), min_value=0, step=1, key=f"charge_{field}")
            if st.form_submit_button("Add Appointment"):
                if notify(orthodontic_service.add_orthodontic_treatment_record(patient_id, {
                    "appt_no": next_appt.get("next_appt_no"),
                    "date": record_date,
                    "arch_wire": arch_wire,
                    "procedure": procedure,
                    "amount_paid": amount_paid or None,
                    "mode_of_payment": mode_of_payment,
                    "next_schedule": next_schedule,
                    **counters,
                }), "Appointment added"):
                    st.rerun()

    with tab_payment:
        balance = float(info["current_balance"] or 0)
        with st.form("ortho_payment"):
            amount = st.number_input("Amount Paid", min_value=0.0, value=balance)
            method = st.selectbox("Payment Method", ["Cash", "GCash", "Card", "Bank Transfer"])
            notes = st.text_input("Notes")
            st.caption(f"Remaining after payment: {format_money(max(0.0, balance - amount))}")
            if st.form_submit_button("Record Payment"):
                if notify(payment_service.add_payment(
                    patient_id, "Ortho", amount, payment_method=method, notes=notes or None,
                ), "Payment recorded"):
                    st.rerun()

    with tab_contract:
        with st.form("update_contract"):
            st.markdown("**Update Contract**")
            new_price = st.number_input("Contract Price", min_value=0.0, value=float(info["current_contract_price"] or 0))
            new_months = st.number_input("Contract Months", min_value=1, value=int(info["current_contract_months"] or 1))
            if st.form_submit_button("Save Contract"):
                if notify(orthodontic_service.update_contract_details(
                    patient_id, contract_price=new_price, contract_months=int(new_months),
                ), "Contract updated"):
                    st.rerun()

        if info["treatment_status"] == STATUS_COMPLETED:
            with st.form("new_cycle"):
                st.markdown(f"**Start Treatment Cycle #{info['treatment_cycle'] + 1}**")
                cycle_price = st.number_input("New Contract Price", min_value=0.0, step=500.0)
                cycle_months = st.number_input("New Contract Months", min_value=1, step=1, value=12)
                arch_wire = st.text_input("Arch Wire (first appointment)")
                first_paid = st.number_input("Amount Paid", min_value=0.0, step=100.0)
                if st.form_submit_button("Start New Cycle"):
                    result = orthodontic_service.start_new_treatment_cycle(
                        patient_id,
                        contract_price=cycle_price,
                        contract_months=int(cycle_months),
                        first_appointment={"date": date.today(), "arch_wire": arch_wire, "amount_paid": first_paid or None},
                    )
                    if notify(result, f"Treatment cycle #{result.get('new_cycle')} started"):
                        st.rerun()

    with tab_payments:
        render_payments()

# -----------------------------
# Danger zone
# -----------------------------
st.write("---")
with st.expander("🗑️ Delete Patient", expanded=False):
    st.warning("Deleting a patient removes all of their records and payments. This cannot be undone.")
    ok = confirmed("delete_patient", "DELETE")
    if st.button("Delete Patient", type="secondary"):
        if not ok:
            st.error("Confirmation text does not match DELETE.")
        else:
            if patient_type == "Regular":
                outcome = patient_service.delete_regular_patient(patient_id)
            else:
                outcome = orthodontic_service.delete_orthodontic_patient(patient_id)
            if notify(outcome, "Patient deleted"):
                st.session_state.pop("selected_patient", None)
                st.switch_page("pages/patient_list.py")
