import streamlit as st

from core.database import init_db
from core.logging_setup import setup_logging
from services.backup_scheduler import BackupScheduler


@st.cache_resource
def start_app_services():
    """Once per process: logging, tables, and the automatic backup scheduler."""
    setup_logging()
    init_db()
    scheduler = BackupScheduler()
    scheduler.start()
    return scheduler


def notify(result: dict, success_message: str) -> bool:
    """Show a toast for a service result and return its success flag."""
    if result.get("success"):
        st.toast(success_message, icon="✅")
        return True
    st.toast(result.get("error", "Something went wrong"), icon="⚠️")
    return False


def confirmed(key: str, word: str = "CONFIRM") -> bool:
    """Typed confirmation for destructive actions."""
    typed = st.text_input(f"Type {word} to confirm", value="", key=f"confirm_{key}")
    return typed.strip().upper() == word


# -----------------------------
# Sidebar helpers
# -----------------------------
def hide_default_sidebar_nav():
    """Hide Streamlit's default multi-page navigation for a cleaner custom menu."""
    st.markdown(
        """
        <style>
        [data-testid="stSidebarNav"] { display: none; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_sidebar():
    """Render the clinic sidebar menu.

    Items:
    - Dashboard
    - Patients
    - Register Patient
    - Backups
    """
    hide_default_sidebar_nav()
    with st.sidebar:
        st.markdown("### Clinic Menu")
        if st.button("Dashboard", use_container_width=True):
            st.switch_page("app.py")
        if st.button("Patients", use_container_width=True):
            st.switch_page("pages/patient_list.py")
        if st.button("Register Patient", use_container_width=True):
            st.switch_page("pages/patient_registration.py")
        st.divider()
        if st.button("Backups", use_container_width=True):
            st.switch_page("pages/backup_manager.py")
