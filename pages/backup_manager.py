import streamlit as st

from core.ui import start_app_services, render_sidebar, notify, confirmed
from services import backup_service, transfer_service
from services.backup_scheduler import setup_automatic_backups, disable_automatic_backups, get_backup_settings

start_app_services()
render_sidebar()

st.title("Backup Manager")

settings = get_backup_settings()
custom_dir = st.text_input(
    "Backup folder (leave empty for the default)",
    value=(settings or {}).get("customPath") or "",
)
custom_dir = custom_dir.strip() or None

tab_backups, tab_auto, tab_transfer = st.tabs(["Backups", "Automatic Backups", "Export / Import"])

# -----------------------------
# Snapshots
# -----------------------------
with tab_backups:
    if st.button("Create Backup Now", type="primary"):
        if notify(backup_service.create_backup(custom_dir), "Backup created"):
            st.rerun()

    listing = backup_service.list_backups(custom_dir)
    if not listing["success"]:
        st.error(listing["error"])
    elif not listing["backups"]:
        st.info("No backups yet.")
    else:
        st.caption(f"Folder: {listing['directory']}")
        for backup in listing["backups"]:
            c1, c2, c3 = st.columns([4, 1, 1])
            with c1:
                st.write(f"**{backup['filename']}**")
                st.caption(f"{backup['date']:%Y-%m-%d %H:%M} • {backup['size'] / 1024:.1f} KB")
            with c2:
                with st.popover("Restore"):
                    st.warning("The current database will be replaced. A safety copy is taken first.")
                    ok = confirmed(f"restore_{backup['filename']}", "RESTORE")
                    if st.button("Restore", key=f"restore_btn_{backup['filename']}", disabled=not ok):
                        notify(backup_service.restore_from_backup(backup["path"]), "Database restored")
            with c3:
                with st.popover("Delete"):
                    ok = confirmed(f"delete_{backup['filename']}", "DELETE")
                    if st.button("Delete", key=f"delete_btn_{backup['filename']}", disabled=not ok):
                        if notify(backup_service.delete_backup(backup["path"]), "Backup deleted"):
                            st.rerun()

# -----------------------------
# Automatic snapshots
# -----------------------------
with tab_auto:
    if settings:
        state = "enabled" if settings["enabled"] else "disabled"
        st.info(
            f"Automatic backups {state}: every {settings['intervalHours']} hours, "
            f"keeping {settings['maxBackups']}. Last backup: {settings['lastBackup']}"
        )
    with st.form("auto_backup_form"):
        interval = st.number_input("Interval (hours)", min_value=1, step=1, value=int((settings or {}).get("intervalHours", 24)))
        max_backups = st.number_input("Backups to keep", min_value=1, step=1, value=int((settings or {}).get("maxBackups", 7)))
        if st.form_submit_button("Save Schedule"):
            if notify(setup_automatic_backups(int(interval), int(max_backups), custom_dir), "Automatic backups configured"):
                st.rerun()
    if settings and settings["enabled"]:
        if st.button("Turn Off Automatic Backups"):
            if notify(disable_automatic_backups(), "Automatic backups disabled"):
                st.rerun()

# -----------------------------
# Export / import
# -----------------------------
with tab_transfer:
    st.markdown("#### JSON")
    json_out = st.text_input("Export to (optional .json path)")
    if st.button("Export JSON"):
        result = transfer_service.export_database_to_json(json_out.strip() or None)
        if notify(result, "Export complete"):
            st.caption(result["file_path"])

    json_in = st.text_input("Import from .json path")
    ok_json = confirmed("import_json", "IMPORT")
    if st.button("Import JSON", disabled=not (ok_json and json_in.strip())):
        notify(transfer_service.import_database_from_json(json_in.strip()), "Import complete")

    st.markdown("#### Database file")
    db_out = st.text_input("Export database file to")
    if st.button("Export Database File", disabled=not db_out.strip()):
        result = transfer_service.export_database_file(db_out.strip())
        if notify(result, "Database file exported"):
            st.caption(result["file_path"])

    db_in = st.text_input("Import database file from")
    ok_db = confirmed("import_db", "IMPORT")
    if st.button("Import Database File", disabled=not (ok_db and db_in.strip())):
        notify(transfer_service.import_database_file(db_in.strip()), "Database file imported")
