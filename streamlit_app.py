"""
Streamlit UI for the Security Control Tracker.

Connects to the FastAPI backend to view and edit the environment x control
status matrix.
"""
import streamlit as st
import pandas as pd

from app.ui.client import APIError, MatrixCache, TrackerClient, get_api_base_url
from app.ui.helpers import (
    CRITICALITY_OPTIONS,
    STATUS_HEX,
    STATUS_OPTIONS,
    allowed_statuses,
    build_matrix_rows,
    client_green_eligible,
    filter_items,
    format_criticality_badge,
    format_status_badge,
    parse_tags,
    status_color,
    status_summary,
)

# Page config
st.set_page_config(
    page_title="Security Control Tracker",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded"
)

API_BASE_URL = get_api_base_url()

# Debug print at startup
print(f"[Security Control Tracker UI] Using API_BASE_URL = {API_BASE_URL}")

# Initialize session state
if "cache" not in st.session_state:
    st.session_state.cache = MatrixCache(TrackerClient(API_BASE_URL))
if "selected_item_id" not in st.session_state:
    st.session_state.selected_item_id = None
if "flash" not in st.session_state:
    st.session_state.flash = None

cache: MatrixCache = st.session_state.cache


def handle_api_error(e: APIError) -> None:
    """Show API errors with user-friendly messages; cached state is left as it was."""
    if e.status_code == 404:
        st.error(f"❌ Not found: {e.message}")
    elif e.status_code == 409:
        st.error(f"❌ Not allowed: {e.message}")
    elif e.status_code == 422:
        st.error(f"❌ Invalid input: {e.message}")
    elif e.status_code and e.status_code >= 500:
        st.error("❌ Server error. Please try again later.")
    else:
        st.error(f"❌ Error: {e.message}")


def flash(message: str) -> None:
    """Queue a success message that survives the next rerun."""
    st.session_state.flash = message


# ============= Sidebar =============

with st.sidebar:
    st.header("⚙️ Settings")

    st.text_input(
        "Backend URL",
        value=API_BASE_URL,
        disabled=True,
        help="Set via API_BASE_URL environment variable"
    )

    if st.button("🔄 Reload from server", use_container_width=True):
        try:
            cache.refresh()
            flash("Data reloaded")
            st.rerun()
        except APIError as e:
            handle_api_error(e)

    try:
        health = cache.client.health()
        st.success(f"API healthy ({health.get('environment', 'unknown')})")
    except APIError as e:
        st.warning(f"API unavailable: {e.message}")

    st.markdown("---")
    search_query = st.text_input(
        "🔎 Search environments",
        key="search_query",
        help="Matches name, description, category, owner and tags"
    )

    st.markdown("---")
    st.markdown("### 📚 Legend")
    st.markdown(
        "- 🟢 **Green**: implemented\n"
        "- 🟡 **Yellow**: partially implemented\n"
        "- 🔴 **Red**: not implemented\n"
        "- ⚪ **Unknown**: not loaded yet"
    )


# ============= Main =============

st.title("🛡️ Security Control Tracker")

try:
    cache.ensure_loaded()
except APIError as e:
    handle_api_error(e)
    st.info(f"Start the API and make sure it is reachable at {API_BASE_URL}.")
    st.stop()

if st.session_state.flash:
    st.success(f"✅ {st.session_state.flash}")
    st.session_state.flash = None

tab_matrix, tab_detail, tab_items, tab_controls = st.tabs(
    ["📊 Matrix", "🔍 Environment Detail", "🏢 Environments", "🧩 Controls"]
)

# ============= Matrix tab =============

with tab_matrix:
    controls = cache.ordered_controls()
    items = filter_items(cache.ordered_items(), search_query)

    summary = status_summary(cache.cells)
    metric_cols = st.columns(4)
    with metric_cols[0]:
        st.metric("Environments", len(cache.items))
    with metric_cols[1]:
        st.metric("🟢 Green", summary["green"])
    with metric_cols[2]:
        st.metric("🟡 Yellow", summary["yellow"])
    with metric_cols[3]:
        st.metric("🔴 Red", summary["red"])

    if not controls:
        st.info("No security controls yet. Add some in the Controls tab.")
    elif not items:
        st.info("No environments match the current search.")
    else:
        rows = build_matrix_rows(items, controls, cache.cells)
        matrix_df = pd.DataFrame(rows)

        def _color_cell(value):
            for color, hex_value in STATUS_HEX.items():
                if isinstance(value, str) and value.endswith(color.upper()):
                    return f"background-color: {hex_value}33"
            return ""

        control_columns = [c["name"] for c in controls]
        st.dataframe(
            matrix_df.style.map(_color_cell, subset=control_columns),
            use_container_width=True,
            hide_index=True
        )

        selected = st.selectbox(
            "Open environment detail:",
            options=[i["id"] for i in items],
            format_func=lambda x: cache.items[x]["name"],
            key="matrix_open_item"
        )
        if st.button("🔍 Open", key="matrix_open_button"):
            st.session_state.selected_item_id = selected
            flash(f"Selected {cache.items[selected]['name']}; see the Environment Detail tab")
            st.rerun()

# ============= Environment detail tab =============

with tab_detail:
    if not cache.items:
        st.info("No environments yet. Add one in the Environments tab.")
    else:
        item_ids = [i["id"] for i in cache.ordered_items()]
        default_id = st.session_state.selected_item_id
        index = item_ids.index(default_id) if default_id in item_ids else 0
        item_id = st.selectbox(
            "Environment",
            options=item_ids,
            index=index,
            format_func=lambda x: cache.items[x]["name"],
            key="detail_item"
        )
        st.session_state.selected_item_id = item_id

        try:
            detail = cache.client.get_environment_detail(item_id)
        except APIError as e:
            handle_api_error(e)
            detail = None

        if detail:
            environment = detail["environment"]
            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("Category", environment.get("category") or "N/A")
            with col2:
                st.metric("Owner", environment.get("owner") or "N/A")
            with col3:
                st.metric("Criticality", format_criticality_badge(environment.get("criticality")))
            if environment.get("tags"):
                st.caption("Tags: " + ", ".join(environment["tags"]))

            for control in detail["controls"]:
                control_id = control["control_id"]
                sub_statuses = [s["status"] for s in control["sub_controls"]]
                eligible = client_green_eligible(sub_statuses)
                label = f"{format_status_badge(control['status'])}  {control['name']}"

                with st.expander(label, expanded=False):
                    if control.get("description"):
                        st.caption(control["description"])

                    with st.form(f"control_status_{item_id}_{control_id}"):
                        options = allowed_statuses(eligible or control["status"] == "green")
                        current = control["status"] if control["status"] in options else options[0]
                        new_status = st.selectbox(
                            "Control status",
                            options=options,
                            index=options.index(current),
                            format_func=format_status_badge,
                        )
                        if not eligible:
                            st.caption("Green is unavailable until every sub-control is green.")
                        new_notes = st.text_area("Notes", value=control.get("notes") or "")
                        if st.form_submit_button("💾 Save control status", use_container_width=True):
                            try:
                                cache.set_control_status(item_id, control_id, new_status, new_notes or None)
                                flash(f"{control['name']} set to {new_status}")
                                st.rerun()
                            except APIError as e:
                                handle_api_error(e)

                    if control["sub_controls"]:
                        st.markdown("**Sub-controls**")
                    for sub in control["sub_controls"]:
                        sub_id = sub["sub_control_id"]
                        with st.form(f"sub_status_{item_id}_{sub_id}"):
                            st.markdown(f"{format_status_badge(sub['status'])} **{sub['name']}**")
                            if sub.get("description"):
                                st.caption(sub["description"])
                            sub_status = st.selectbox(
                                "Status",
                                options=STATUS_OPTIONS,
                                index=STATUS_OPTIONS.index(status_color(sub["status"]))
                                if status_color(sub["status"]) in STATUS_OPTIONS else 0,
                                format_func=format_status_badge,
                            )
                            sub_notes = st.text_input("Notes", value=sub.get("notes") or "")
                            if st.form_submit_button("💾 Save", use_container_width=True):
                                try:
                                    result = cache.set_sub_control_status(
                                        item_id, sub_id, sub_status, sub_notes or None
                                    )
                                    message = f"{sub['name']} set to {sub_status}"
                                    if result.get("parent_downgraded"):
                                        message += f"; {control['name']} was downgraded to yellow"
                                    flash(message)
                                    st.rerun()
                                except APIError as e:
                                    handle_api_error(e)

# ============= Environments tab =============

with tab_items:
    st.subheader("🏢 Environments")

    items = filter_items(cache.ordered_items(), search_query)
    if items:
        items_df = pd.DataFrame([
            {
                "ID": i["id"],
                "Name": i["name"],
                "Category": i.get("category") or "",
                "Type": i.get("item_type") or "",
                "Owner": i.get("owner") or "",
                "Criticality": format_criticality_badge(i.get("criticality")),
                "Tags": ", ".join(i.get("tags") or []),
            }
            for i in items
        ])
        st.dataframe(items_df, use_container_width=True, hide_index=True)

        selected_item_id = st.selectbox(
            "Select environment to edit/delete:",
            options=[i["id"] for i in items],
            format_func=lambda x: f"ID {x} - {cache.items[x]['name']}",
            key="manage_item"
        )
        item = cache.items[selected_item_id]

        with st.form(f"edit_item_{selected_item_id}"):
            edit_name = st.text_input("Name", value=item["name"])
            edit_description = st.text_area("Description", value=item.get("description") or "")
            col1, col2 = st.columns(2)
            with col1:
                edit_category = st.text_input("Category", value=item.get("category") or "")
                edit_owner = st.text_input("Owner", value=item.get("owner") or "")
            with col2:
                edit_type = st.text_input("Type", value=item.get("item_type") or "")
                edit_criticality = st.selectbox(
                    "Criticality",
                    options=CRITICALITY_OPTIONS,
                    index=CRITICALITY_OPTIONS.index(item.get("criticality", "medium")),
                )
            edit_tags = st.text_input("Tags (comma-separated)", value=", ".join(item.get("tags") or []))

            if st.form_submit_button("💾 Save Changes", use_container_width=True):
                try:
                    cache.update_item(selected_item_id, {
                        "name": edit_name,
                        "description": edit_description or None,
                        "category": edit_category or None,
                        "item_type": edit_type or None,
                        "owner": edit_owner or None,
                        "criticality": edit_criticality,
                        "tags": parse_tags(edit_tags),
                    })
                    flash(f"Environment {edit_name} updated")
                    st.rerun()
                except APIError as e:
                    handle_api_error(e)

        confirm_item_delete = st.checkbox(
            "I understand this deletes all status records for this environment",
            key=f"confirm_delete_item_{selected_item_id}"
        )
        if st.button("🗑️ Delete Environment", disabled=not confirm_item_delete, key=f"delete_item_{selected_item_id}"):
            try:
                cache.delete_item(selected_item_id)
                flash(f"Environment {item['name']} deleted")
                st.rerun()
            except APIError as e:
                handle_api_error(e)
    else:
        st.info("No environments found.")

    st.markdown("---")
    st.subheader("➕ Add Environment")
    with st.form("create_item", clear_on_submit=True):
        new_name = st.text_input("Name *")
        new_description = st.text_area("Description")
        col1, col2 = st.columns(2)
        with col1:
            new_category = st.text_input("Category")
            new_owner = st.text_input("Owner")
        with col2:
            new_type = st.text_input("Type")
            new_criticality = st.selectbox("Criticality", options=CRITICALITY_OPTIONS, index=1)
        new_tags = st.text_input("Tags (comma-separated)")

        if st.form_submit_button("➕ Create", use_container_width=True):
            if not new_name.strip():
                st.error("⚠️ Name is required")
            else:
                try:
                    created = cache.create_item({
                        "name": new_name,
                        "description": new_description or None,
                        "category": new_category or None,
                        "item_type": new_type or None,
                        "owner": new_owner or None,
                        "criticality": new_criticality,
                        "tags": parse_tags(new_tags),
                    })
                    flash(f"Environment {created['name']} created")
                    st.rerun()
                except APIError as e:
                    handle_api_error(e)

# ============= Controls tab =============

with tab_controls:
    st.subheader("🧩 Security Controls")

    controls = cache.ordered_controls()
    if controls:
        controls_df = pd.DataFrame([
            {
                "Position": c["sort_order"],
                "ID": c["id"],
                "Name": c["name"],
                "Description": c.get("description") or "",
                "Sub-controls": len(cache.sub_controls_for(c["id"])),
            }
            for c in controls
        ])
        st.dataframe(controls_df, use_container_width=True, hide_index=True)

        # Reorder
        with st.form("reorder_controls"):
            st.markdown("**Reorder** (comma-separated ids, first is leftmost)")
            order_text = st.text_input(
                "Order",
                value=", ".join(str(c["id"]) for c in controls),
            )
            if st.form_submit_button("↕️ Apply order", use_container_width=True):
                try:
                    ordered_ids = [int(part) for part in order_text.split(",") if part.strip()]
                except ValueError:
                    st.error("⚠️ Order must be a comma-separated list of ids")
                else:
                    try:
                        cache.reorder_controls(ordered_ids)
                        flash("Controls reordered")
                        st.rerun()
                    except APIError as e:
                        handle_api_error(e)

        selected_control_id = st.selectbox(
            "Select control to edit/delete:",
            options=[c["id"] for c in controls],
            format_func=lambda x: f"ID {x} - {cache.controls[x]['name']}",
            key="manage_control"
        )
        control = cache.controls[selected_control_id]

        with st.form(f"edit_control_{selected_control_id}"):
            edit_control_name = st.text_input("Name", value=control["name"])
            edit_control_description = st.text_area("Description", value=control.get("description") or "")
            if st.form_submit_button("💾 Save Changes", use_container_width=True):
                try:
                    cache.update_control(selected_control_id, {
                        "name": edit_control_name,
                        "description": edit_control_description or None,
                    })
                    flash(f"Control {edit_control_name} updated")
                    st.rerun()
                except APIError as e:
                    handle_api_error(e)

        confirm_control_delete = st.checkbox(
            "I understand this deletes the control, its sub-controls and all their status records",
            key=f"confirm_delete_control_{selected_control_id}"
        )
        if st.button("🗑️ Delete Control", disabled=not confirm_control_delete, key=f"delete_control_{selected_control_id}"):
            try:
                cache.delete_control(selected_control_id)
                flash(f"Control {control['name']} deleted")
                st.rerun()
            except APIError as e:
                handle_api_error(e)

        # Sub-controls of the selected control
        st.markdown("---")
        st.markdown(f"#### Sub-controls of {control['name']}")
        for sub in cache.sub_controls_for(selected_control_id):
            with st.expander(sub["name"]):
                with st.form(f"edit_sub_{sub['id']}"):
                    sub_name = st.text_input("Name", value=sub["name"])
                    sub_description = st.text_area("Description", value=sub.get("description") or "")
                    save_col, delete_col = st.columns(2)
                    with save_col:
                        save_sub = st.form_submit_button("💾 Save", use_container_width=True)
                    with delete_col:
                        delete_sub = st.form_submit_button("🗑️ Delete", use_container_width=True)
                    if save_sub:
                        try:
                            cache.update_sub_control(sub["id"], {
                                "name": sub_name,
                                "description": sub_description or None,
                            })
                            flash(f"Sub-control {sub_name} updated")
                            st.rerun()
                        except APIError as e:
                            handle_api_error(e)
                    if delete_sub:
                        try:
                            cache.delete_sub_control(sub["id"])
                            flash(f"Sub-control {sub['name']} deleted")
                            st.rerun()
                        except APIError as e:
                            handle_api_error(e)

        with st.form(f"create_sub_{selected_control_id}", clear_on_submit=True):
            st.markdown("**➕ Add sub-control**")
            new_sub_name = st.text_input("Name *", key=f"new_sub_name_{selected_control_id}")
            new_sub_description = st.text_area("Description", key=f"new_sub_desc_{selected_control_id}")
            if st.form_submit_button("➕ Create sub-control", use_container_width=True):
                if not new_sub_name.strip():
                    st.error("⚠️ Name is required")
                else:
                    try:
                        cache.create_sub_control({
                            "control_id": selected_control_id,
                            "name": new_sub_name,
                            "description": new_sub_description or None,
                        })
                        flash(f"Sub-control {new_sub_name} created")
                        st.rerun()
                    except APIError as e:
                        handle_api_error(e)
    else:
        st.info("No controls found.")

    st.markdown("---")
    st.subheader("➕ Add Control")
    with st.form("create_control", clear_on_submit=True):
        new_control_name = st.text_input("Name *")
        new_control_description = st.text_area("Description")
        if st.form_submit_button("➕ Create", use_container_width=True):
            if not new_control_name.strip():
                st.error("⚠️ Name is required")
            else:
                try:
                    created = cache.create_control({
                        "name": new_control_name,
                        "description": new_control_description or None,
                    })
                    flash(f"Control {created['name']} created")
                    st.rerun()
                except APIError as e:
                    handle_api_error(e)
