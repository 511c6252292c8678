#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from projstat.models import FilterCriteria  # noqa: E402
from projstat.session import SessionController  # noqa: E402

ALL_SYSTEMS = "All Systems"
ALL_MILESTONES = "All Milestones"
EMPTY_STATE = "Paste a Google Sheet and click View Data."


def ensure_state() -> None:
    if "controller" not in st.session_state:
        st.session_state["controller"] = SessionController()
    st.session_state.setdefault("source_input", "")
    st.session_state.setdefault("system_filter", "")
    st.session_state.setdefault("milestone_filter", "")
    st.session_state.setdefault("search_input", "")


def controller() -> SessionController:
    return st.session_state["controller"]


def handle_load() -> None:
    # Option lists are rebuilt from the new rows, so the selections go back to "All".
    st.session_state["system_filter"] = ""
    st.session_state["milestone_filter"] = ""
    controller().load(st.session_state.get("source_input", ""))
    handle_filters()


def handle_reset() -> None:
    st.session_state["source_input"] = ""
    st.session_state["system_filter"] = ""
    st.session_state["milestone_filter"] = ""
    st.session_state["search_input"] = ""
    controller().reset()


def handle_filters() -> None:
    controller().apply(
        FilterCriteria(
            system_equals=st.session_state.get("system_filter", ""),
            milestone_equals=st.session_state.get("milestone_filter", ""),
            search=st.session_state.get("search_input", ""),
        )
    )


def display_frame(headers: tuple[str, ...], rows) -> pd.DataFrame:
    seen: dict[str, int] = {}
    labels = []
    for header in headers:
        count = seen.get(header, 0)
        seen[header] = count + 1
        labels.append(header if count == 0 else f"{header} ({count + 1})")
    return pd.DataFrame([list(row) for row in rows], columns=labels)


def render_feedback() -> None:
    state = controller().state
    if not state.feedback:
        return
    if state.feedback_kind == "error":
        st.error(state.feedback)
    else:
        st.success(state.feedback)


def render_filters() -> None:
    options = controller().filter_options()
    cols = st.columns(3)
    cols[0].selectbox(
        "System",
        options=[""] + options["systems"],
        format_func=lambda value: value or ALL_SYSTEMS,
        key="system_filter",
        on_change=handle_filters,
    )
    cols[1].selectbox(
        "Milestone",
        options=[""] + options["milestones"],
        format_func=lambda value: value or ALL_MILESTONES,
        key="milestone_filter",
        on_change=handle_filters,
    )
    cols[2].text_input("Search", key="search_input", on_change=handle_filters, placeholder="System, milestone, developer or manager")


def render_kpis() -> None:
    view = controller().state.view
    cols = st.columns(2)
    cols[0].metric("Total Projects", view.total_systems)
    cols[1].metric("Total Milestones", view.total_milestones)


def render_table() -> None:
    state = controller().state
    if not state.dataset.headers:
        st.info(EMPTY_STATE)
        return
    if not state.view.rows:
        st.info("No results found")
        return
    st.dataframe(display_frame(state.dataset.headers, state.view.rows), width="stretch", hide_index=True)


def main() -> None:
    st.set_page_config(page_title="projstat", layout="wide", initial_sidebar_state="collapsed")
    ensure_state()

    st.title("Project status")
    st.caption("Paste a publicly shared Google Sheets link or sheet ID to view project milestones.")

    with st.form("sheet-source-form"):
        st.text_input("Google Sheet link or ID", key="source_input")
        left, right = st.columns(2)
        left.form_submit_button("View Data", type="primary", on_click=handle_load, width="stretch")
        right.form_submit_button("Reset", on_click=handle_reset, width="stretch")

    render_feedback()
    render_kpis()
    render_filters()
    render_table()


if __name__ == "__main__":
    main()
