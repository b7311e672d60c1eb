"""Streamlit UI for the seating planner with CSV previews and validations."""
from __future__ import annotations

# Add src to sys.path so seating_planner can be found
import sys
import os
import io
import random
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

import pandas as pd
import streamlit as st
import streamlit.components.v1 as components

from seating_planner.config import RESTRICTION_MODES, GenerationConfig
from seating_planner.conflicts import detect_constraint_conflicts
from seating_planner.csv_loader import load_all
from seating_planner.logging_config import configure_logging
from seating_planner.mind_map import generate_plan_mind_map
from seating_planner.solver import generate_seating_plans_sync, priority_from_ids

configure_logging()

# -----------------------------
# Helpers
# -----------------------------

def uploadedfile_to_df(uploaded_file) -> pd.DataFrame | None:
    """Read a Streamlit UploadedFile or file-like object into a DataFrame."""
    if uploaded_file is None:
        return None
    uploaded_file.seek(0)
    return pd.read_csv(io.StringIO(uploaded_file.read().decode("utf-8")))

def df_to_csvio(df: pd.DataFrame) -> io.StringIO:
    """Serialize a DataFrame to a StringIO CSV buffer positioned at start."""
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    buf.seek(0)
    return buf

def validate_columns(df: pd.DataFrame, required: list[str], file_label: str) -> bool:
    """Check required columns and show an error if any are missing."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        st.error(f"Error in {file_label}: missing columns: {', '.join(missing)}")
        return False
    return True

def plan_to_df(plan) -> pd.DataFrame:
    rows = []
    for table in plan.tables:
        for seat_no, seat in enumerate(table.seats, start=1):
            rows.append({
                "table": table.name or table.id,
                "seat": seat_no,
                "guest": seat.name,
                "party_index": seat.party_index,
            })
    return pd.DataFrame(rows, columns=["table", "seat", "guest", "party_index"])

# -----------------------------
# Sidebar options
# -----------------------------

st.sidebar.header("Generation Options")
premium = st.sidebar.checkbox(
    "Premium quotas",
    value=False,
    help="Search harder and keep up to 30 distinct plans instead of 10.",
)
restriction_mode = st.sidebar.selectbox(
    "Table assignments inside a group",
    RESTRICTION_MODES,
    help="intersection: a group only sits where every assigned member may sit. "
         "union: any member's tables are tried first, then the rest.",
)
seed = st.sidebar.number_input(
    "Random seed (0 = random)",
    min_value=0,
    value=0,
    help="Use the same seed to reproduce a run.",
)

# -----------------------------
# Main UI and previews
# -----------------------------

st.title("Seating Planner")

_guests_file = st.file_uploader("Guests CSV", type="csv")
_relationships_file = st.file_uploader("Relationships CSV", type="csv")
_tables_file = st.file_uploader("Tables CSV", type="csv")

required = {
    "guests.csv": (_guests_file, ["id", "name"]),
    "relationships.csv": (_relationships_file, ["guest1_id", "guest2_id", "relation"]),
    "tables.csv": (_tables_file, ["id", "capacity"]),
}
frames = {}
for label, (upload, columns) in required.items():
    if upload is None:
        continue
    df = uploadedfile_to_df(upload)
    st.subheader(f"{label} preview")
    st.dataframe(df, use_container_width=True)
    if validate_columns(df, columns, label):
        frames[label] = df

# -----------------------------
# Run button
# -----------------------------

run_disabled = len(frames) < len(required)
run_clicked = st.button("Generate plans", disabled=run_disabled, key="generate_button")

if run_clicked and not run_disabled:
    try:
        data = load_all(
            df_to_csvio(frames["guests.csv"]),
            df_to_csvio(frames["relationships.csv"]),
            df_to_csvio(frames["tables.csv"]),
        )
    except (ValueError, KeyError) as e:
        st.error(f"Input validation error: {e}")
        st.stop()

    conflicts = detect_constraint_conflicts(data.guests, data.constraints, data.tables, True, data.adjacency)
    if conflicts:
        st.subheader("Constraint conflicts")
        st.dataframe(
            pd.DataFrame([
                {"severity": c.severity, "kind": c.kind, "description": c.description}
                for c in conflicts
            ]),
            use_container_width=True,
        )

    with st.spinner("Searching for seating plans..."):
        result = generate_seating_plans_sync(
            data.guests,
            data.tables,
            data.constraints,
            data.adjacency,
            data.restrictions,
            config=GenerationConfig.for_tier(premium, restriction_mode=restriction_mode),
            rng=random.Random(int(seed)) if seed else None,
            is_priority=priority_from_ids(data.priority_ids) if data.priority_ids else None,
        )

    for msg in result.errors:
        (st.error if msg.kind == "error" else st.warning)(msg.message)
    st.session_state["result"] = result
    st.session_state["data"] = data

# -----------------------------
# Plan browser
# -----------------------------

result = st.session_state.get("result")
data = st.session_state.get("data")
if result is not None and result.plans:
    choice = st.selectbox(
        "Plan",
        list(range(len(result.plans))),
        format_func=lambda i: f"#{i + 1} (score {result.plans[i].score})",
    )
    plan = result.plans[choice]
    plan_df = plan_to_df(plan)
    st.subheader("Seats")
    st.dataframe(plan_df, use_container_width=True)

    grouped_df = (
        plan_df[plan_df["party_index"] == 0]
        .groupby("table", sort=False)["guest"]
        .apply(lambda g: ", ".join(g))
        .reset_index(name="guests")
    )
    st.subheader("Guests per table")
    st.dataframe(grouped_df, use_container_width=True)

    st.download_button(
        "Download plan as CSV",
        plan_df.to_csv(index=False).encode("utf-8"),
        file_name=f"seating_plan_{choice + 1}.csv",
    )

    st.subheader("Seating Mind Map")
    html = generate_plan_mind_map(plan, data.guests, data.constraints, data.adjacency)
    components.html(html, height=600, scrolling=True)
