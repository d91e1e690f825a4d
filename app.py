"""
Cost to Serve Calculator — Streamlit UI
Six-step flow: Setup → Actors → Indirect Costs → Journey Stages → Time Allocation → Results.
All arithmetic lives in model.py; this file only collects inputs and renders outputs.
"""

import logging
import sys
from dataclasses import replace
from pathlib import Path

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

sys.path.insert(0, str(Path(__file__).resolve().parent))

from defaults import indirect_cost_label, starter_baseline
from model import derive_rates, normalize_calendar, run_model
from build_excel_model import generate_excel
import roster

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------
MCK_NAVY = "#051C2C"
MCK_BLUE = "#2251FF"
MCK_TEAL = "#00A9F4"
MCK_GREY = "#7F8C8D"
MCK_WHITE = "#FFFFFF"
MCK_DARK = "#1A1A2E"

STEPS = [
    ("Setup", "⚙️"),
    ("Actors", "👥"),
    ("Indirect Costs", "🏢"),
    ("Journey Stages", "🗺️"),
    ("Time Allocation", "⏱️"),
    ("Results", "📊"),
]


def _fmt_eur(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}€{abs(value):,.2f}"


# ---------------------------------------------------------------------------
# Page config & CSS
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Cost to Serve",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown(f"""
<style>
    @import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap');

    .stApp {{ font-family: 'Inter', 'Helvetica Neue', Arial, sans-serif; }}
    .main .block-container {{ padding-top: 1.5rem; max-width: 1200px; }}

    [data-testid="collapsedControl"] {{ display: none; }}
    header[data-testid="stHeader"] {{ display: none; }}

    button[kind="primary"], .stDownloadButton button {{
        background-color: {MCK_NAVY} !important; border-color: {MCK_NAVY} !important;
        color: {MCK_WHITE} !important;
    }}

    .mck-header {{
        background: {MCK_NAVY}; color: white;
        padding: 1.6rem 2rem; border-radius: 8px; margin-bottom: 1.2rem;
        display: flex; justify-content: space-between; align-items: center;
    }}
    .mck-header h1 {{ margin: 0; font-size: 1.5rem; font-weight: 600; letter-spacing: -0.02em; }}
    .mck-header p {{ margin: 0.3rem 0 0 0; font-size: 0.82rem; opacity: 0.7; }}
    .mck-header .total {{ font-size: 1rem; font-weight: 600; }}

    .kpi-row {{ display: flex; gap: 1rem; margin-bottom: 1.5rem; }}
    .kpi-card {{
        flex: 1; background: {MCK_WHITE}; border: 1px solid #E0E4E8;
        border-radius: 8px; padding: 1.1rem 1.4rem; box-shadow: 0 1px 3px rgba(0,0,0,0.04);
    }}
    .kpi-card .kpi-label {{
        font-size: 0.7rem; font-weight: 500; color: {MCK_GREY};
        text-transform: uppercase; letter-spacing: 0.05em; margin-bottom: 0.3rem;
    }}
    .kpi-card .kpi-value {{ font-size: 1.5rem; font-weight: 700; color: {MCK_NAVY}; }}
    .kpi-card .kpi-sub {{ font-size: 0.75rem; color: {MCK_GREY}; margin-top: 0.15rem; }}

    .help-text {{
        font-size: 0.76rem; color: #6B7280; line-height: 1.45;
        margin-top: -0.2rem; margin-bottom: 0.7rem;
    }}
    .section-intro {{
        font-size: 0.88rem; color: #4B5563; margin-bottom: 1rem; line-height: 1.6; max-width: 820px;
    }}
    .hiw-formula {{
        background: #EBF4FA; color: {MCK_NAVY}; font-family: monospace;
        padding: 0.8rem 1rem; border-radius: 6px; margin: 0.6rem 0;
    }}
</style>
""", unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------
if "cfg" not in st.session_state or not hasattr(st.session_state.cfg, "time_allocation"):
    st.session_state.cfg = starter_baseline()
if "step" not in st.session_state:
    st.session_state.step = 0


def _commit(cfg, rerun=False):
    st.session_state.cfg = cfg
    if rerun:
        st.rerun()


# ---------------------------------------------------------------------------
# Header & navigation
# ---------------------------------------------------------------------------
def _render_header(total_cost: float):
    st.markdown(f"""
    <div class="mck-header">
        <div>
            <h1>Cost to Serve</h1>
            <p>Service design framework &mdash; what does it cost to deliver your service to one customer?</p>
        </div>
        <div class="total">Total: {_fmt_eur(total_cost)}</div>
    </div>
    """, unsafe_allow_html=True)


def _render_steps():
    cols = st.columns(len(STEPS))
    for i, (title, icon) in enumerate(STEPS):
        with cols[i]:
            label = f"{icon} {title}" + (" ✓" if i < st.session_state.step else "")
            kind = "primary" if i == st.session_state.step else "secondary"
            if st.button(label, key=f"nav_{i}", type=kind, use_container_width=True):
                st.session_state.step = i
                st.rerun()


def _render_prev_next():
    st.divider()
    step = st.session_state.step
    c1, _, c3 = st.columns([1, 3, 1])
    with c1:
        if st.button("← Back", disabled=step == 0, use_container_width=True):
            st.session_state.step = max(0, step - 1)
            st.rerun()
    with c3:
        last = step == len(STEPS) - 1
        if st.button("Complete" if last else "Next →", disabled=last, type="primary",
                     use_container_width=True):
            st.session_state.step = min(len(STEPS) - 1, step + 1)
            st.rerun()


# ═══════════════════════════════════════════════════════════════════════════
# STEP 1: SETUP
# ═══════════════════════════════════════════════════════════════════════════
def _step_setup(cfg):
    st.markdown("#### Organisation setup")
    st.markdown('<div class="section-intro">Configure your baseline working parameters to calculate accurate hourly rates.</div>', unsafe_allow_html=True)

    c1, c2 = st.columns(2)
    with c1:
        days = st.number_input("Working days per year", value=float(cfg.calendar.working_days_per_year),
                               min_value=0.0, step=1.0, format="%.0f")
        hours = st.number_input("Hours per day", value=float(cfg.calendar.hours_per_day),
                                min_value=0.0, step=0.5)
    with c2:
        staff = st.number_input("Total staff in organisation", value=int(cfg.org.total_staff_count),
                                min_value=0, step=1,
                                help="Used to spread indirect costs per employee")
        customers = st.number_input("Number of customers served", value=int(cfg.org.customer_count),
                                    min_value=0, step=100)

    cfg = roster.set_calendar(cfg, "working_days_per_year", days)
    cfg = roster.set_calendar(cfg, "hours_per_day", hours)
    cfg = roster.set_org(cfg, "total_staff_count", staff)
    cfg = roster.set_org(cfg, "customer_count", customers)
    _commit(cfg)

    hours_per_year, minutes_per_year = normalize_calendar(cfg.calendar)
    st.markdown(f"""
    <div class="kpi-row">
        <div class="kpi-card"><div class="kpi-label">Hours per year</div>
            <div class="kpi-value">{hours_per_year:,.1f}</div></div>
        <div class="kpi-card"><div class="kpi-label">Minutes per year</div>
            <div class="kpi-value">{minutes_per_year:,.0f}</div></div>
    </div>
    """, unsafe_allow_html=True)


# ═══════════════════════════════════════════════════════════════════════════
# STEP 2: ACTORS
# ═══════════════════════════════════════════════════════════════════════════
def _step_actors(cfg):
    st.markdown("#### Actors")
    st.markdown('<div class="section-intro">Define the roles involved in delivering your service and their annual salaries.</div>', unsafe_allow_html=True)

    hours_per_year, _ = normalize_calendar(cfg.calendar)
    rates = {r.actor_id: r for r in derive_rates(cfg.actors, hours_per_year)}

    hc = st.columns([3, 2, 2, 2, 1])
    for col, label in zip(hc, ["Name", "Annual salary", "Hourly", "Per minute", ""]):
        col.caption(label)

    for actor in cfg.actors:
        c1, c2, c3, c4, c5 = st.columns([3, 2, 2, 2, 1])
        with c1:
            name = st.text_input("Name", value=actor.name, key=f"an_{actor.id}",
                                 label_visibility="collapsed")
        with c2:
            salary = st.number_input("Salary", value=float(actor.annual_salary), min_value=0.0,
                                     step=1000.0, format="%.0f", key=f"as_{actor.id}",
                                     label_visibility="collapsed")
        with c3:
            st.markdown(_fmt_eur(rates[actor.id].hourly_rate))
        with c4:
            st.markdown(_fmt_eur(rates[actor.id].per_minute_rate))
        with c5:
            if st.button("✕", key=f"ar_{actor.id}", disabled=len(cfg.actors) == 1):
                _commit(roster.remove_actor_from(cfg, actor.id), rerun=True)

        if name != actor.name:
            cfg = _replace_actors(cfg, roster.update_actor(cfg.actors, actor.id, "name", name))
        if salary != actor.annual_salary:
            cfg = _replace_actors(cfg, roster.update_actor(cfg.actors, actor.id, "annual_salary", salary))
    _commit(cfg)

    if st.button("＋ Add actor"):
        _commit(roster.add_actor_to(cfg), rerun=True)


def _replace_actors(cfg, actors):
    return replace(cfg, actors=actors)


def _replace_stages(cfg, stages):
    return replace(cfg, stages=stages)


# ═══════════════════════════════════════════════════════════════════════════
# STEP 3: INDIRECT COSTS
# ═══════════════════════════════════════════════════════════════════════════
def _step_indirect(cfg):
    st.markdown("#### Indirect costs")
    st.markdown('<div class="section-intro">These are organisational overheads allocated per employee to understand the true cost of delivery.</div>', unsafe_allow_html=True)

    for category, amount in list(cfg.indirect_costs.items()):
        c1, c2, c3 = st.columns([3, 3, 1])
        with c1:
            st.markdown(f"**{indirect_cost_label(category)}**")
        with c2:
            value = st.number_input(category, value=float(amount), min_value=0.0, step=1000.0,
                                    format="%.0f", key=f"ic_{category}",
                                    label_visibility="collapsed")
        with c3:
            if st.button("✕", key=f"icr_{category}"):
                _commit(roster.remove_indirect_cost(cfg, category), rerun=True)
        if value != amount:
            cfg = roster.set_indirect_cost(cfg, category, value)
    _commit(cfg)

    c1, c2 = st.columns([3, 1])
    with c1:
        new_cat = st.text_input("New category", key="ic_new", placeholder="e.g. marketing")
    with c2:
        st.write("")
        if st.button("＋ Add category") and new_cat.strip():
            _commit(roster.set_indirect_cost(cfg, new_cat.strip().lower(), 0), rerun=True)

    result = run_model(cfg)
    st.markdown(f"""
    <div class="kpi-row">
        <div class="kpi-card"><div class="kpi-label">Total indirect costs</div>
            <div class="kpi-value">{_fmt_eur(result.indirect_total)}</div></div>
        <div class="kpi-card"><div class="kpi-label">Per employee</div>
            <div class="kpi-value">{_fmt_eur(result.overhead_per_employee)}</div>
            <div class="kpi-sub">Across {cfg.org.total_staff_count:,} staff &mdash; reported separately, not added to cost to serve</div></div>
    </div>
    """, unsafe_allow_html=True)


# ═══════════════════════════════════════════════════════════════════════════
# STEP 4: JOURNEY STAGES
# ═══════════════════════════════════════════════════════════════════════════
def _step_stages(cfg):
    st.markdown("#### Journey stages")
    st.markdown('<div class="section-intro">Map out the stages of your customer journey, in order.</div>', unsafe_allow_html=True)

    for i, stage in enumerate(cfg.stages):
        c1, c2, c3 = st.columns([1, 6, 1])
        with c1:
            st.markdown(f"**{i + 1}**")
        with c2:
            name = st.text_input("Stage", value=stage.name, key=f"sn_{stage.id}",
                                 label_visibility="collapsed")
        with c3:
            if st.button("✕", key=f"sr_{stage.id}", disabled=len(cfg.stages) == 1):
                _commit(roster.remove_stage_from(cfg, stage.id), rerun=True)
        if name != stage.name:
            cfg = _replace_stages(cfg, roster.update_stage(cfg.stages, stage.id, "name", name))
    _commit(cfg)

    if st.button("＋ Add stage"):
        _commit(roster.add_stage_to(cfg), rerun=True)

    st.markdown(" → ".join(f"**{s.name}**" for s in cfg.stages))


# ═══════════════════════════════════════════════════════════════════════════
# STEP 5: TIME ALLOCATION
# ═══════════════════════════════════════════════════════════════════════════
def _step_time(cfg):
    st.markdown("#### Time allocation")
    st.markdown('<div class="section-intro">Enter the time (in minutes) each actor spends per customer at each stage of the journey.</div>', unsafe_allow_html=True)

    widths = [2] + [1] * len(cfg.stages) + [1]
    hc = st.columns(widths)
    hc[0].caption("Actor")
    for si, stage in enumerate(cfg.stages):
        hc[si + 1].caption(stage.name)
    hc[-1].caption("Total")

    for actor in cfg.actors:
        cols = st.columns(widths)
        cols[0].markdown(f"**{actor.name}**")
        for si, stage in enumerate(cfg.stages):
            current = cfg.time_allocation.get((actor.id, stage.id), 0.0)
            with cols[si + 1]:
                minutes = st.number_input("min", value=float(current), min_value=0.0, step=1.0,
                                          key=f"t_{actor.id}_{stage.id}",
                                          label_visibility="collapsed")
            if minutes != current:
                cfg = roster.set_time(cfg, actor.id, stage.id, minutes)
        _commit(cfg)

    result = run_model(cfg)
    cols = st.columns(widths)
    cols[0].markdown("**Cost by stage**")
    for si, stage in enumerate(cfg.stages):
        cols[si + 1].markdown(_fmt_eur(result.cost_by_stage[stage.id]))
    cols[-1].markdown(f"**{_fmt_eur(result.total_cost)}**")

    st.dataframe(
        pd.DataFrame([
            {"Actor": r["actor"], "Cost": _fmt_eur(r["cost"]),
             "Share": f"{r['share_of_total'] * 100:.1f}%"}
            for _, r in result.actor_summary.iterrows()
        ]),
        use_container_width=True, hide_index=True,
    )


# ═══════════════════════════════════════════════════════════════════════════
# STEP 6: RESULTS
# ═══════════════════════════════════════════════════════════════════════════
def _bar_chart(frame: pd.DataFrame, label_col: str, color: str) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=frame["cost"], y=frame[label_col], orientation="h",
        marker_color=color, text=[_fmt_eur(c) for c in frame["cost"]],
        textposition="outside",
    ))
    fig.update_layout(
        height=60 + 48 * max(len(frame), 1),
        margin=dict(l=20, r=20, t=10, b=20),
        plot_bgcolor=MCK_WHITE, paper_bgcolor=MCK_WHITE,
        font=dict(family="Inter", size=12, color=MCK_DARK),
        xaxis=dict(gridcolor="#E8EAED", title=""),
        yaxis=dict(autorange="reversed", title=""),
        showlegend=False,
    )
    return fig


def _step_results(cfg, result):
    st.markdown(f"""
    <div class="kpi-row">
        <div class="kpi-card">
            <div class="kpi-label">Total cost to serve</div>
            <div class="kpi-value">{_fmt_eur(result.total_cost)}</div>
            <div class="kpi-sub">Time-based cost across all stages and actors</div>
        </div>
        <div class="kpi-card">
            <div class="kpi-label">Cost per customer</div>
            <div class="kpi-value">{_fmt_eur(result.cost_to_serve)}</div>
            <div class="kpi-sub">Based on {cfg.org.customer_count:,} customers</div>
        </div>
        <div class="kpi-card">
            <div class="kpi-label">Actors involved</div>
            <div class="kpi-value">{len(cfg.actors)}</div>
            <div class="kpi-sub">Across {len(cfg.stages)} journey stages</div>
        </div>
        <div class="kpi-card">
            <div class="kpi-label">Overhead per employee</div>
            <div class="kpi-value">{_fmt_eur(result.overhead_per_employee)}</div>
            <div class="kpi-sub">Separate KPI, not included above</div>
        </div>
    </div>
    """, unsafe_allow_html=True)

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("#### Cost distribution by stage")
        st.plotly_chart(_bar_chart(result.stage_summary, "stage", MCK_BLUE), use_container_width=True)
    with c2:
        st.markdown("#### Cost distribution by actor")
        st.plotly_chart(_bar_chart(result.actor_summary, "actor", MCK_TEAL), use_container_width=True)

    st.markdown("#### The formula")
    st.markdown(f"""
    <div class="hiw-formula">Cost to Serve = Total Cost of Service ÷ Number of Customers<br>
    {_fmt_eur(result.total_cost)} ÷ {cfg.org.customer_count:,} = {_fmt_eur(result.cost_to_serve)}</div>
    """, unsafe_allow_html=True)

    with st.expander("Cost matrix detail"):
        disp = result.matrix.copy()
        if not disp.empty:
            disp = disp.pivot_table(index="actor", columns="stage", values="cost",
                                    aggfunc="sum", sort=False)
        st.dataframe(disp, use_container_width=True)
        st.download_button("Download CSV", result.matrix.to_csv(index=False),
                           "cost_matrix.csv", "text/csv")

    st.divider()
    _, dc, _ = st.columns([1, 2, 1])
    with dc:
        st.download_button(
            "Download model as Excel",
            data=generate_excel(cfg, result),
            file_name="Cost_to_Serve_Model.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True,
        )


# ═══════════════════════════════════════════════════════════════════════════
# Router
# ═══════════════════════════════════════════════════════════════════════════
_header_slot = st.empty()
_render_steps()

_cfg = st.session_state.cfg
_step = st.session_state.step
if _step == 0:
    _step_setup(_cfg)
elif _step == 1:
    _step_actors(_cfg)
elif _step == 2:
    _step_indirect(_cfg)
elif _step == 3:
    _step_stages(_cfg)
elif _step == 4:
    _step_time(_cfg)
else:
    _step_results(_cfg, run_model(_cfg))

# header is filled last so the running total reflects edits made on this run
with _header_slot.container():
    _render_header(run_model(st.session_state.cfg).total_cost)

_render_prev_next()
