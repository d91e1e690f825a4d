"""
Cost to Serve Calculation Engine
Pure functions over one input snapshot: calendar -> rates -> cost matrix -> cost to serve.
Per-employee overhead is computed alongside and reported as a separate KPI.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence, Tuple

import pandas as pd

from config import (
    Actor,
    ActorRate,
    CalendarConfig,
    ModelConfig,
    ModelResult,
    Stage,
    TimeAllocation,
)

logger = logging.getLogger(__name__)

MINUTES_PER_HOUR = 60


def _safe_div(numerator: float, denominator: float) -> float:
    """Any division by zero in the model resolves to 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


# ---------------------------------------------------------------------------
# Calendar & rates
# ---------------------------------------------------------------------------

def normalize_calendar(calendar: CalendarConfig) -> Tuple[float, float]:
    """Return (hours_per_year, minutes_per_year)."""
    hours = calendar.working_days_per_year * calendar.hours_per_day
    return hours, hours * MINUTES_PER_HOUR


def derive_rates(actors: Sequence[Actor], hours_per_year: float) -> List[ActorRate]:
    rates = []
    for actor in actors:
        hourly = _safe_div(actor.annual_salary, hours_per_year)
        rates.append(ActorRate(
            actor_id=actor.id,
            name=actor.name,
            annual_salary=actor.annual_salary,
            hourly_rate=hourly,
            per_minute_rate=hourly / MINUTES_PER_HOUR,
        ))
    return rates


# ---------------------------------------------------------------------------
# Overhead
# ---------------------------------------------------------------------------

def indirect_total(indirect_costs: Mapping[str, float]) -> float:
    return float(sum(indirect_costs.values()))


def overhead_per_employee(indirect_costs: Mapping[str, float], total_staff_count: int) -> float:
    return _safe_div(indirect_total(indirect_costs), total_staff_count)


# ---------------------------------------------------------------------------
# Cost matrix
# ---------------------------------------------------------------------------

def aggregate_costs(
    actors: Sequence[Actor],
    stages: Sequence[Stage],
    rates: Sequence[ActorRate],
    time_allocation: TimeAllocation,
) -> Tuple[Dict[int, float], Dict[int, float], float, List[dict]]:
    """Reduce the actor x stage matrix to stage totals, actor totals and a grand total.

    Only pairs from the current rosters are visited, so allocation entries for
    removed actors or stages never contribute.
    """
    per_minute = {r.actor_id: r.per_minute_rate for r in rates}
    cost_by_stage = {s.id: 0.0 for s in stages}
    cost_by_actor = {a.id: 0.0 for a in actors}
    total = 0.0
    records: List[dict] = []

    for actor in actors:
        rate = per_minute.get(actor.id, 0.0)
        for stage in stages:
            minutes = time_allocation.get((actor.id, stage.id), 0.0)
            cost = minutes * rate
            cost_by_stage[stage.id] += cost
            cost_by_actor[actor.id] += cost
            total += cost
            records.append({
                "actor_id": actor.id,
                "actor": actor.name,
                "stage_id": stage.id,
                "stage": stage.name,
                "minutes": minutes,
                "per_minute_rate": rate,
                "cost": cost,
            })

    return cost_by_stage, cost_by_actor, total, records


def cost_to_serve(total_cost: float, customer_count: int) -> float:
    return _safe_div(total_cost, customer_count)


def _summary_frame(items, costs: Dict[int, float], key: str, total: float) -> pd.DataFrame:
    # bar widths are relative to the largest entry, floored at 1 like the results chart
    largest = max(max(costs.values(), default=0.0), 1.0)
    rows = []
    for item in items:
        c = costs.get(item.id, 0.0)
        rows.append({
            f"{key}_id": item.id,
            key: item.name,
            "cost": c,
            "share_of_total": _safe_div(c, total),
            "share_of_max": c / largest,
        })
    return pd.DataFrame(rows, columns=[f"{key}_id", key, "cost", "share_of_total", "share_of_max"])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def run(cfg: ModelConfig) -> Dict:
    hours, minutes = normalize_calendar(cfg.calendar)
    rates = derive_rates(cfg.actors, hours)
    by_stage, by_actor, total, records = aggregate_costs(
        cfg.actors, cfg.stages, rates, cfg.time_allocation
    )

    matrix = pd.DataFrame(records)
    if matrix.empty:
        matrix = pd.DataFrame(
            columns=["actor_id", "actor", "stage_id", "stage",
                     "minutes", "per_minute_rate", "cost"]
        )

    return {
        "hours_per_year": hours,
        "minutes_per_year": minutes,
        "rates": rates,
        "cost_by_stage": by_stage,
        "cost_by_actor": by_actor,
        "total_cost": total,
        "matrix": matrix,
    }


def run_model(cfg: ModelConfig) -> ModelResult:
    res = run(cfg)
    total = res["total_cost"]

    result = ModelResult(
        hours_per_year=res["hours_per_year"],
        minutes_per_year=res["minutes_per_year"],
        rates=res["rates"],
        cost_by_stage=res["cost_by_stage"],
        cost_by_actor=res["cost_by_actor"],
        total_cost=total,
        cost_to_serve=cost_to_serve(total, cfg.org.customer_count),
        indirect_total=indirect_total(cfg.indirect_costs),
        overhead_per_employee=overhead_per_employee(
            cfg.indirect_costs, cfg.org.total_staff_count
        ),
        matrix=res["matrix"],
        stage_summary=_summary_frame(cfg.stages, res["cost_by_stage"], "stage", total),
        actor_summary=_summary_frame(cfg.actors, res["cost_by_actor"], "actor", total),
    )

    logger.info(
        "Model run: %d actors x %d stages, total cost %.2f, cost to serve %.4f",
        len(cfg.actors), len(cfg.stages), result.total_cost, result.cost_to_serve,
    )
    return result
