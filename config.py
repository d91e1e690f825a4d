from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import pandas as pd

# (actor_id, stage_id) -> minutes per customer
TimeAllocation = Dict[Tuple[int, int], float]


@dataclass
class CalendarConfig:
    """Working calendar used to turn annual salaries into time rates."""

    working_days_per_year: float = 250.0
    hours_per_day: float = 7.5


@dataclass
class OrgConfig:
    total_staff_count: int = 100
    customer_count: int = 10000


@dataclass(frozen=True)
class Actor:
    """A role whose time contributes cost to the service."""

    id: int
    name: str
    annual_salary: float


@dataclass(frozen=True)
class Stage:
    """One step in the customer journey."""

    id: int
    name: str


@dataclass(frozen=True)
class ActorRate:
    actor_id: int
    name: str
    annual_salary: float
    hourly_rate: float
    per_minute_rate: float


@dataclass
class ModelConfig:
    """All user-configurable inputs for the cost-to-serve model."""

    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    org: OrgConfig = field(default_factory=OrgConfig)

    actors: List[Actor] = field(default_factory=list)
    stages: List[Stage] = field(default_factory=list)

    time_allocation: TimeAllocation = field(default_factory=dict)

    indirect_costs: Dict[str, float] = field(default_factory=dict)


@dataclass
class ModelResult:
    """Output container returned by the calculation engine."""

    hours_per_year: float
    minutes_per_year: float
    rates: List[ActorRate]
    cost_by_stage: Dict[int, float]
    cost_by_actor: Dict[int, float]
    total_cost: float
    cost_to_serve: float
    indirect_total: float
    overhead_per_employee: float
    matrix: pd.DataFrame
    stage_summary: pd.DataFrame
    actor_summary: pd.DataFrame
