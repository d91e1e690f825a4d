"""
Mutation operations for a cost-to-serve session.

Every operation returns new values and leaves its inputs untouched. The UI
replaces its snapshot with the returned value; the engine is re-run on the
new snapshot.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import List, Sequence

from config import Actor, ModelConfig, Stage
from defaults import DEFAULT_ACTOR_SALARY

logger = logging.getLogger(__name__)

ACTOR_FIELDS = ("name", "annual_salary")
STAGE_FIELDS = ("name",)
CALENDAR_FIELDS = ("working_days_per_year", "hours_per_day")
ORG_FIELDS = ("total_staff_count", "customer_count")


def parse_number(value) -> float:
    """Coerce raw user input to a finite, non-negative float (0 otherwise)."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Could not parse %r as a number, using 0", value)
        return 0.0
    if not math.isfinite(number):
        logger.debug("Non-finite input %r, using 0", value)
        return 0.0
    if number < 0:
        logger.debug("Negative input %r clamped to 0", value)
        return 0.0
    return number


def _next_id(items) -> int:
    return max((item.id for item in items), default=0) + 1


def _check_field(field: str, allowed) -> None:
    if field not in allowed:
        raise ValueError(f"Unknown field {field!r}: expected one of {', '.join(allowed)}")


def _remove(items, item_id: int, kind: str) -> list:
    if len(items) <= 1:
        logger.debug("Refusing to remove the last %s (id=%s)", kind, item_id)
        return list(items)
    return [item for item in items if item.id != item_id]


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------

def add_actor(actors: Sequence[Actor]) -> List[Actor]:
    new_id = _next_id(actors)
    return list(actors) + [
        Actor(id=new_id, name=f"Actor {new_id}", annual_salary=DEFAULT_ACTOR_SALARY)
    ]


def remove_actor(actors: Sequence[Actor], actor_id: int) -> List[Actor]:
    return _remove(actors, actor_id, "actor")


def update_actor(actors: Sequence[Actor], actor_id: int, field: str, value) -> List[Actor]:
    _check_field(field, ACTOR_FIELDS)
    if field == "annual_salary":
        value = parse_number(value)
    else:
        value = str(value)
    return [replace(a, **{field: value}) if a.id == actor_id else a for a in actors]


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def add_stage(stages: Sequence[Stage]) -> List[Stage]:
    new_id = _next_id(stages)
    return list(stages) + [Stage(id=new_id, name=f"Stage {new_id}")]


def remove_stage(stages: Sequence[Stage], stage_id: int) -> List[Stage]:
    return _remove(stages, stage_id, "stage")


def update_stage(stages: Sequence[Stage], stage_id: int, field: str, value) -> List[Stage]:
    _check_field(field, STAGE_FIELDS)
    return [replace(s, name=str(value)) if s.id == stage_id else s for s in stages]


# ---------------------------------------------------------------------------
# Config-level setters
# ---------------------------------------------------------------------------

def _derive(cfg: ModelConfig, **changes) -> ModelConfig:
    """New config with fresh containers, so no list or dict is shared with cfg."""
    fields = {
        "calendar": replace(cfg.calendar),
        "org": replace(cfg.org),
        "actors": list(cfg.actors),
        "stages": list(cfg.stages),
        "time_allocation": dict(cfg.time_allocation),
        "indirect_costs": dict(cfg.indirect_costs),
    }
    fields.update(changes)
    return ModelConfig(**fields)


def set_calendar(cfg: ModelConfig, field: str, value) -> ModelConfig:
    _check_field(field, CALENDAR_FIELDS)
    calendar = replace(cfg.calendar, **{field: parse_number(value)})
    return _derive(cfg, calendar=calendar)


def set_org(cfg: ModelConfig, field: str, value) -> ModelConfig:
    _check_field(field, ORG_FIELDS)
    org = replace(cfg.org, **{field: int(parse_number(value))})
    return _derive(cfg, org=org)


def set_indirect_cost(cfg: ModelConfig, category: str, value) -> ModelConfig:
    costs = dict(cfg.indirect_costs)
    costs[category] = parse_number(value)
    return _derive(cfg, indirect_costs=costs)


def remove_indirect_cost(cfg: ModelConfig, category: str) -> ModelConfig:
    costs = {k: v for k, v in cfg.indirect_costs.items() if k != category}
    return _derive(cfg, indirect_costs=costs)


def set_time(cfg: ModelConfig, actor_id: int, stage_id: int, value) -> ModelConfig:
    allocation = dict(cfg.time_allocation)
    allocation[(actor_id, stage_id)] = parse_number(value)
    return _derive(cfg, time_allocation=allocation)


def prune_time_allocation(cfg: ModelConfig) -> ModelConfig:
    """Drop allocation cells whose actor or stage no longer exists."""
    actor_ids = {a.id for a in cfg.actors}
    stage_ids = {s.id for s in cfg.stages}
    allocation = {
        (a, s): minutes
        for (a, s), minutes in cfg.time_allocation.items()
        if a in actor_ids and s in stage_ids
    }
    dropped = len(cfg.time_allocation) - len(allocation)
    if dropped:
        logger.debug("Pruned %d orphaned time allocation cells", dropped)
    return _derive(cfg, time_allocation=allocation)


def remove_actor_from(cfg: ModelConfig, actor_id: int) -> ModelConfig:
    """Remove an actor and its allocation cells, so a reused id starts empty."""
    return prune_time_allocation(_derive(cfg, actors=remove_actor(cfg.actors, actor_id)))


def remove_stage_from(cfg: ModelConfig, stage_id: int) -> ModelConfig:
    return prune_time_allocation(_derive(cfg, stages=remove_stage(cfg.stages, stage_id)))


def add_actor_to(cfg: ModelConfig) -> ModelConfig:
    return _derive(cfg, actors=add_actor(cfg.actors))


def add_stage_to(cfg: ModelConfig) -> ModelConfig:
    return _derive(cfg, stages=add_stage(cfg.stages))
