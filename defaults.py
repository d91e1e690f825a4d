"""Starter assumptions for a new cost-to-serve session."""

from config import Actor, CalendarConfig, ModelConfig, OrgConfig, Stage

DEFAULT_ACTOR_SALARY = 30000.0

INDIRECT_COST_LABELS = {
    "tools": "Tools (Hardware, Software)",
    "utilities": "Utilities & Facilities",
}


def indirect_cost_label(category: str) -> str:
    return INDIRECT_COST_LABELS.get(category, category.capitalize())


def starter_baseline() -> ModelConfig:
    actors = [
        Actor(id=1, name="Actor 1", annual_salary=45000.0),
        Actor(id=2, name="Actor 2", annual_salary=38000.0),
    ]

    stages = [
        Stage(id=1, name="Awareness"),
        Stage(id=2, name="Join"),
        Stage(id=3, name="Use"),
        Stage(id=4, name="Support"),
        Stage(id=5, name="Exit"),
    ]

    return ModelConfig(
        calendar=CalendarConfig(working_days_per_year=250.0, hours_per_day=7.5),
        org=OrgConfig(total_staff_count=100, customer_count=10000),
        actors=actors,
        stages=stages,
        time_allocation={},
        indirect_costs={
            "rent": 95000.0,
            "training": 200000.0,
            "payroll": 20000.0,
            "insurance": 20000.0,
            "utilities": 20000.0,
            "tools": 20000.0,
        },
    )
