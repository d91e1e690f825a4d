"""
Tests for the session mutation operations.

Covers:
- Actor and stage add / remove / update
- Last-item removal guard
- Input coercion at the mutation boundary
- Config-level setters and orphan pruning
"""

import math

import pytest

import roster
from config import Actor, Stage
from defaults import DEFAULT_ACTOR_SALARY, starter_baseline
from model import run_model


class TestParseNumber:
    @pytest.mark.parametrize("raw, expected", [
        ("12.5", 12.5),
        (7, 7.0),
        ("", 0.0),
        ("abc", 0.0),
        (None, 0.0),
        ("nan", 0.0),
        (math.inf, 0.0),
        ("-5", 0.0),
        ("12abc", 0.0),
    ])
    def test_coercion(self, raw, expected):
        """Anything that is not a finite non-negative number becomes 0."""
        assert roster.parse_number(raw) == expected


class TestActors:
    def setup_method(self):
        self.actors = starter_baseline().actors

    def test_add_assigns_next_id(self):
        actors = roster.add_actor(self.actors)
        assert len(actors) == 3
        new = actors[-1]
        assert new.id == 3
        assert new.name == "Actor 3"
        assert new.annual_salary == DEFAULT_ACTOR_SALARY

    def test_add_id_above_any_existing(self):
        """Ids stay strictly increasing even with gaps."""
        actors = [Actor(4, "D", 1.0), Actor(11, "K", 1.0), Actor(2, "B", 1.0)]
        assert roster.add_actor(actors)[-1].id == 12

    def test_add_to_empty(self):
        assert roster.add_actor([])[0].id == 1

    def test_remove(self):
        actors = roster.remove_actor(self.actors, 1)
        assert [a.id for a in actors] == [2]

    def test_remove_last_is_noop(self):
        """The roster can never become empty."""
        one = [Actor(5, "Only", 1.0)]
        assert roster.remove_actor(one, 5) == one

    def test_remove_unknown_id(self):
        assert roster.remove_actor(self.actors, 42) == self.actors

    def test_update_name(self):
        actors = roster.update_actor(self.actors, 2, "name", "Caseworker")
        assert actors[1].name == "Caseworker"
        assert actors[0] == self.actors[0]

    def test_update_salary_coerced(self):
        actors = roster.update_actor(self.actors, 1, "annual_salary", "not a number")
        assert actors[0].annual_salary == 0.0

    def test_update_unknown_id_is_noop(self):
        assert roster.update_actor(self.actors, 42, "name", "X") == self.actors

    def test_update_unknown_field(self):
        with pytest.raises(ValueError):
            roster.update_actor(self.actors, 1, "id", 9)

    def test_inputs_not_modified(self):
        before = list(self.actors)
        roster.add_actor(self.actors)
        roster.remove_actor(self.actors, 1)
        roster.update_actor(self.actors, 1, "name", "Changed")
        assert self.actors == before


class TestStages:
    def setup_method(self):
        self.stages = starter_baseline().stages

    def test_add(self):
        stages = roster.add_stage(self.stages)
        assert stages[-1] == Stage(6, "Stage 6")
        assert [s.id for s in stages[:-1]] == [1, 2, 3, 4, 5]

    def test_remove_keeps_order(self):
        stages = roster.remove_stage(self.stages, 3)
        assert [s.name for s in stages] == ["Awareness", "Join", "Support", "Exit"]

    def test_remove_last_is_noop(self):
        one = [Stage(1, "Only")]
        assert len(roster.remove_stage(one, 1)) == 1

    def test_update(self):
        stages = roster.update_stage(self.stages, 5, "name", "Leave")
        assert stages[-1].name == "Leave"

    def test_update_unknown_field(self):
        with pytest.raises(ValueError):
            roster.update_stage(self.stages, 1, "annual_salary", 1)


class TestConfigSetters:
    def setup_method(self):
        self.cfg = starter_baseline()

    def test_set_calendar(self):
        cfg = roster.set_calendar(self.cfg, "hours_per_day", "8")
        assert cfg.calendar.hours_per_day == 8.0
        assert self.cfg.calendar.hours_per_day == 7.5

    def test_set_org_truncates_counts(self):
        cfg = roster.set_org(self.cfg, "customer_count", "2500.7")
        assert cfg.org.customer_count == 2500
        assert isinstance(cfg.org.customer_count, int)

    def test_set_org_bad_input(self):
        cfg = roster.set_org(self.cfg, "total_staff_count", "lots")
        assert cfg.org.total_staff_count == 0

    def test_set_indirect_cost_new_category(self):
        cfg = roster.set_indirect_cost(self.cfg, "marketing", 5000)
        assert cfg.indirect_costs["marketing"] == 5000.0
        assert "marketing" not in self.cfg.indirect_costs

    def test_remove_indirect_cost(self):
        cfg = roster.remove_indirect_cost(self.cfg, "rent")
        assert "rent" not in cfg.indirect_costs
        assert len(cfg.indirect_costs) == 5

    def test_set_time(self):
        cfg = roster.set_time(self.cfg, 1, 2, "30")
        assert cfg.time_allocation == {(1, 2): 30.0}
        assert self.cfg.time_allocation == {}

    def test_set_time_invalid(self):
        cfg = roster.set_time(self.cfg, 1, 2, "half an hour")
        assert cfg.time_allocation[(1, 2)] == 0.0

    def test_prune_time_allocation(self):
        cfg = roster.set_time(self.cfg, 1, 1, 10)
        cfg = roster.set_time(cfg, 2, 5, 10)
        cfg.actors = roster.remove_actor(cfg.actors, 2)
        pruned = roster.prune_time_allocation(cfg)
        assert pruned.time_allocation == {(1, 1): 10.0}
        assert (2, 5) in cfg.time_allocation

    def test_setters_do_not_share_containers(self):
        """Writing into a derived config never leaks back into its source."""
        derived = roster.set_calendar(self.cfg, "hours_per_day", 8)
        derived.indirect_costs["rent"] = 0.0
        derived.time_allocation[(1, 1)] = 5.0
        derived.actors.append(Actor(9, "Extra", 1.0))
        assert self.cfg.indirect_costs["rent"] == 95000.0
        assert self.cfg.time_allocation == {}
        assert len(self.cfg.actors) == 2


class TestRemovalWithAllocation:
    def setup_method(self):
        cfg = roster.set_time(starter_baseline(), 1, 1, 10)
        self.cfg = roster.set_time(cfg, 2, 3, 60)

    def test_remove_actor_drops_its_cells(self):
        cfg = roster.remove_actor_from(self.cfg, 2)
        assert [a.id for a in cfg.actors] == [1]
        assert cfg.time_allocation == {(1, 1): 10.0}
        assert (2, 3) in self.cfg.time_allocation

    def test_reused_actor_id_starts_empty(self):
        """An actor added after a removal must not inherit the old actor's minutes."""
        cfg = roster.remove_actor_from(self.cfg, 2)
        cfg = roster.add_actor_to(cfg)
        assert cfg.actors[-1].id == 2
        result = run_model(cfg)
        assert result.cost_by_actor[2] == 0.0
        assert result.cost_by_stage[3] == 0.0

    def test_reused_stage_id_starts_empty(self):
        cfg = roster.set_time(self.cfg, 1, 5, 45)
        cfg = roster.remove_stage_from(cfg, 5)
        cfg = roster.add_stage_to(cfg)
        assert cfg.stages[-1].id == 5
        assert run_model(cfg).cost_by_stage[5] == 0.0

    def test_remove_last_keeps_cells(self):
        cfg = roster.remove_actor_from(self.cfg, 1)
        cfg = roster.remove_actor_from(cfg, 2)
        assert [a.id for a in cfg.actors] == [2]
        assert cfg.time_allocation == {(2, 3): 60.0}
