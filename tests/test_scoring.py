"""Tests for the History Scorer."""

import pytest

from rotation_engine.models import Entity, HistoryEntry, Location, Placement, RecommendationConfig
from rotation_engine.scoring.history import ZERO_COST, Cost, HistoryScorer, select_window


def _entry(bucket: int, placements: dict) -> HistoryEntry:
    """History entry from {entity_id: location}; ids starting with 'r' are roles."""
    return HistoryEntry(
        id=str(bucket),
        entities=[
            {"id": i, "type": "role" if i.startswith("r") else "person", "location": loc}
            for i, loc in placements.items()
        ],
    )


def _three_person_history():
    return [
        _entry(999997, {}),
        _entry(999998, {"p1": "l1", "p2": "l2", "p3": "l1"}),
        _entry(999999, {"p1": "l1", "p2": "l1", "p3": "l2"}),
    ]


class TestSelectWindow:
    def test_orders_by_bucket_and_keeps_most_recent(self):
        config = RecommendationConfig(history_window=2)
        history = [_entry(3, {}), _entry(1, {}), _entry(2, {})]
        assert [e.id for e in select_window(history, config)] == ["2", "3"]

    def test_skips_non_numeric_ids(self):
        history = [HistoryEntry(id="current"), _entry(5, {})]
        assert [e.id for e in select_window(history, RecommendationConfig())] == ["5"]

    def test_current_bucket_keeps_only_recent_buckets(self):
        history = [_entry(b, {}) for b in range(5, 11)]
        window = select_window(history, RecommendationConfig(), current_bucket=10)
        assert [e.id for e in window] == ["8", "9", "10"]

    def test_missing_history(self):
        assert select_window(None, RecommendationConfig()) == []

    def test_coerces_raw_records(self):
        history = [
            {"id": "2", "entities": [{"id": "p1", "type": "person", "location": "l1"}]},
            {"id": 1},
            {"entities": []},
            42,
        ]
        window = select_window(history, RecommendationConfig())
        assert [e.id for e in window] == ["1", "2"]
        assert window[1].entities[0].location == "l1"


class TestHistoryScorer:
    def test_recent_pairs_cost_more(self):
        scorer = HistoryScorer(_three_person_history(), ["person"])
        assert scorer.recency("p1", "p3") == 2
        assert scorer.recency("p1", "p2") == 4
        assert scorer.recency("p2", "p3") == 0
        assert scorer.recency("p3", "p1") == scorer.recency("p1", "p3")

    def test_only_most_recent_co_location_counts(self):
        history = [
            _entry(1, {"p1": "l1", "p2": "l1"}),
            _entry(2, {"p1": "l1", "p2": "l2"}),
            _entry(3, {"p1": "l2", "p2": "l2"}),
        ]
        scorer = HistoryScorer(history, ["person"])
        assert scorer.last_together("p1", "p2") == 2
        assert scorer.recency("p1", "p2") == 4

    def test_unassigned_and_out_are_not_co_located(self):
        history = [
            _entry(1, {"p1": Location.UNASSIGNED, "p2": Location.UNASSIGNED}),
            _entry(2, {"p1": Location.OUT, "p2": Location.OUT}),
        ]
        scorer = HistoryScorer(history, ["person"])
        assert scorer.last_together("p1", "p2") is None

    def test_ignores_other_types(self):
        history = [_entry(1, {"p1": "l1", "r1": "l1"})]
        assert HistoryScorer(history, ["person"]).recency("p1", "r1") == 0
        assert HistoryScorer(history, ["person", "role"]).recency("p1", "r1") == 1

    def test_decay_base(self):
        scorer = HistoryScorer(
            _three_person_history(), ["person"], config=RecommendationConfig(decay_base=3)
        )
        assert scorer.recency("p1", "p2") == 9

    def test_window_limits_what_is_remembered(self):
        scorer = HistoryScorer(
            _three_person_history(), ["person"], config=RecommendationConfig(history_window=1)
        )
        assert scorer.recency("p1", "p3") == 0
        assert scorer.recency("p1", "p2") == 1

    def test_current_bucket_filter(self):
        scorer = HistoryScorer(_three_person_history(), ["person"], current_bucket=1000001)
        # Only 999999 is newer than 1000001 - 3
        assert scorer.recency("p1", "p3") == 0
        assert scorer.recency("p1", "p2") == 1

    def test_exclusion_outweighs_any_recency(self):
        scorer = HistoryScorer([], ["person"])
        picky = Entity(id="p1", type="person", affinities={"none": ["remote"]})
        remote = Entity(id="p2", type="person", tags=["remote"])
        assert scorer.pair_cost(picky, remote) == Cost(exclusions=1, recency=0)
        assert Cost(exclusions=1) > Cost(recency=10 ** 30)

    def test_cost_addition(self):
        assert Cost(1, 2) + Cost(3, 4) == Cost(4, 6)
        assert ZERO_COST + Cost(0, 5) == Cost(0, 5)

    def test_grouping_cost(self):
        scorer = HistoryScorer(_three_person_history(), ["person"])
        entities = {i: Entity(id=i, type="person") for i in ("p1", "p2", "p3")}
        grouping = [Placement(("p1", "p2"), "new-lane"), Placement(("p3",), "new-lane")]
        assert scorer.grouping_cost(grouping, entities) == Cost(recency=4)

    def test_matching_cost(self):
        history = [
            _entry(1, {"p1": "l1", "r1": "l1"}),
            _entry(2, {"p2": "l1", "r1": "l1"}),
        ]
        scorer = HistoryScorer(history, ["person", "role"])
        hosts = {"l1": [Entity(id="p1", type="person"), Entity(id="p2", type="person")]}
        entities = {"r1": Entity(id="r1", type="role")}
        assert scorer.matching_cost([Placement(("r1",), "l1")], hosts, entities) == Cost(recency=3)

    @pytest.mark.parametrize("ids", [["p1", "p1"], ["p1"]])
    def test_degenerate_groups_cost_nothing(self, ids):
        history = [_entry(1, {"p1": "l1"})]
        scorer = HistoryScorer(history, ["person"])
        entities = {"p1": Entity(id="p1", type="person")}
        assert scorer.grouping_cost([Placement(tuple(ids), "l1")], entities) == ZERO_COST
