import pytest

from merchant_taxonomy.errors import (
    BatchWriteError,
    IngestionCancelled,
    ParentResolutionError,
    StoreError,
)
from merchant_taxonomy.ingest.persister import BatchPersister
from merchant_taxonomy.store.base import TaxonomyStore
from merchant_taxonomy.taxonomy.graph import build_graph
from merchant_taxonomy.taxonomy.records import split_levels
from merchant_taxonomy.taxonomy.scheduler import LevelPlan, schedule_levels
from merchant_taxonomy.taxonomy.schema import RawRecord


class FakeStore(TaxonomyStore):
    """Records every batch; assigns sequential ids; can fail on a given call."""

    def __init__(self, fail_on_call=None, drop_ids=False):
        self.batches = []
        self.known_ids = set()
        self.fail_on_call = fail_on_call
        self.drop_ids = drop_ids
        self._next_id = 1

    def insert_nodes(self, rows):
        call = len(self.batches)
        self.batches.append(rows)
        if self.fail_on_call == call:
            raise StoreError("connection reset")
        out = []
        for r in rows:
            # parent must already exist, like a real foreign key
            assert r["parent_id"] is None or r["parent_id"] in self.known_ids
            node_id = self._next_id
            self._next_id += 1
            self.known_ids.add(node_id)
            out.append({"id": node_id, "lineage_key": r["lineage_key"]})
        if self.drop_ids:
            out = out[:-1]
        return out


ROWS = [
    ("Goods", "Brand", "Health & Beauty - Sexual Wellness - Prostate - Beads"),
    ("Goods", "Brand", "Health & Beauty - Sexual Wellness - Prostate - Rings"),
    ("Local", "Spa", "Massage - Deep Tissue"),
    ("Local", "Spa", "Massage - Swedish"),
]


@pytest.fixture
def graph():
    return build_graph(split_levels(RawRecord(*r)) for r in ROWS)


def test_persists_all_levels_in_order(graph):
    store = FakeStore()
    result = BatchPersister(store).persist(schedule_levels(graph, batch_size=2))

    assert result.inserted_total == len(graph)
    assert result.inserted_per_level == graph.level_counts()
    assert result.max_depth == 5
    assert set(result.id_map) == set(graph.nodes)

    levels_seen = [graph.nodes[_key_for(graph, r)].level for b in store.batches for r in b]
    assert levels_seen == sorted(levels_seen)


def _key_for(graph, row):
    return next(k for k, n in graph.nodes.items() if n.lineage_key == row["lineage_key"])


def test_parent_ids_resolved_from_earlier_levels(graph):
    store = FakeStore()
    result = BatchPersister(store).persist(schedule_levels(graph, batch_size=1))

    rows = {r["lineage_key"]: r for b in store.batches for r in b}
    for key, node in graph.nodes.items():
        row = rows[node.lineage_key]
        if node.parent_key is None:
            assert row["parent_id"] is None
        else:
            assert row["parent_id"] == result.id_map[node.parent_key]


def test_store_failure_stops_deeper_levels(graph):
    plans = schedule_levels(graph, batch_size=500)
    # calls: level 0 -> 0, level 1 -> 1, level 2 -> 2 (fails)
    store = FakeStore(fail_on_call=2)

    with pytest.raises(BatchWriteError) as exc:
        BatchPersister(store).persist(plans)

    assert exc.value.level == 2
    assert exc.value.batch_index == 0
    assert isinstance(exc.value.__cause__, StoreError)
    submitted_levels = {graph.nodes[_key_for(graph, r)].level for b in store.batches for r in b}
    assert submitted_levels == {0, 1, 2}


def test_failure_reports_batch_index(graph):
    plans = schedule_levels(graph, batch_size=1)
    # level 0 has two roots (Goods, Local): calls 0, 1; level 1: calls 2, 3
    store = FakeStore(fail_on_call=3)
    with pytest.raises(BatchWriteError) as exc:
        BatchPersister(store).persist(plans)
    assert (exc.value.level, exc.value.batch_index) == (1, 1)
    assert len(store.batches) == 4


def test_missing_parent_is_fatal_before_submission(graph):
    plans = schedule_levels(graph, batch_size=500)
    # drop level 1 so level 2 has no parent ids
    broken = [plans[0]] + plans[2:]
    store = FakeStore()
    with pytest.raises(ParentResolutionError) as exc:
        BatchPersister(store).persist(broken)
    assert exc.value.level == 2
    assert len(store.batches) == 1


def test_missing_returned_id_is_a_batch_failure(graph):
    store = FakeStore(drop_ids=True)
    with pytest.raises(BatchWriteError, match="no id"):
        BatchPersister(store).persist(schedule_levels(graph, batch_size=500))
    assert len(store.batches) == 1


def test_progress_callback_per_batch(graph):
    calls = []
    BatchPersister(FakeStore(), progress=lambda *a: calls.append(a)).persist(
        schedule_levels(graph, batch_size=1)
    )
    level2 = [c for c in calls if c[0] == 2]
    assert level2 == [(2, 1, 2), (2, 2, 2)]


def test_cancellation_between_levels(graph):
    store = FakeStore()
    state = {"polls": 0}

    def should_cancel():
        state["polls"] += 1
        return state["polls"] > 2

    with pytest.raises(IngestionCancelled) as exc:
        BatchPersister(store, should_cancel=should_cancel).persist(schedule_levels(graph))
    assert exc.value.next_level == 2
    assert len(store.batches) == 2


def test_empty_plan_list():
    result = BatchPersister(FakeStore()).persist([])
    assert result.inserted_total == 0
    assert result.max_depth == -1


def test_unsorted_plans_still_written_parents_first(graph):
    plans = list(reversed(schedule_levels(graph)))
    store = FakeStore()
    BatchPersister(store).persist(plans)
    assert len(store.batches) == len(plans)
    assert isinstance(plans[0], LevelPlan)
