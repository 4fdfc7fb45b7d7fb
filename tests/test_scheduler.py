import pytest

from merchant_taxonomy.taxonomy.graph import build_graph
from merchant_taxonomy.taxonomy.records import split_levels
from merchant_taxonomy.taxonomy.scheduler import schedule_levels
from merchant_taxonomy.taxonomy.schema import RawRecord


def _graph(n_leaves=7):
    return build_graph(
        split_levels(RawRecord("Goods", "Brand", f"Item {i}")) for i in range(n_leaves)
    )


def test_levels_ascending_and_complete():
    g = _graph()
    plans = schedule_levels(g, batch_size=3)
    assert [p.level for p in plans] == [0, 1, 2]
    assert [p.total for p in plans] == [1, 1, 7]
    assert [len(b) for b in plans[2].batches] == [3, 3, 1]


def test_batch_size_does_not_change_contents():
    g = _graph()
    flat = lambda plans: [[n.node_key for b in p.batches for n in b] for p in plans]
    assert flat(schedule_levels(g, 1)) == flat(schedule_levels(g, 500))


def test_every_batch_holds_one_level():
    g = _graph()
    for plan in schedule_levels(g, 2):
        for batch in plan.batches:
            assert {n.level for n in batch} == {plan.level}


def test_empty_graph_schedules_nothing():
    assert schedule_levels(build_graph([])) == []


def test_invalid_batch_size():
    with pytest.raises(ValueError):
        schedule_levels(_graph(), 0)
