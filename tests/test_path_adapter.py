"""Tests for path adaptation."""

import pytest

from compass.config.settings import AdapterConfig
from compass.engine.path_adapter import AdaptStrategy, PathAdapter


@pytest.fixture
def path(catalog):
    by_id = {m.id: m for m in catalog}
    return [by_id[i] for i in ("sql-1", "viz-1", "sql-2", "py-1", "py-2")]


@pytest.fixture
def adapter():
    return PathAdapter()


def _ids(modules):
    return [m.id for m in modules]


def test_first_completion_keeps_module_in_front(adapter, path, make_user):
    user = make_user(path, completed=["sql-1"])
    adapted = adapter.adapt(path, ["sql-1"], user)
    assert adapted[0].id == "sql-1"
    assert sorted(_ids(adapted[1:])) == sorted(_ids(path[1:]))
    assert _ids(adapted) == ["sql-1", "viz-1", "py-1", "py-2", "sql-2"]


def test_idempotent_on_unchanged_completion(adapter, path, make_user):
    user = make_user(path, completed=["sql-1"])
    once = adapter.adapt(path, ["sql-1"], user)
    assert adapter.adapt(once, ["sql-1"], user) == once


def test_input_order_of_remaining_does_not_matter(adapter, path, make_user):
    user = make_user(path, completed=["sql-1"])
    assert adapter.adapt(list(reversed(path)), ["sql-1"], user) == adapter.adapt(path, ["sql-1"], user)


def test_completed_prefix_follows_completion_order(adapter, path, make_user):
    user = make_user(path, completed=["py-1", "sql-1"])
    adapted = adapter.adapt(path, ["py-1", "sql-1"], user)
    assert _ids(adapted[:2]) == ["py-1", "sql-1"]
    assert set(_ids(adapted[2:])) == {"viz-1", "sql-2", "py-2"}


def test_completed_ids_outside_path_are_ignored(adapter, path, make_user):
    user = make_user(path, completed=["elsewhere", "sql-1"])
    adapted = adapter.adapt(path, ["elsewhere", "sql-1"], user)
    assert len(adapted) == len(path)
    assert adapted[0].id == "sql-1"


def test_empty_path(adapter, make_user):
    assert adapter.adapt([], [], make_user([])) == []


def test_everything_completed(adapter, path, make_user):
    done = ["py-2", "py-1", "sql-2", "viz-1", "sql-1"]
    user = make_user(path, completed=done)
    assert _ids(adapter.adapt(path, done, user)) == done


def test_balanced_by_default(adapter, path, make_user):
    user = make_user(path, completed=["sql-1"])
    assert adapter.strategy_for(path, ["sql-1"], user) is AdaptStrategy.BALANCED


def test_finishing_hardest_module_explores_other_categories(adapter, catalog, make_user):
    by_id = {m.id: m for m in catalog}
    path = [by_id[i] for i in ("sql-1", "sql-2", "py-1", "py-2", "viz-1")]
    user = make_user(path, completed=["sql-2"])

    assert adapter.strategy_for(path, ["sql-2"], user) is AdaptStrategy.EXPLORE
    adapted = adapter.adapt(path, ["sql-2"], user)
    assert _ids(adapted) == ["sql-2", "viz-1", "py-1", "py-2", "sql-1"]


def test_stalled_learner_consolidates_on_easier_modules(adapter, catalog, make_user):
    by_id = {m.id: m for m in catalog}
    path = [by_id[i] for i in ("sql-2", "py-2", "sql-1", "py-1", "viz-1")]
    user = make_user(path, history_entries=4)

    assert adapter.strategy_for(path, [], user) is AdaptStrategy.CONSOLIDATE
    adapted = adapter.adapt(path, [], user)
    assert _ids(adapted) == ["sql-1", "viz-1", "py-1", "sql-2", "py-2"]
    tiers = [m.difficulty.tier for m in adapted]
    assert tiers == sorted(tiers)


def test_stall_threshold_is_configurable(catalog, make_user):
    adapter = PathAdapter(AdapterConfig(stall_min_adaptations=10))
    user = make_user(catalog[:2], history_entries=4)
    assert adapter.strategy_for(catalog[:2], [], user) is AdaptStrategy.BALANCED


def test_category_strength_blends_completion(adapter, path, make_user):
    user = make_user(path, completed=["sql-1"])
    strength = adapter.category_strength(path, ["sql-1"], user)
    assert strength["sql"] == pytest.approx(0.35)
    assert strength["python"] == pytest.approx(0.3)
    assert strength["viz"] == pytest.approx(0.2)
