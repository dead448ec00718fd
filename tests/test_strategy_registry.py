# tests/test_strategy_registry.py
import pytest

from fundgrid.core.errors import StateConflictError, ValidationError


def test_new_strategy_supersedes_previous(registry):
    first = registry.add("161725", 5, 5, 5)
    other = registry.add("000001", 3, 4, 10)
    second = registry.add("161725", 4, 6, 8)

    assert first.is_active is False
    assert second.is_active is True
    assert other.is_active is True
    assert registry.active_for("161725") is second
    # 旧策略参数保持不变
    assert (first.buy_width_percent, first.sell_width_percent, first.grid_count) == (5, 5, 5)
    assert [s.id for s in registry.history_for("161725")] == [second.id, first.id]
    assert registry.fund_ids() == ["161725", "000001"]


@pytest.mark.parametrize("args", [
    ("", 5, 5, 5),
    ("161725", 5, -1, 5),
    ("161725", 5, 5, 0),
    ("161725", 5, 5, 1.5),
    ("161725", 5, 5, float("nan")),
    ("161725", 5, 5, float("inf")),
    ("161725", 5, 5, True),
    ("161725", 5, 5, "5"),
    ("161725", float("nan"), 5, 5),
    ("161725", 0, 5, 5),
])
def test_add_rejects_invalid_parameters(registry, state, persister, args):
    with pytest.raises(ValidationError):
        registry.add(*args)
    assert state.strategies == []
    assert persister.calls == 0


def test_activate_historic_strategy(registry):
    first = registry.add("161725", 5, 5, 5)
    second = registry.add("161725", 4, 6, 8)
    registry.activate(first.id)
    assert registry.active_for("161725") is first
    assert second.is_active is False

    with pytest.raises(StateConflictError):
        registry.activate("missing")


def test_delete(registry, state, persister):
    strategy = registry.add("161725", 5, 5, 5)
    calls = persister.calls
    assert registry.delete("missing") is False
    assert persister.calls == calls
    assert registry.delete(strategy.id) is True
    assert state.strategies == []
    assert registry.active_for("161725") is None


def test_integral_float_grid_count_accepted(registry):
    strategy = registry.add("161725", 5, 5, 6.0)
    assert strategy.grid_count == 6
    assert isinstance(strategy.grid_count, int)
