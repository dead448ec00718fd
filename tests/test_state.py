# tests/test_state.py
import pytest

from fundgrid.core.errors import ValidationError
from fundgrid.core.state import AppState


def test_toggle_star(state, persister):
    assert state.toggle_star("161725") is True
    assert state.toggle_star("000001") is True
    assert state.starred_fund_ids == ["161725", "000001"]
    assert state.toggle_star("161725") is False
    assert state.starred_fund_ids == ["000001"]
    assert state.is_starred("000001")
    assert persister.calls == 3

    with pytest.raises(ValidationError):
        state.toggle_star("")


def test_commit_without_persister_is_noop():
    state = AppState()
    state.toggle_star("161725")
    assert state.starred_fund_ids == ["161725"]
