import pytest

from game.event_manager import EventManager
from game.game_state import GameState


def test_starts_live_with_zero_score():
    state = GameState()

    assert state.get_state_dict() == {'score': 0, 'game_over': False, 'game_won': False}
    assert not state.is_terminal()


def test_add_points_notifies_listeners(events):
    state = GameState(events)

    assert state.add_points(4) == 4
    assert events.triggered[-1] == ('game_state_changed', ({'score': 4, 'game_over': False, 'game_won': False},))


def test_negative_points_rejected():
    with pytest.raises(ValueError):
        GameState().add_points(-2)


def test_terminal_flags_are_exclusive_and_sticky():
    state = GameState()
    state.mark_game_won()
    state.mark_game_over()

    assert state.game_won
    assert not state.game_over
    assert state.is_terminal()


def test_reset_clears_flags_and_score():
    state = GameState()
    state.add_points(10)
    state.mark_game_over()

    state.reset()

    assert state.get_state_dict() == {'score': 0, 'game_over': False, 'game_won': False}


def test_event_manager_runs_hooks_by_priority_and_survives_failures(caplog):
    manager = EventManager()
    calls = []

    def broken(value):
        raise RuntimeError("boom")

    manager.register_hook('tick', lambda value: calls.append(('low', value)), priority=0)
    manager.register_hook('tick', broken, priority=5)
    manager.register_hook('tick', lambda value: calls.append(('high', value)) or 'ok', priority=10)

    results = manager.trigger_event('tick', 1)

    assert calls == [('high', 1), ('low', 1)]
    assert results == ['ok', None, None]
    assert "Error in event callback for 'tick'" in caplog.text


def test_event_manager_unregister():
    manager = EventManager()
    hook = lambda: None
    manager.register_hook('tick', hook)

    assert manager.unregister_hook('tick', hook) is True
    assert manager.unregister_hook('tick', hook) is False
    assert manager.unregister_hook('missing', hook) is False
    assert manager.trigger_event("tick") == []
