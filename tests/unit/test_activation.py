import pytest

from user_accounts.domain.activation import (
    INITIAL_STATE,
    ActivationCommand,
    ActivationState,
    apply_command,
    is_active,
    state_from_flag,
)


def test_initial_state_is_active() -> None:
    assert INITIAL_STATE is ActivationState.ACTIVE
    assert is_active(INITIAL_STATE) is True


@pytest.mark.parametrize("current", list(ActivationState))
def test_activate_reaches_active_from_any_state(current: ActivationState) -> None:
    assert apply_command(current, ActivationCommand.ACTIVATE) is ActivationState.ACTIVE


@pytest.mark.parametrize("current", list(ActivationState))
def test_deactivate_reaches_inactive_from_any_state(current: ActivationState) -> None:
    assert apply_command(current, ActivationCommand.DEACTIVATE) is ActivationState.INACTIVE


def test_flag_mapping_is_symmetric() -> None:
    assert state_from_flag(True) is ActivationState.ACTIVE
    assert state_from_flag(False) is ActivationState.INACTIVE
    assert is_active(state_from_flag(False)) is False


@pytest.mark.parametrize("command", list(ActivationCommand))
def test_repeating_a_command_leaves_state_unchanged(command: ActivationCommand) -> None:
    once = apply_command(INITIAL_STATE, command)
    assert apply_command(once, command) is once
