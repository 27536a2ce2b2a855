"""Active/inactive state machine for user accounts."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class ActivationState(StrEnum):
    """Activation states a user account can be in."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class ActivationCommand(StrEnum):
    """Commands accepted by the activation state machine."""

    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


INITIAL_STATE: Final = ActivationState.ACTIVE

# Both commands are accepted from either state; repeating one is a no-op.
_TARGET_STATE: Final[dict[ActivationCommand, ActivationState]] = {
    ActivationCommand.ACTIVATE: ActivationState.ACTIVE,
    ActivationCommand.DEACTIVATE: ActivationState.INACTIVE,
}


def state_from_flag(active: bool) -> ActivationState:
    """Map the persisted boolean flag to an activation state."""

    return ActivationState.ACTIVE if active else ActivationState.INACTIVE


def apply_command(current: ActivationState, command: ActivationCommand) -> ActivationState:
    """Return the state reached by applying `command` to `current`.

    The target depends only on the command, so every command is accepted
    from either state and repeating it leaves the state unchanged.
    """

    del current
    return _TARGET_STATE[command]


def is_active(state: ActivationState) -> bool:
    """Map an activation state back to the persisted boolean flag."""

    return state is ActivationState.ACTIVE
