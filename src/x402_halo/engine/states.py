"""
Recovery state machine.

Each failed call that is classified as payment-required gets its own
``RecoverySession``. The session only moves forward; any step failure jumps
straight to ``FAILED`` and nothing is rolled back because nothing was
persisted.

    IDLE -> INTERCEPTED -> {AUTO_APPROVE | CONSULT} -> SIGNED -> RETRIED -> {DONE | FAILED}
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from .exceptions import InvalidTransition

logger = logging.getLogger(__name__)


class RecoveryState(str, Enum):
    IDLE = "idle"
    INTERCEPTED = "intercepted"
    AUTO_APPROVE = "auto_approve"
    CONSULT = "consult"
    SIGNED = "signed"
    RETRIED = "retried"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES: FrozenSet[RecoveryState] = frozenset({RecoveryState.DONE, RecoveryState.FAILED})

_TRANSITIONS: Dict[RecoveryState, FrozenSet[RecoveryState]] = {
    RecoveryState.IDLE: frozenset({RecoveryState.INTERCEPTED}),
    RecoveryState.INTERCEPTED: frozenset({RecoveryState.AUTO_APPROVE, RecoveryState.CONSULT}),
    RecoveryState.AUTO_APPROVE: frozenset({RecoveryState.SIGNED}),
    RecoveryState.CONSULT: frozenset({RecoveryState.SIGNED}),
    RecoveryState.SIGNED: frozenset({RecoveryState.RETRIED}),
    RecoveryState.RETRIED: frozenset({RecoveryState.DONE}),
    RecoveryState.DONE: frozenset(),
    RecoveryState.FAILED: frozenset(),
}


class RecoverySession:
    """
    Tracks one recovery attempt through the state machine.

    ``FAILED`` is reachable from every non-terminal state. All other moves
    must follow the transition table; anything else raises
    ``InvalidTransition``.

    Attributes:
        state: Current state.
        history: Every state visited, in order, starting with ``IDLE``.
        error: The failure that moved the session to ``FAILED``, if any.
    """

    def __init__(self) -> None:
        self.state: RecoveryState = RecoveryState.IDLE
        self.history: List[RecoveryState] = [RecoveryState.IDLE]
        self.error: Optional[BaseException] = None

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: RecoveryState) -> None:
        if target is RecoveryState.FAILED:
            raise InvalidTransition(self.state, target)
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        logger.debug("Recovery %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def fail(self, error: BaseException) -> None:
        """Move to ``FAILED`` from any non-terminal state, recording ``error``."""
        if self.finished:
            raise InvalidTransition(self.state, RecoveryState.FAILED)
        logger.debug("Recovery %s -> failed (%s)", self.state.value, type(error).__name__)
        self.state = RecoveryState.FAILED
        self.history.append(RecoveryState.FAILED)
        self.error = error

    def __repr__(self) -> str:
        return f"RecoverySession(state={self.state.value}, steps={len(self.history)})"
