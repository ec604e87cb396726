"""Run state tracking shared by seed and reset runs."""
import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    PREFLIGHT = "preflight"
    PROVISIONING = "provisioning"
    STAGE = "stage"
    TEARDOWN = "teardown"
    DONE = "done"
    FAILED = "failed"


# Allowed transitions; FAILED is reachable from every non-terminal state
_TRANSITIONS = {
    RunState.IDLE: {RunState.PREFLIGHT},
    RunState.PREFLIGHT: {RunState.PROVISIONING, RunState.TEARDOWN},
    RunState.PROVISIONING: {RunState.STAGE},
    RunState.STAGE: {RunState.STAGE, RunState.DONE},
    RunState.TEARDOWN: {RunState.TEARDOWN, RunState.DONE},
    RunState.DONE: set(),
    RunState.FAILED: set(),
}


class DemoRun:
    """One seed or reset run. Single use: retries are fresh runs."""

    def __init__(self, kind: str):
        self.kind = kind
        self.state = RunState.IDLE
        self.step: Optional[str] = None
        self.error: Optional[BaseException] = None

    def advance(self, state: RunState, step: Optional[str] = None):
        allowed = _TRANSITIONS[self.state]
        if state not in allowed:
            raise RuntimeError(f"{self.kind} run cannot move from {self.state.value} to {state.value}")
        self.state = state
        self.step = step
        logger.info(f"[{self.kind}] {state.value}{f': {step}' if step else ''}")

    def fail(self, error: BaseException):
        if self.state in (RunState.DONE, RunState.FAILED):
            raise RuntimeError(f"{self.kind} run already finished ({self.state.value})")
        self.state = RunState.FAILED
        self.error = error
        logger.error(f"[{self.kind}] failed during {self.step or 'setup'}: {error}")

    @property
    def finished(self) -> bool:
        return self.state in (RunState.DONE, RunState.FAILED)
