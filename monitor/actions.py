"""Serialization of user-triggered connect/disconnect actions.

Each target is Idle or Pending. A request for a target that is already
Pending is rejected with AlreadyPendingError rather than queued, because
nmcli has no safe way to cancel an activation mid-flight. Completion,
success or failure, always returns the target to Idle.

The queue never reports a state change itself: a successful command is
confirmed only when the next poll observes it.
"""

import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Union

from config import AlreadyPendingError, BridgeError, get_logger
from monitor.command_bridge import CommandBridge, CommandSpec, RawOutput

logger = get_logger(__name__)


class ActionKind(Enum):
    """Mutating action types."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"


@dataclass(frozen=True)
class PendingAction:
    """An action in flight for one target."""

    kind: ActionKind
    target: str
    issued_at: float


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a completed action."""

    action: PendingAction
    output: Optional[RawOutput] = None
    error: Optional[BridgeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


CompletionCallback = Callable[[ActionResult], None]
CommandPlan = Union[CommandSpec, Sequence[CommandSpec]]


class ActionQueue:
    """Tracks at most one pending mutating action per target.

    Attributes:
        on_complete: Called with an ActionResult once the target is Idle again.
    """

    def __init__(
        self,
        bridge: CommandBridge,
        on_complete: Optional[CompletionCallback] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._bridge = bridge
        self.on_complete = on_complete
        self._clock = clock
        self._pending: Dict[str, PendingAction] = {}
        self._lock = threading.Lock()

    def request(self, kind: ActionKind, target: str, plan: CommandPlan) -> "Future[RawOutput]":
        """Start an action for a target.

        Args:
            kind: Connect or disconnect.
            target: Entity key.
            plan: The mutating command, or commands to run in order.

        Returns:
            The bridge future for the command.

        Raises:
            AlreadyPendingError: An action is already in flight for the target.
        """
        with self._lock:
            existing = self._pending.get(target)
            if existing is not None:
                logger.info(f"Rejected {kind.value} for {target}: {existing.kind.value} pending")
                raise AlreadyPendingError(target, existing.kind.value)
            action = PendingAction(kind=kind, target=target, issued_at=self._clock())
            self._pending[target] = action

        specs = (plan,) if isinstance(plan, CommandSpec) else tuple(plan)
        logger.info(f"{kind.value} requested for {target}")
        try:
            if len(specs) == 1:
                future = self._bridge.submit(specs[0])
            else:
                future = self._bridge.submit_all(specs)
        except Exception:
            with self._lock:
                self._pending.pop(target, None)
            raise

        future.add_done_callback(lambda f: self._complete(action, f))
        return future

    def _complete(self, action: PendingAction, future: Future) -> None:
        error = None
        output = None
        if future.cancelled():
            error = BridgeError("Action cancelled")
        else:
            exc = future.exception()
            if exc is None:
                output = future.result()
            elif isinstance(exc, BridgeError):
                error = exc
            else:
                error = BridgeError(f"Unexpected error: {exc}")

        with self._lock:
            if self._pending.get(action.target) is action:
                del self._pending[action.target]

        if error is None:
            logger.info(f"{action.kind.value} for {action.target} completed")
        else:
            logger.warning(f"{action.kind.value} for {action.target} failed: {error}")

        if self.on_complete:
            try:
                self.on_complete(ActionResult(action=action, output=output, error=error))
            except Exception as e:
                logger.error(f"Error in action completion handler: {e}", exc_info=True)

    def is_pending(self, target: str) -> bool:
        with self._lock:
            return target in self._pending

    def get(self, target: str) -> Optional[PendingAction]:
        with self._lock:
            return self._pending.get(target)

    def pending(self) -> Dict[str, PendingAction]:
        """Copy of the pending actions, keyed by target."""
        with self._lock:
            return dict(self._pending)


__all__ = ["ActionKind", "ActionQueue", "ActionResult", "CommandPlan", "PendingAction"]
