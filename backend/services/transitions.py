"""
Conversation lifecycle transition table.

Every state change goes through plan_transition(); callers decide what to
persist based on the returned Transition.
"""
from dataclasses import dataclass
from enum import Enum

from backend.errors import InvalidTransitionError
from backend.models.conversation import ConversationStatus


class ConversationAction(str, Enum):
    PAUSE = "pause"
    RESUME = "resume"
    END = "end"
    OUTREACH_INITIATED = "outreach_initiated"
    INBOUND_MESSAGE = "inbound_message"
    AUTOMATION_DISABLED = "automation_disabled"


@dataclass(frozen=True)
class Transition:
    current: ConversationStatus
    action: ConversationAction
    target: ConversationStatus

    @property
    def changed(self) -> bool:
        return self.current != self.target


@dataclass(frozen=True)
class _Reject:
    reason: str


S = ConversationStatus
A = ConversationAction

# (status, action) -> target status or rejection. Missing pairs are no-ops.
_TABLE = {
    (S.NOT_STARTED, A.PAUSE): _Reject("Cannot pause a conversation that hasn't started"),
    (S.NOT_STARTED, A.RESUME): _Reject(
        "Cannot resume a conversation that hasn't started. Use initiate-outreach instead."
    ),
    (S.NOT_STARTED, A.END): _Reject("Cannot end a conversation that hasn't started"),
    (S.NOT_STARTED, A.OUTREACH_INITIATED): S.ACTIVE,
    (S.ACTIVE, A.PAUSE): S.PAUSED,
    (S.ACTIVE, A.END): S.ENDED,
    (S.ACTIVE, A.AUTOMATION_DISABLED): S.PAUSED,
    (S.PAUSED, A.RESUME): S.ACTIVE,
    (S.PAUSED, A.END): S.ENDED,
    (S.PAUSED, A.OUTREACH_INITIATED): _Reject("Conversation is paused. Resume it instead."),
    (S.ENDED, A.PAUSE): _Reject("Cannot pause an ended conversation"),
    (S.ENDED, A.RESUME): _Reject(
        "Cannot resume an ended conversation. Use reset functionality to start a new conversation."
    ),
    (S.ENDED, A.OUTREACH_INITIATED): _Reject(
        "Conversation has ended. Use reset functionality to start a new conversation."
    ),
}

del S, A


def plan_transition(current: ConversationStatus, action: ConversationAction) -> Transition:
    """
    Resolve ``action`` against ``current``.

    Raises InvalidTransitionError for rejected moves. A Transition whose
    target equals ``current`` is a no-op.
    """
    current = ConversationStatus(current)
    outcome = _TABLE.get((current, action), current)
    if isinstance(outcome, _Reject):
        raise InvalidTransitionError(outcome.reason)
    return Transition(current=current, action=action, target=outcome)


def allowed_actions(current: ConversationStatus) -> list[str]:
    """Actions that would not be rejected from ``current``."""
    current = ConversationStatus(current)
    return [
        action.value
        for action in ConversationAction
        if not isinstance(_TABLE.get((current, action)), _Reject)
    ]
