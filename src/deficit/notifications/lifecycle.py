"""Broadcast campaign state machine.

DRAFT -> QUEUED -> PROCESSING -> {COMPLETED, FAILED}, with CANCELLED reachable
from QUEUED or PROCESSING. Every mutation goes through ``require_transition``;
a (status, action) pair missing from TRANSITIONS is rejected.
"""

from __future__ import annotations

import enum
from collections import deque
from datetime import datetime

from deficit.db.models import BroadcastCampaign, CampaignStatus
from deficit.errors import InvalidState


class Action(enum.StrEnum):
    EDIT = "edit"
    SEND = "send"
    START = "start"
    COMPLETE = "complete"
    FAIL = "fail"
    CANCEL = "cancel"
    DELETE = "delete"


S = CampaignStatus

# (status, action) -> resulting status; None means the campaign is removed.
TRANSITIONS: dict[tuple[CampaignStatus, Action], CampaignStatus | None] = {
    (S.DRAFT, Action.EDIT): S.DRAFT,
    (S.DRAFT, Action.SEND): S.QUEUED,
    (S.DRAFT, Action.DELETE): None,
    (S.QUEUED, Action.EDIT): S.QUEUED,
    (S.QUEUED, Action.SEND): S.QUEUED,
    (S.QUEUED, Action.START): S.PROCESSING,
    (S.QUEUED, Action.CANCEL): S.CANCELLED,
    (S.PROCESSING, Action.COMPLETE): S.COMPLETED,
    (S.PROCESSING, Action.FAIL): S.FAILED,
    (S.PROCESSING, Action.CANCEL): S.CANCELLED,
}

TERMINAL_STATES = frozenset({S.COMPLETED, S.CANCELLED, S.FAILED})

_INVALID_MESSAGES = {
    Action.EDIT: "Can only update draft or queued campaigns",
    Action.SEND: "Can only send draft or queued campaigns",
    Action.CANCEL: "Can only cancel queued or processing campaigns",
    Action.DELETE: "Can only delete draft campaigns",
}


def require_transition(status: str, action: Action) -> CampaignStatus | None:
    """Return the status ``action`` leads to from ``status``, or raise InvalidState."""
    key = (CampaignStatus(status), action)
    if key not in TRANSITIONS:
        raise InvalidState(_INVALID_MESSAGES.get(action, f"Cannot {action} a {status.lower()} campaign"))
    return TRANSITIONS[key]


def is_reachable(current: str, target: str) -> bool:
    """True if ``target`` can be reached from ``current`` through zero or more transitions."""
    start, goal = CampaignStatus(current), CampaignStatus(target)
    seen = {start}
    queue = deque([start])
    while queue:
        state = queue.popleft()
        if state == goal:
            return True
        for (src, _action), dst in TRANSITIONS.items():
            if src == state and dst is not None and dst not in seen:
                seen.add(dst)
                queue.append(dst)
    return False


def initial_status(scheduled_for: datetime | None) -> CampaignStatus:
    """New campaigns start QUEUED when scheduled, DRAFT otherwise."""
    return S.QUEUED if scheduled_for is not None else S.DRAFT


def move_to(campaign: BroadcastCampaign, status: CampaignStatus, now: datetime) -> None:
    """Set ``campaign.status`` and stamp ``started_at`` / ``completed_at`` on entry."""
    if status in (S.PROCESSING, S.COMPLETED, S.FAILED) and campaign.started_at is None:
        campaign.started_at = now
    if status in TERMINAL_STATES and campaign.completed_at is None:
        campaign.completed_at = now
    campaign.status = status


def reported_status(payload: object) -> CampaignStatus | None:
    """Pull a campaign status out of a backend response (``status`` or ``campaign.status``)."""
    if not isinstance(payload, dict):
        return None
    raw = payload.get("status")
    if raw is None and isinstance(payload.get("campaign"), dict):
        raw = payload["campaign"].get("status")
    if not isinstance(raw, str):
        return None
    try:
        return CampaignStatus(raw.upper())
    except ValueError:
        return None
