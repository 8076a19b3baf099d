"""Map vendor call-status vocabularies onto the internal CallStatus values.

Pure functions. Unknown tokens are returned unchanged so new vendor states
survive until a mapping is added.
"""

import re

from callsync.schemas.call import CallStatus

POLL_STATUS_MAP: dict[str, CallStatus] = {
    "answered": CallStatus.in_progress,
    "in-progress": CallStatus.in_progress,
    "in_progress": CallStatus.in_progress,
    "ongoing": CallStatus.in_progress,
    "ended": CallStatus.completed,
    "finished": CallStatus.completed,
    "completed": CallStatus.completed,
    "failed": CallStatus.failed,
    "error": CallStatus.failed,
    "ringing": CallStatus.ringing,
    "initiated": CallStatus.initiated,
    "queued": CallStatus.initiated,
    # Canonical values not covered above map to themselves.
    "cancelled": CallStatus.cancelled,
}

# Webhook statuses are compared with "_", "-" and whitespace removed.
WEBHOOK_STATUS_MAP: dict[str, CallStatus] = {
    "ringing": CallStatus.ringing,
    "calling": CallStatus.ringing,
    "connected": CallStatus.in_progress,
    "answered": CallStatus.in_progress,
    "inprogress": CallStatus.in_progress,
    "ongoing": CallStatus.in_progress,
    "active": CallStatus.in_progress,
    "live": CallStatus.in_progress,
    "calldisconnected": CallStatus.completed,
    "disconnected": CallStatus.completed,
    "ended": CallStatus.completed,
    "completed": CallStatus.completed,
    "hangup": CallStatus.completed,
    "failed": CallStatus.failed,
    "noanswer": CallStatus.failed,
    "notconnected": CallStatus.failed,
    "busy": CallStatus.failed,
    "declined": CallStatus.failed,
    "unreachable": CallStatus.failed,
    "error": CallStatus.failed,
    "timeout": CallStatus.failed,
    "cancelled": CallStatus.cancelled,
    "canceled": CallStatus.cancelled,
    "initiated": CallStatus.initiated,
    "queued": CallStatus.initiated,
}

VOICEMAIL_TOKENS = {"voicemail", "vm"}

_SEPARATORS = re.compile(r"[_\s-]")


def normalize_status(raw: str) -> str:
    """Normalize a status reported by the polling endpoint.

    "Answered" → "in_progress"
    "ENDED" → "completed"
    "weird-status" → "weird-status"
    """
    mapped = POLL_STATUS_MAP.get(raw.lower())
    return mapped.value if mapped is not None else raw


def normalize_webhook_status(raw: str) -> tuple[str, bool]:
    """Normalize a webhook status. Returns (status, is_voicemail).

    Voicemail counts as a completed call.
    """
    token = _SEPARATORS.sub("", raw.lower())
    if token in VOICEMAIL_TOKENS:
        return CallStatus.completed.value, True
    mapped = WEBHOOK_STATUS_MAP.get(token)
    return (mapped.value if mapped is not None else raw), False
