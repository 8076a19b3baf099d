from datetime import datetime, timezone

from callsync.mappers.status_normalizer import normalize_status, normalize_webhook_status
from callsync.schemas.bolna import CallDetails, CallStatusWebhook
from callsync.schemas.call import Call, CallStatus, CallUpdate, is_terminal


def _to_seconds(value: float | str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return round(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _newly_present(new, old) -> bool:
    return new is not None and new != "" and new != old


def build_poll_update(
    current: Call,
    details: CallDetails,
    now: datetime | None = None,
) -> CallUpdate | None:
    """Diff a polled vendor snapshot against the stored call.

    Returns None when nothing changed. Only fields the vendor reported are
    set, so the store keeps whatever it holds for the rest.
    """
    status = normalize_status(details.status) if details.status else current.status
    duration = _to_seconds(details.duration)

    changed = (
        status != current.status
        or _newly_present(details.transcript, current.transcription)
        or _newly_present(details.recording_url, current.recording_url)
        or _newly_present(duration, current.duration)
    )
    if not changed:
        return None

    update = CallUpdate()
    if details.status:
        update.status = status
    if duration is not None:
        update.duration = duration
    if details.transcript:
        update.transcription = details.transcript
    if details.recording_url:
        update.recording_url = details.recording_url
    if is_terminal(status):
        update.ended_at = now or datetime.now(timezone.utc)
    return update


def build_webhook_update(
    current: Call,
    payload: CallStatusWebhook,
    now: datetime | None = None,
) -> CallUpdate:
    """Merge a call-status webhook into a partial update.

    Duration only grows, transcript and recording only fill empty fields and
    ended_at is set once.
    """
    status = current.status
    is_voicemail = False
    if payload.status:
        status, is_voicemail = normalize_webhook_status(payload.status)

    duration = _to_seconds(payload.conversation_duration)
    if duration and duration > 0:
        status = CallStatus.completed.value

    update = CallUpdate(status=status)

    if duration and duration > 0 and (not current.duration or duration > current.duration):
        update.duration = duration

    if payload.transcript and not current.transcription:
        update.transcription = payload.transcript

    recording_url = (
        payload.telephony_data.recording_url if payload.telephony_data else None
    ) or payload.recording_url
    if recording_url and not current.recording_url:
        update.recording_url = recording_url

    if is_terminal(status) and current.ended_at is None:
        update.ended_at = now or datetime.now(timezone.utc)

    extra: dict = {}
    if payload.total_cost is not None:
        extra["total_cost"] = payload.total_cost
    if is_voicemail:
        extra["is_voicemail"] = True
        extra["original_status"] = payload.status
    if payload.call_details:
        extra["call_details"] = payload.call_details
    if payload.metadata:
        extra["bolna_metadata"] = payload.metadata
    if extra:
        update.metadata = {**(current.metadata or {}), **extra}

    return update
