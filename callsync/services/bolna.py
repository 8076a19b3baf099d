import logging
from typing import Any

import httpx

from callsync.exceptions.custom import BolnaError, RateLimitError
from callsync.schemas.bolna import CallDetails, Execution, InitiateCallResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.bolna.ai"

# Tried in order; Bolna has served call data from all of these.
CALL_DETAIL_ENDPOINTS = [
    "/call/{call_id}",
    "/v2/call/{call_id}",
    "/agent/execution/{call_id}",
    "/calls/{call_id}",
]


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, "", []):
            return value
    return None


def _extract_transcript(data: dict) -> str | None:
    transcript = _first(data, "transcript", "transcription", "conversation_transcript")
    if isinstance(transcript, str):
        return transcript

    messages = data.get("messages")
    if isinstance(messages, list) and messages:
        return "\n".join(f"{m.get('role')}: {m.get('content')}" for m in messages)

    conversation = data.get("conversation")
    if isinstance(conversation, list) and conversation:
        return "\n".join(f"{c.get('speaker')}: {c.get('text')}" for c in conversation)
    return None


def _extract_duration(data: dict) -> float | None:
    raw = _first(data, "duration", "call_duration", "length", "conversation_duration")
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def parse_call_details(data: dict) -> CallDetails | None:
    """Pick call fields out of whichever shape the endpoint returned.

    Returns None when the payload has no status, transcript or recording.
    """
    telephony = data.get("telephony_data") or {}
    recording_url = _first(
        data, "recording_url", "recordingUrl", "recording", "audio_url", "call_recording"
    ) or telephony.get("recording_url")
    details = CallDetails(
        status=_first(data, "status", "call_status", "state"),
        duration=_extract_duration(data),
        transcript=_extract_transcript(data),
        recording_url=recording_url,
    )
    if not (details.status or details.transcript or details.recording_url):
        return None
    return details


class BolnaService:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _check(self, resp: httpx.Response) -> None:
        if resp.status_code == 429:
            raise RateLimitError("Bolna")
        if resp.status_code >= 400:
            raise BolnaError(resp.text, status_code=resp.status_code)

    async def _get(self, path: str, params: dict | None = None) -> httpx.Response:
        try:
            return await self._client.get(
                f"{self._base_url}{path}", params=params, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise BolnaError(f"{type(exc).__name__}: {exc}") from exc

    async def _post(self, path: str, payload: dict | None = None) -> httpx.Response:
        try:
            return await self._client.post(
                f"{self._base_url}{path}", json=payload, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise BolnaError(f"{type(exc).__name__}: {exc}") from exc

    async def get_call_details(self, call_id: str) -> CallDetails | None:
        """Fetch the current status snapshot of a call.

        A 404 or an empty payload moves on to the next endpoint; None means
        Bolna has nothing for this call yet.
        """
        for template in CALL_DETAIL_ENDPOINTS:
            path = template.format(call_id=call_id)
            resp = await self._get(path)
            if resp.status_code == 404:
                logger.debug("Bolna %s returned 404", path)
                continue
            self._check(resp)

            data = resp.json()
            if not isinstance(data, dict):
                continue
            details = parse_call_details(data)
            if details is not None:
                logger.debug("Bolna details for %s from %s", call_id, path)
                return details

        logger.info("No Bolna details yet for %s", call_id)
        return None

    async def initiate_call(
        self,
        agent_id: str,
        recipient_phone_number: str,
        from_phone_number: str | None = None,
        user_data: dict | None = None,
    ) -> InitiateCallResponse:
        payload: dict = {
            "agent_id": agent_id,
            "recipient_phone_number": recipient_phone_number,
        }
        if from_phone_number:
            payload["from_phone_number"] = from_phone_number
        if user_data:
            payload["user_data"] = user_data

        logger.info("Initiating Bolna call for agent %s to %s", agent_id, recipient_phone_number)
        resp = await self._post("/call", payload)
        self._check(resp)

        result = InitiateCallResponse(**resp.json())
        logger.info("Bolna call initiated: %s", result.provider_call_id)
        return result

    async def stop_call(self, execution_id: str) -> None:
        resp = await self._post(f"/call/{execution_id}/stop")
        self._check(resp)
        logger.info("Stopped Bolna call %s", execution_id)

    async def get_agent_executions(
        self, agent_id: str, page: int = 1, limit: int = 50
    ) -> list[Execution]:
        resp = await self._get(
            f"/agent/{agent_id}/executions", params={"page": page, "limit": limit}
        )
        self._check(resp)

        data = resp.json()
        raw = data if isinstance(data, list) else data.get("executions") or []
        return [Execution(**item) for item in raw]
