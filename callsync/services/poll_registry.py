from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from callsync.schemas.responses import PollInfo, PollingStats


@dataclass
class PollSession:
    provider_call_id: str
    call_id: str
    organization_id: str
    attempts: int = 0
    consecutive_errors: int = 0
    started_at: float = field(default_factory=time.monotonic)
    task: asyncio.Task | None = None
    # Serializes ticks of this session.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def elapsed_seconds(self, now: float | None = None) -> int:
        return int((now if now is not None else time.monotonic()) - self.started_at)


class PollSessionRegistry:
    """Active poll sessions keyed by provider call id.

    Owned by a single CallPoller; nothing else mutates it.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, PollSession] = {}

    def __contains__(self, provider_call_id: str) -> bool:
        return provider_call_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def add(self, session: PollSession) -> bool:
        if session.provider_call_id in self._sessions:
            return False
        self._sessions[session.provider_call_id] = session
        return True

    def get(self, provider_call_id: str) -> PollSession | None:
        return self._sessions.get(provider_call_id)

    def remove(self, provider_call_id: str) -> PollSession | None:
        return self._sessions.pop(provider_call_id, None)

    def sessions(self) -> list[PollSession]:
        return list(self._sessions.values())

    def stats(self) -> PollingStats:
        now = time.monotonic()
        return PollingStats(
            active_polls=len(self._sessions),
            polls=[
                PollInfo(
                    provider_call_id=s.provider_call_id,
                    attempts=s.attempts,
                    elapsed_seconds=s.elapsed_seconds(now),
                    call_id=s.call_id,
                )
                for s in self._sessions.values()
            ],
        )
