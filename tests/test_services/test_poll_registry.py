from callsync.services.poll_registry import PollSession, PollSessionRegistry


def _session(pid="ext-1", **kwargs) -> PollSession:
    return PollSession(provider_call_id=pid, call_id="call-1", organization_id="org-1", **kwargs)


def test_add_rejects_duplicate_provider_id():
    registry = PollSessionRegistry()

    assert registry.add(_session()) is True
    assert registry.add(_session()) is False
    assert len(registry) == 1


def test_remove_returns_session_once():
    registry = PollSessionRegistry()
    session = _session()
    registry.add(session)

    assert registry.remove("ext-1") is session
    assert registry.remove("ext-1") is None
    assert "ext-1" not in registry


def test_stats_lists_active_sessions():
    registry = PollSessionRegistry()
    registry.add(_session("ext-1", attempts=3, started_at=100.0))
    registry.add(_session("ext-2"))

    stats = registry.stats()

    assert stats.active_polls == 2
    by_id = {p.provider_call_id: p for p in stats.polls}
    assert by_id["ext-1"].attempts == 3
    assert by_id["ext-1"].call_id == "call-1"
    assert by_id["ext-2"].elapsed_seconds >= 0


def test_elapsed_seconds():
    session = _session(started_at=10.0)

    assert session.elapsed_seconds(now=25.5) == 15
