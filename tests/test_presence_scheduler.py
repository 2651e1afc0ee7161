"""Tests for deferred, cancelable participant removal."""

import asyncio

import pytest

from common_ground.presence_scheduler import PresenceScheduler


class Recorder:
    """Collects the ids removal callbacks were called with."""

    def __init__(self):
        self.calls: list[str] = []

    async def __call__(self, user_id: str) -> None:
        self.calls.append(user_id)


class TestPresenceScheduler:
    """Tests for PresenceScheduler."""

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        recorder = Recorder()
        scheduler = PresenceScheduler(0.01)

        scheduler.schedule("a", recorder)
        assert scheduler.is_pending("a")
        await asyncio.sleep(0.05)

        assert recorder.calls == ["a"]
        assert not scheduler.is_pending("a")

    @pytest.mark.asyncio
    async def test_cancel_prevents_removal(self):
        recorder = Recorder()
        scheduler = PresenceScheduler(0.02)

        scheduler.schedule("a", recorder)
        assert scheduler.cancel("a") is True
        await asyncio.sleep(0.05)

        assert recorder.calls == []
        assert scheduler.pending_ids == []

    @pytest.mark.asyncio
    async def test_cancel_without_pending_returns_false(self):
        assert PresenceScheduler(0.01).cancel("ghost") is False

    @pytest.mark.asyncio
    async def test_reschedule_replaces_instead_of_stacking(self):
        recorder = Recorder()
        scheduler = PresenceScheduler(0.02)

        scheduler.schedule("a", recorder)
        scheduler.schedule("a", recorder)
        assert scheduler.pending_ids == ["a"]
        await asyncio.sleep(0.08)

        assert recorder.calls == ["a"]

    @pytest.mark.asyncio
    async def test_independent_participants(self):
        recorder = Recorder()
        scheduler = PresenceScheduler(0.01)

        scheduler.schedule("a", recorder)
        scheduler.schedule("b", recorder)
        scheduler.cancel("a")
        await asyncio.sleep(0.05)

        assert recorder.calls == ["b"]

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        recorder = Recorder()
        scheduler = PresenceScheduler(0.02)

        scheduler.schedule("a", recorder)
        scheduler.schedule("b", recorder)
        assert scheduler.cancel_all() == 2
        await asyncio.sleep(0.05)

        assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_failing_callback_is_logged_not_raised(self, caplog):
        async def boom(user_id: str) -> None:
            raise RuntimeError("storage exploded")

        scheduler = PresenceScheduler(0.0)
        scheduler.schedule("a", boom)
        await asyncio.sleep(0.02)

        assert "Deferred removal of a failed" in caplog.text
        assert not scheduler.is_pending("a")
