"""Tests for bosun/alarms/notifier.py."""

from __future__ import annotations

from bosun.alarms.notifier import LogNotifier


class TestLogNotifier:
    async def test_records_when_permitted(self) -> None:
        notifier = LogNotifier()
        assert await notifier.notify("Region Alert", "Entering region: Bay")
        assert list(notifier.sent) == [("Region Alert", "Entering region: Bay")]

    async def test_refuses_without_permission(self) -> None:
        notifier = LogNotifier(permitted=False)
        assert not notifier.permitted
        assert not await notifier.notify("Region Alert", "x")
        assert list(notifier.sent) == []

    async def test_history_is_bounded(self) -> None:
        notifier = LogNotifier(history=3)
        for i in range(5):
            await notifier.notify("Region Alert", f"n{i}")
        assert [body for _, body in notifier.sent] == ["n2", "n3", "n4"]
