import asyncio

from data_models import Severity
from notifications import NotificationManager


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_push_keeps_insertion_order_without_dedup():
    manager = NotificationManager()

    first = manager.push(Severity.INFO, "Saved")
    second = manager.push(Severity.INFO, "Saved")
    third = manager.push(Severity.ERROR, "Oops")

    assert [n.id for n in manager.active] == [first, second, third]
    assert len({first, second, third}) == 3
    assert [n.text for n in manager.active] == ["Saved", "Saved", "Oops"]


def test_dismiss_removes_only_that_notification():
    manager = NotificationManager()
    ids = [manager.push(Severity.SUCCESS, f"message {i}") for i in range(3)]

    assert manager.dismiss(ids[1]) is True
    assert manager.dismiss(ids[1]) is False
    assert [n.id for n in manager.active] == [ids[0], ids[2]]


def test_notifications_expire_after_timeout_without_event_loop():
    clock = FakeClock()
    manager = NotificationManager(timeout=5.0, clock=clock)
    early = manager.push(Severity.INFO, "early")
    clock.now += 3.0
    late = manager.push(Severity.INFO, "late")

    clock.now += 2.0
    assert [n.id for n in manager.active] == [late]
    assert manager.get(early) is None

    clock.now += 3.0
    assert manager.active == []


def test_event_loop_timer_removes_notification():
    async def scenario():
        manager = NotificationManager(timeout=0.05)
        kept = manager.push(Severity.INFO, "kept")
        dismissed = manager.push(Severity.INFO, "dismissed")
        manager.dismiss(dismissed)
        assert [n.id for n in manager.active] == [kept]
        await asyncio.sleep(0.1)
        return manager

    manager = asyncio.run(scenario())

    assert manager.active == []
    assert manager._items == []


def test_early_dismissal_does_not_shift_other_expiries():
    clock = FakeClock()
    manager = NotificationManager(timeout=5.0, clock=clock)
    first = manager.push(Severity.INFO, "first")
    clock.now += 1.0
    second = manager.push(Severity.INFO, "second")
    third = manager.push(Severity.INFO, "third")

    manager.dismiss(first)
    clock.now += 4.5

    assert [n.id for n in manager.active] == [second, third]


def test_push_logs_by_severity(caplog):
    manager = NotificationManager()

    with caplog.at_level("INFO", logger="notifications"):
        manager.push(Severity.ERROR, "Failed to optimize CV.")
        manager.push(Severity.SUCCESS, "CV optimized successfully!")

    levels = [(r.levelname, r.getMessage()) for r in caplog.records]
    assert levels == [("ERROR", "Failed to optimize CV."), ("INFO", "CV optimized successfully!")]


def test_clear_empties_collection():
    manager = NotificationManager()
    manager.push(Severity.INFO, "one")
    manager.clear()
    assert manager.active == []
