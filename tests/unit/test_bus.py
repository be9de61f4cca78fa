from __future__ import annotations

import logging

import pytest

from stickychain.core.bus import AuditTrailObserver, EventBus, Notification


def _n(topic: str) -> Notification:
    return Notification(topic=topic, actor_id="alice", data={})


def test_glob_subscriptions() -> None:
    bus = EventBus()
    cards, everything = AuditTrailObserver(), AuditTrailObserver()
    bus.subscribe("card.*", cards)
    bus.subscribe("*", everything)

    assert bus.publish(_n("card.created")) == 2
    assert bus.publish(_n("project.published")) == 1

    assert [n.topic for n in cards.notifications] == ["card.created"]
    assert [n.topic for n in everything.notifications] == ["card.created", "project.published"]


def test_unsubscribe() -> None:
    bus = EventBus()
    seen = AuditTrailObserver()
    unsubscribe = bus.subscribe("*", seen)
    unsubscribe()
    unsubscribe()
    assert bus.publish(_n("card.created")) == 0
    assert seen.notifications == []


def test_failing_subscriber_is_isolated(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus()
    seen = AuditTrailObserver()

    def boom(_: Notification) -> None:
        raise RuntimeError("subscriber bug")

    bus.subscribe("*", boom)
    bus.subscribe("*", seen)

    with caplog.at_level(logging.ERROR, logger="stickychain.core.bus"):
        assert bus.publish(_n("card.created")) == 1
    assert len(seen.notifications) == 1
    assert any(r.getMessage() == "subscriber_failed" for r in caplog.records)


def test_stats_counts_patterns() -> None:
    bus = EventBus()
    bus.subscribe("card.*", AuditTrailObserver())
    bus.subscribe("card.*", AuditTrailObserver())
    bus.subscribe("*", AuditTrailObserver())
    assert bus.stats() == {"card.*": 2, "*": 1}
