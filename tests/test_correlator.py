from __future__ import annotations

from infobar_plugin.boost_ledger import BoostLedger
from infobar_plugin.correlator import EventCorrelator
from infobar_plugin.deferred_tasks import DeferredTaskQueue
from infobar_plugin.restore_cycle import RestoreCycleTracker
from infobar_plugin.skills import SkillLevelSource


def build(host, clock, debounce_ms: float = 100):
    scheduler = DeferredTaskQueue(clock)
    ledger = BoostLedger(RestoreCycleTracker(60_000))
    correlator = EventCorrelator(
        ledger,
        SkillLevelSource.from_host(host),
        scheduler,
        clock=clock,
        debounce_ms=debounce_ms,
    )
    return correlator, ledger, scheduler


def test_level_changes_apply_after_debounce(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 13, 10)
    host.set_level(16, 22, 20)

    correlator.on_consumed(501, [3, 16])
    correlator.on_level_changed(3, 13, True)
    correlator.on_level_changed(16, 22, True)

    assert len(ledger) == 0
    clock.advance(99)
    scheduler.run_due()
    assert len(ledger) == 0

    clock.advance(1)
    scheduler.run_due()
    assert ledger.get(3).magnitude == 3
    assert ledger.get(16).magnitude == 2
    assert ledger.get(16).source_item_id == 501
    assert correlator.queued_changes == ()


def test_failed_level_change_is_ignored(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 13, 10)
    correlator.on_consumed(501, [3])

    correlator.on_level_changed(3, 13, False)

    assert correlator.queued_changes == ()
    assert len(scheduler) == 0


def test_unmatched_skills_are_dropped(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 13, 10)
    host.set_level(7, 30, 29)

    correlator.on_level_changed(3, 13, True)
    clock.advance(100)
    scheduler.run_due()
    assert len(ledger) == 0

    correlator.on_consumed(501, [3])
    correlator.on_level_changed(7, 30, True)
    clock.advance(100)
    scheduler.run_due()
    assert len(ledger) == 0


def test_non_effect_item_clears_pending_slot(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 13, 10)
    correlator.on_consumed(501, [3])

    correlator.on_consumed(42, None)
    correlator.on_level_changed(3, 13, True)
    clock.advance(100)
    scheduler.run_due()

    assert correlator.pending_effect is None
    assert len(ledger) == 0


def test_newer_consumable_wins_the_pending_slot(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 13, 10)
    host.set_level(4, 8, 10)

    correlator.on_consumed(501, [3])
    correlator.on_level_changed(3, 13, True)
    correlator.on_consumed(777, [4])
    correlator.on_level_changed(4, 8, True)
    clock.advance(100)
    scheduler.run_due()

    # Skill 3's change was still queued when item 777 replaced the slot.
    assert 3 not in ledger
    assert ledger.get(4).magnitude == -2
    assert ledger.get(4).source_item_id == 777


def test_match_keeps_pending_slot_for_later_batches(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 13, 10)
    correlator.on_consumed(501, [3])
    correlator.on_level_changed(3, 13, True)
    clock.advance(100)
    scheduler.run_due()

    host.set_level(3, 14, 10)
    correlator.on_level_changed(3, 14, True)
    clock.advance(100)
    scheduler.run_due()

    assert correlator.pending_effect is not None
    assert ledger.get(3).magnitude == 4
    assert ledger.get(3).is_new_source is False


def test_zero_boost_or_missing_skill_installs_nothing(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 10, 10)
    correlator.on_consumed(501, [3, 5])

    correlator.on_level_changed(3, 10, True)
    correlator.on_level_changed(5, 12, True)
    clock.advance(100)
    scheduler.run_due()

    assert len(ledger) == 0


def test_single_flush_scheduled_per_batch(host, clock) -> None:
    correlator, _ledger, scheduler = build(host, clock)
    correlator.on_level_changed(3, 13, True)
    correlator.on_level_changed(4, 13, True)

    assert len(scheduler) == 1


def test_reset_drops_pending_state(host, clock) -> None:
    correlator, ledger, scheduler = build(host, clock)
    host.set_level(3, 13, 10)
    correlator.on_consumed(501, [3])
    correlator.on_level_changed(3, 13, True)

    correlator.reset()
    clock.advance(100)
    scheduler.run_due()

    assert correlator.pending_effect is None
    assert len(ledger) == 0
