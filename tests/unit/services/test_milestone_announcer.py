from rich.console import Console

from funding_stages.adapters.messaging.event_bus import InMemoryEventBus
from funding_stages.domain.events import FundraisingCompleted, StageCompleted, StageSelected
from funding_stages.services.announcements import MilestoneAnnouncer


def _announcer() -> tuple[InMemoryEventBus, MilestoneAnnouncer, Console]:
    bus = InMemoryEventBus()
    console = Console(record=True, width=120, color_system=None)
    return bus, MilestoneAnnouncer(bus, console), console


async def test_stage_completion_is_announced():
    bus, announcer, console = _announcer()
    announcer.start()

    await bus.publish(
        StageCompleted(owner_id="acme", stage_id="seed", completed_on="2024-05-01", next_stage_id="series-a")
    )

    text = console.export_text()
    assert "Milestone: acme completed seed on 2024-05-01, now raising series-a" in text


async def test_fundraising_completion_is_announced_through_running_bus():
    bus, announcer, console = _announcer()
    announcer.start()
    await bus.start()

    await bus.publish(FundraisingCompleted(owner_id="acme", last_stage_id="series-a"))
    await bus.stop()

    assert "Fundraising complete for acme" in console.export_text()


async def test_other_events_and_stopped_announcer_stay_quiet():
    bus, announcer, console = _announcer()
    announcer.start()
    announcer.start()
    assert bus.subscriber_count(StageCompleted) == 1

    await bus.publish(StageSelected(owner_id="acme", stage_id="seed"))
    announcer.stop()
    await bus.publish(StageCompleted(owner_id="acme", stage_id="seed", completed_on="2024-05-01"))

    assert console.export_text() == ""
    assert bus.subscriber_count(StageCompleted) == 0
