"""Append-only activity trail."""

from pmc_deposit.kernel.events.activity_store import ActivityStore, StatusTimelineEntry

__all__ = ["ActivityStore", "StatusTimelineEntry"]
