"""Orchestration layer - deposit state machine, cloning, messages and timeline."""

from pmc_deposit.orchestration.cloning import (
    clone_pmc_version,
    get_latest_draft_version,
    has_draft_version,
)
from pmc_deposit.orchestration.messages import create_message_record, update_message_status
from pmc_deposit.orchestration.state_machine import (
    confirm_pmc,
    record_processing_result,
    start_pmc_deposit,
    update_submission_metadata_and_status_if_changed,
)
from pmc_deposit.orchestration.timeline import get_activities_for_submission_version

__all__ = [
    "clone_pmc_version",
    "get_latest_draft_version",
    "has_draft_version",
    "create_message_record",
    "update_message_status",
    "confirm_pmc",
    "record_processing_result",
    "start_pmc_deposit",
    "update_submission_metadata_and_status_if_changed",
    "get_activities_for_submission_version",
]
