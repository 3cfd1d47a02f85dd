"""Unit tests for deposit metadata validation."""

import copy

import pytest

from pmc_deposit.engines.validation import (
    GRANT_ID_REQUIRED,
    HHMI_RECIPIENT_REQUIRED,
    MANUSCRIPT_REQUIRED,
    validate_pmc_metadata,
)
from pmc_deposit.schemas.common import INVALID_TYPE


def messages(result):
    return [i.message for i in result.validation_errors or []]


def paths(result):
    return [i.dotted_path for i in result.validation_errors or []]


@pytest.fixture
def metadata(manuscript_files, complete_pmc) -> dict:
    return {"files": copy.deepcopy(manuscript_files), "pmc": copy.deepcopy(complete_pmc)}


class TestValidatePMCMetadata:
    """Tests for validate_pmc_metadata."""

    def test_complete_metadata_passes(self, metadata):
        result = validate_pmc_metadata(metadata)
        assert result.success
        assert result.validation_errors is None

    def test_missing_files_reports_one_manuscript_issue(self, metadata):
        """The generic structural files issue is dropped in favour of the manuscript rule."""
        del metadata["files"]
        result = validate_pmc_metadata(metadata)

        assert result.is_error
        files_issues = [i for i in result.validation_errors if i.dotted_path == "files"]
        assert len(files_issues) == 1
        assert files_issues[0].message == MANUSCRIPT_REQUIRED
        assert all(i.code != INVALID_TYPE for i in files_issues)

    def test_files_without_manuscript_slot(self, metadata):
        metadata["files"]["file-1"]["slot"] = "pmc/supplement"
        result = validate_pmc_metadata(metadata)
        assert messages(result) == [MANUSCRIPT_REQUIRED]

    def test_error_result_shape(self, metadata):
        del metadata["files"]
        result = validate_pmc_metadata(metadata)
        assert result.status_code == 422
        assert result.error.message == "Validation failed"
        assert result.error.details["name"] == "ValidationError"
        assert result.error.details["issues"][0]["message"] == MANUSCRIPT_REQUIRED

    def test_title_and_journal_required(self, metadata):
        metadata["pmc"]["title"] = "  "
        del metadata["pmc"]["journalName"]
        result = validate_pmc_metadata(metadata)
        assert "Title is required" in messages(result)
        assert "Journal name is required" in messages(result)

    def test_journal_name_length_limit(self, metadata):
        metadata["pmc"]["journalName"] = "J" * 256
        result = validate_pmc_metadata(metadata)
        assert "journalName" in paths(result)

    def test_must_certify(self, metadata):
        metadata["pmc"]["certifyManuscript"] = False
        result = validate_pmc_metadata(metadata)
        assert messages(result) == ["You must certify the manuscript before depositing"]

    def test_grants_without_hhmi(self, metadata):
        metadata["pmc"]["grants"] = [{"funderKey": "nih", "grantId": "5R01-456"}]
        result = validate_pmc_metadata(metadata)
        assert messages(result) == [HHMI_RECIPIENT_REQUIRED]
        assert paths(result) == ["grants"]

    def test_hhmi_without_grant_id_reported_once(self, metadata):
        metadata["pmc"]["grants"][0]["grantId"] = ""
        result = validate_pmc_metadata(metadata)
        assert messages(result) == ["HHMI grant must have a Grant ID"]

    def test_later_grant_message_names_funder_and_position(self, metadata):
        metadata["pmc"]["grants"][1]["grantId"] = "   "
        result = validate_pmc_metadata(metadata)
        assert messages(result) == ["Grant 2 - NIH Grant ID is required"]
        assert paths(result) == ["grants.1.grantId"]

    def test_unknown_funder_rejected(self, metadata):
        metadata["pmc"]["grants"][1]["funderKey"] = "acme"
        result = validate_pmc_metadata(metadata)
        assert paths(result) == ["grants.1.funderKey"]

    def test_designated_reviewer_needs_details(self, metadata):
        metadata["pmc"]["designateReviewer"] = True
        result = validate_pmc_metadata(metadata)
        assert messages(result) == [
            "Reviewer first name is required",
            "Reviewer last name is required",
            "Reviewer email is required",
        ]

    def test_reviewer_email_format(self, metadata):
        metadata["pmc"].update({
            "designateReviewer": True,
            "reviewerFirstName": "Grace",
            "reviewerLastName": "Hopper",
            "reviewerEmail": "not-an-email",
        })
        result = validate_pmc_metadata(metadata)
        assert messages(result) == ["Enter a valid reviewer email address"]

    def test_issue_order_files_then_pmc_then_rules(self, metadata):
        del metadata["files"]
        metadata["pmc"]["title"] = ""
        metadata["pmc"]["grants"] = [{"funderKey": "nih", "grantId": "1"}]
        result = validate_pmc_metadata(metadata)
        assert paths(result) == ["title", "files", "grants"]

    def test_empty_document(self):
        result = validate_pmc_metadata(None)
        assert result.is_error
        assert MANUSCRIPT_REQUIRED in messages(result)

    def test_generic_grant_message_constant(self):
        assert GRANT_ID_REQUIRED == "Grant ID is required"
