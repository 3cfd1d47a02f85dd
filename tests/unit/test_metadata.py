"""Unit tests for metadata documents: merge patch, display fields and helpers."""

import uuid

from pmc_deposit.orchestration.cloning import cloned_metadata
from pmc_deposit.orchestration.formatting import (
    confirmed_display_fields,
    describe_deposit,
    format_authors,
)
from pmc_deposit.orchestration.messages import inbound_email_results
from pmc_deposit.orchestration.state_machine import (
    append_processing_message,
    initial_pmc_section,
    overall_processing_status,
)
from pmc_deposit.schemas.metadata import (
    PMC_MERGE_STRATEGIES,
    MergeStrategy,
    PMCMetadataSection,
    ProcessingResult,
    apply_pmc_patch,
)


class TestApplyPmcPatch:
    """Tests for the per-field merge strategies."""

    def test_strategies_follow_field_types(self):
        assert PMC_MERGE_STRATEGIES["title"] is MergeStrategy.REPLACE
        assert PMC_MERGE_STRATEGIES["grants"] is MergeStrategy.FULL_REPLACE
        assert PMC_MERGE_STRATEGIES["doiAuthors"] is MergeStrategy.FULL_REPLACE
        assert PMC_MERGE_STRATEGIES["certifyManuscript"] is MergeStrategy.REPLACE

    def test_scalar_replaced(self):
        assert apply_pmc_patch({"title": "Old"}, {"title": "New"}) == {"title": "New"}

    def test_array_fully_replaced(self):
        pmc = {"grants": [{"id": "a"}, {"id": "b"}]}
        assert apply_pmc_patch(pmc, {"grants": [{"id": "c"}]}) == {"grants": [{"id": "c"}]}

    def test_unknown_object_merged_one_level(self):
        pmc = {"extension": {"a": 1, "b": {"x": 1}}}
        patched = apply_pmc_patch(pmc, {"extension": {"b": {"y": 2}, "c": 3}})
        assert patched == {"extension": {"a": 1, "b": {"y": 2}, "c": 3}}

    def test_none_clears_key(self):
        assert apply_pmc_patch({"title": "T", "issn": "1"}, {"issn": None}) == {"title": "T"}

    def test_source_not_mutated(self):
        pmc = {"title": "T"}
        apply_pmc_patch(pmc, {"title": "U"})
        assert pmc == {"title": "T"}

    def test_section_model_keeps_unknown_keys(self):
        section = PMCMetadataSection.model_validate({"journalName": "Cell", "customFlag": True})
        assert section.journal_name == "Cell"
        assert section.to_document() == {"journalName": "Cell", "customFlag": True}


class TestDisplayFields:
    """Tests for the fields set on confirmation."""

    def test_description_with_funders_and_reviewer(self, complete_pmc):
        complete_pmc.update({"reviewerFirstName": "Grace", "reviewerLastName": "Hopper"})
        assert describe_deposit(complete_pmc) == (
            'A PMC deposit of an AAM from the journal: "Neuron", funded by HHMI, NIH. '
            "Nominated reviewer for the PMC Deposit is: Grace Hopper"
        )

    def test_description_without_funders(self):
        assert describe_deposit({"journalName": "Cell", "grants": []}) == (
            'A PMC deposit of an AAM from the journal: "Cell", funded by None specified'
        )

    def test_description_from_legacy_funders(self):
        assert describe_deposit({"journalName": "Cell", "funders": ["nih"]}).endswith("funded by NIH")

    def test_first_author_leads(self, complete_pmc):
        assert format_authors(complete_pmc) == ["Ada Lovelace", "Grace Hopper"]

    def test_owner_fallback(self):
        assert format_authors({"ownerFirstName": "Ada", "ownerLastName": "Lovelace"}) == ["Ada Lovelace"]
        assert format_authors({}) == []

    def test_confirmed_display_fields(self, complete_pmc):
        fields = confirmed_display_fields(complete_pmc)
        assert fields["title"] == complete_pmc["title"]
        assert fields["date"] == "2024-01-15"
        assert fields["doi"] == complete_pmc["doiUrl"]


class TestProcessingMessages:
    """Tests for submission-version processing history."""

    def test_append_records_message(self):
        wv_id = uuid.uuid4()
        metadata = append_processing_message(
            {"pmc": {}},
            work_version_id=wv_id,
            result=ProcessingResult(status="success", message="Received", manuscript_id="NIHMS123"),
            message_id="m-1",
            from_status="PENDING",
            to_status="SUBMITTED",
            processor="pmc-email",
        )
        processing = metadata["pmc"]["emailProcessing"]
        assert processing["messageId"] == "m-1"
        assert processing["packageId"] == str(wv_id)
        assert processing["status"] == "ok"
        assert processing["manuscriptId"] == "NIHMS123"
        assert processing["messages"][0]["type"] == "info"
        assert processing["messages"][0]["toStatus"] == "SUBMITTED"

    def test_manuscript_id_omitted_when_absent(self):
        metadata = append_processing_message(
            {"pmc": {"journalName": "Cell"}},
            work_version_id=uuid.uuid4(),
            result=ProcessingResult(status="error", message="Files missing"),
            message_id="m-2",
            from_status="PENDING",
            to_status="REQUEST_FOR_FILES",
            processor="pmc-email",
        )
        assert metadata["pmc"]["journalName"] == "Cell"
        processing = metadata["pmc"]["emailProcessing"]
        assert "manuscriptId" not in processing
        assert processing["status"] == "error"
        assert set(processing) == {"messageId", "lastProcessedAt", "packageId", "status", "messages"}

    def test_messages_sorted_by_timestamp(self):
        existing = {
            "pmc": {"emailProcessing": {"messages": [
                {"type": "warning", "timestamp": "2030-01-01T00:00:00+00:00", "toStatus": "B"},
                {"type": "info", "timestamp": "2020-01-01T00:00:00+00:00", "toStatus": "A"},
            ]}},
        }
        metadata = append_processing_message(
            existing,
            work_version_id=uuid.uuid4(),
            result=ProcessingResult(status="success"),
            message_id="m-3",
            from_status="A",
            to_status="C",
            processor="p",
        )
        messages = metadata["pmc"]["emailProcessing"]["messages"]
        assert [m["toStatus"] for m in messages] == ["A", "C", "B"]
        assert metadata["pmc"]["emailProcessing"]["status"] == "warning"

    def test_overall_status_is_worst(self):
        assert overall_processing_status([]) == "ok"
        assert overall_processing_status([{"type": "info"}, {"type": "warning"}]) == "warning"
        assert overall_processing_status([{"type": "warning"}, {"type": "error"}]) == "error"


class TestSeedAndCloneMetadata:

    def test_initial_section_splits_owner_name(self):
        assert initial_pmc_section("Ada King Lovelace") == {
            "grants": [],
            "ownerFirstName": "Ada",
            "ownerLastName": "King Lovelace",
        }
        assert initial_pmc_section(None) == {"grants": []}

    def test_cloned_metadata_resets_flags(self):
        source = {"files": {"f": {}}, "pmc": {"journalName": "Cell", "previewed": True, "confirmed": True}}
        cloned = cloned_metadata(source)
        assert cloned["pmc"] == {"journalName": "Cell", "previewed": False, "confirmed": False}
        assert cloned["files"] == {"f": {}}
        assert source["pmc"]["confirmed"] is True


class TestInboundEmailResults:

    def test_extracts_envelope_and_headers(self):
        results = inbound_email_results({
            "envelope": {"from": "noreply@ncbi.nlm.nih.gov", "to": ["pmc@example.org"]},
            "headers": {"subject": "NIHMS123 received", "date": "Mon, 1 Jan 2024 10:00:00 +0000"},
            "plain": "Your manuscript was received",
        })
        assert results["$schema"] == "inbound_email"
        assert results["from"] == "noreply@ncbi.nlm.nih.gov"
        assert results["to"] == "pmc@example.org"
        assert results["subject"] == "NIHMS123 received"
        assert results["receivedAt"] == "Mon, 1 Jan 2024 10:00:00 +0000"

    def test_defaults(self):
        results = inbound_email_results({})
        assert results["from"] == "unknown"
        assert results["subject"] == "no subject"
        assert "headers" not in results
