"""
Unit tests for the merge engine and remote record mapping.
"""
import pytest

from recibofast.exceptions import MappingError
from recibofast.pipeline.merger import merge_remote_documents
from recibofast.remotes.mapping import (
    map_primary_record,
    map_records,
    map_secondary_record,
    overlay,
)
from recibofast.schemas import Document, DocumentStatus


def _local(doc_id, **kw):
    return Document(id=doc_id, payer_name="Local", amount=10, **kw)


# =====================================================================
# Mapping
# =====================================================================
class TestMapping:
    def test_primary_record(self):
        doc = map_primary_record(
            {
                "id": "p1",
                "owner_id": "u1",
                "numero": 42,
                "emitido_em": "2025-01-05T12:00:00Z",
                "signature_id": "sig-9",
                "issuer_name": "Clínica ABC",
                "issuer_document": "12.345.678/0001-90",
                "income_id": "inc-1",
                "created_at": "2025-01-04T10:00:00Z",
            }
        )
        assert doc.id == "p1"
        assert doc.sequence_label == "42"
        assert doc.issue_date == "2025-01-05"
        assert doc.signature_ref == "sig-9"
        assert doc.income_id == "inc-1"
        assert doc.issuer_override.name == "Clínica ABC"
        assert doc.issuer_override.signature_ref == "sig-9"
        assert doc.synced is True

    def test_neutral_defaults(self):
        doc = map_secondary_record({"id": "s1"})
        assert doc.payer_name == ""
        assert doc.amount == 0
        assert doc.status == DocumentStatus.ISSUED
        assert doc.contract_id is None

    def test_contract_and_signature_verbatim(self):
        doc = map_secondary_record(
            {"id": "s1", "numero": 7, "contract_id": "C-77", "signature_id": "sig/abc.png"}
        )
        assert doc.contract_id == "C-77"
        assert doc.signature_ref == "sig/abc.png"

    def test_issue_date_falls_back_to_created_at(self):
        doc = map_secondary_record({"id": "s1", "emitido_em": None, "created_at": "2024-12-31T23:00:00"})
        assert doc.issue_date == "2024-12-31"

    def test_impossible_remote_date_not_kept(self):
        doc = map_secondary_record({"id": "s1", "emitido_em": "2025-13-45", "created_at": "2025-01-03T10:00:00Z"})
        assert doc.issue_date == "2025-01-03"
        assert map_secondary_record({"id": "s2", "emitido_em": "15/01/2025"}).issue_date == ""

    @pytest.mark.parametrize("raw", [{}, {"id": ""}, {"id": "x", "numero": "abc"}, "not-a-record"])
    def test_malformed_raises(self, raw):
        with pytest.raises(MappingError):
            map_primary_record(raw)

    def test_map_records_skips_malformed(self):
        docs, skipped = map_records(
            [{"id": "a"}, {"numero": 3}, {"id": "b"}], map_secondary_record, "secondary"
        )
        assert [d.id for d in docs] == ["a", "b"]
        assert skipped == 1

    def test_overlay_only_carried_fields(self):
        local = _local("a", contract_id="C1", description="Aluguel")
        remote = map_secondary_record({"id": "a", "numero": 9})
        merged = overlay(local, remote)
        assert merged.sequence_label == "9"
        assert merged.payer_name == "Local"
        assert merged.contract_id == "C1"
        assert merged.synced is True


# =====================================================================
# Merge
# =====================================================================
class TestMerge:
    def test_tombstone_never_resurrected(self):
        tombstones = {"x"}
        remote = [map_primary_record({"id": "x", "numero": 1}), map_primary_record({"id": "y", "numero": 2})]
        outcome = merge_remote_documents({}, [remote], tombstones.__contains__)
        assert "x" not in outcome.documents
        assert "y" in outcome.documents
        assert outcome.skipped_tombstoned == 1

    def test_merge_twice_same_result(self):
        local = {"a": _local("a")}
        remote = [map_primary_record({"id": "a", "numero": 5}), map_primary_record({"id": "b", "numero": 6})]
        once = merge_remote_documents(local, [remote], lambda _: False).documents
        twice = merge_remote_documents(once, [remote], lambda _: False).documents
        assert once == twice

    def test_local_only_survives(self):
        local = {"local-1": _local("local-1")}
        outcome = merge_remote_documents(
            local, [[map_secondary_record({"id": "s1"})], []], lambda _: False
        )
        assert outcome.documents["local-1"] == local["local-1"]

    def test_later_batch_wins(self):
        secondary = [map_secondary_record({"id": "a", "numero": 1, "signature_id": "sig-s"})]
        primary = [map_primary_record({"id": "a", "numero": 2, "signature_id": "sig-p"})]
        doc = merge_remote_documents({}, [secondary, primary], lambda _: False).documents["a"]
        assert doc.sequence_label == "2"
        assert doc.signature_ref == "sig-p"

    def test_tombstone_checked_per_record(self):
        deleted = set()
        remote = [map_primary_record({"id": "a"}), map_primary_record({"id": "b"})]

        def is_deleted(doc_id):
            # "b" is deleted while "a" is being merged
            if doc_id == "a":
                deleted.add("b")
            return doc_id in deleted

        outcome = merge_remote_documents({}, [remote], is_deleted)
        assert set(outcome.documents) == {"a"}

    def test_input_not_mutated(self):
        local = {"a": _local("a")}
        merge_remote_documents(local, [[map_primary_record({"id": "b"})]], lambda _: False)
        assert set(local) == {"a"}
