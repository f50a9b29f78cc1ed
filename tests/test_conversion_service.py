"""
Conversion service tests

Hash-based deduplication, failure recording and the repository's
handling of repeated and concurrent submissions. Uses a SQLite file
database for isolated testing.
"""
import pytest
from datetime import date
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from nhcx_converter.database import Base
from nhcx_converter.errors import FailureReason
from nhcx_converter.fhir import HL7ToFHIRConverter, ConversionOutcome, ConversionStatus
from nhcx_converter.fhir.mappers import PatientMapper
from nhcx_converter.models import ConversionRecord
from nhcx_converter.repository import ConversionRepository
from nhcx_converter.services.conversion_service import ConversionService

# Test database (SQLite in /tmp for container compatibility)
SQLALCHEMY_DATABASE_URL = "sqlite:////tmp/test_conversion_service.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

SAMPLE_HL7 = "PID|1||ABHA123||Sharma^Rahul||19900415|M"
NO_PID_HL7 = "MSH|^~\\&|HIS|HOSPITAL"


def converter_on(day: date) -> HL7ToFHIRConverter:
    return HL7ToFHIRConverter(today=lambda: day)


@pytest.fixture
def db():
    """Fresh session over an empty table"""
    session = TestingSessionLocal()
    session.query(ConversionRecord).delete()
    session.commit()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# Hashing
# ============================================================================

class TestComputeHash:
    
    def test_sha256_hex(self):
        digest = ConversionRecord.compute_hash(SAMPLE_HL7)
        assert len(digest) == 64
        assert digest == digest.lower()
    
    def test_deterministic(self):
        assert ConversionRecord.compute_hash(SAMPLE_HL7) == ConversionRecord.compute_hash(SAMPLE_HL7)
    
    def test_outer_whitespace_ignored(self):
        assert ConversionRecord.compute_hash(f"  \n{SAMPLE_HL7}\r\n ") == ConversionRecord.compute_hash(SAMPLE_HL7)
    
    def test_inner_whitespace_significant(self):
        spaced = SAMPLE_HL7.replace("Sharma", " Sharma")
        assert ConversionRecord.compute_hash(spaced) != ConversionRecord.compute_hash(SAMPLE_HL7)
    
    def test_known_digest(self):
        # sha256("abc")
        assert ConversionRecord.compute_hash(" abc ") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )


# ============================================================================
# Service Tests
# ============================================================================

class TestConversionService:
    
    def test_success_is_persisted(self, db):
        outcome = ConversionService(db, converter_on(date(2024, 1, 1))).convert(SAMPLE_HL7)
        
        assert outcome.success
        assert outcome.deduplicated is False
        
        record = db.query(ConversionRecord).one()
        assert record.hl7_hash == outcome.content_hash
        assert record.raw_hl7 == SAMPLE_HL7
        assert record.fhir_json == outcome.fhir_json
        assert record.status == "SUCCESS"
        assert record.error_message is None
        assert record.created_at is not None
    
    def test_failure_is_persisted(self, db):
        outcome = ConversionService(db).convert(NO_PID_HL7)
        
        assert outcome.success is False
        assert outcome.reason == FailureReason.NO_PID_SEGMENT
        
        record = db.query(ConversionRecord).one()
        assert record.status == "ERROR"
        assert record.fhir_json is None
        assert "No PID segment" in record.error_message
        assert record.raw_hl7 == NO_PID_HL7
    
    def test_duplicate_returns_stored_bundle(self, db):
        """A replay on a later day must not produce a new created date."""
        first = ConversionService(db, converter_on(date(2024, 1, 1))).convert(SAMPLE_HL7)
        second = ConversionService(db, converter_on(date(2025, 6, 30))).convert(SAMPLE_HL7)
        
        assert second.success
        assert second.deduplicated is True
        assert second.content_hash == first.content_hash
        assert second.fhir_json == first.fhir_json
        assert second.document == first.document
        assert second.document["entry"][2]["resource"]["created"] == "2024-01-01"
        assert db.query(ConversionRecord).count() == 1
    
    def test_duplicate_after_trimming(self, db):
        service = ConversionService(db)
        first = service.convert(SAMPLE_HL7)
        second = service.convert(f"\n  {SAMPLE_HL7}  \r\n")
        
        assert second.deduplicated
        assert second.fhir_json == first.fhir_json
    
    def test_duplicate_skips_pipeline(self, db):
        service = ConversionService(db)
        service.convert(SAMPLE_HL7)
        
        with patch.object(service.converter, "convert") as mock_convert:
            service.convert(SAMPLE_HL7)
        mock_convert.assert_not_called()
    
    def test_failed_message_is_retried(self, db):
        service = ConversionService(db)
        
        with patch.object(PatientMapper, "map", side_effect=RuntimeError("boom")):
            failed = service.convert(SAMPLE_HL7)
        assert failed.reason == FailureReason.BUILD_FAILURE
        assert db.query(ConversionRecord).one().status == "ERROR"
        
        retried = service.convert(SAMPLE_HL7)
        assert retried.success
        assert retried.deduplicated is False
        
        record = db.query(ConversionRecord).one()
        assert record.status == "SUCCESS"
        assert record.error_message is None
        assert record.fhir_json == retried.fhir_json
    
    def test_repeated_failure_keeps_single_record(self, db):
        service = ConversionService(db)
        service.convert(NO_PID_HL7)
        outcome = service.convert(NO_PID_HL7)
        
        assert outcome.reason == FailureReason.NO_PID_SEGMENT
        assert db.query(ConversionRecord).count() == 1
    
    def test_dedup_disabled_rebuilds(self, db):
        ConversionService(db, converter_on(date(2024, 1, 1))).convert(SAMPLE_HL7)
        
        with patch("nhcx_converter.config.settings.enable_dedup", False):
            outcome = ConversionService(db, converter_on(date(2024, 2, 2))).convert(SAMPLE_HL7)
        
        assert outcome.deduplicated is False
        assert outcome.document["entry"][2]["resource"]["created"] == "2024-02-02"
        assert db.query(ConversionRecord).one().fhir_json == outcome.fhir_json
    
    def test_lost_race_returns_winner(self, db):
        """An identical request that committed first decides the bundle."""
        winner = ConversionService(db, converter_on(date(2024, 1, 1))).convert(SAMPLE_HL7)
        
        service = ConversionService(db, converter_on(date(2024, 9, 9)))
        real_find = service.repository.find_by_hash
        calls = []
        
        def find_missing_twice(hl7_hash):
            calls.append(hl7_hash)
            return None if len(calls) <= 2 else real_find(hl7_hash)
        
        with patch.object(service.repository, "find_by_hash", side_effect=find_missing_twice):
            outcome = service.convert(SAMPLE_HL7)
        
        assert outcome.success
        assert outcome.deduplicated is True
        assert outcome.fhir_json == winner.fhir_json
        assert db.query(ConversionRecord).count() == 1
    
    def test_history(self, db):
        service = ConversionService(db)
        service.convert(SAMPLE_HL7)
        service.convert(NO_PID_HL7)
        service.convert(SAMPLE_HL7)
        
        history = service.get_history()
        assert [r.status for r in history] == ["SUCCESS", "ERROR"]
        assert service.get_record(history[1].hl7_hash).raw_hl7 == NO_PID_HL7
        assert service.get_record("0" * 64) is None


# ============================================================================
# Repository Tests
# ============================================================================

class TestConversionRepository:
    
    def test_save_and_find(self, db):
        repo = ConversionRepository(db)
        outcome = ConversionOutcome.ok({"a": 1}, '{"a": 1}', content_hash="h" * 64)
        
        record = repo.save_outcome("PID|1", outcome)
        
        assert record.id is not None
        assert repo.find_by_hash("h" * 64).fhir_json == '{"a": 1}'
        assert repo.find_by_hash("x" * 64) is None
    
    def test_overwrite_existing_hash(self, db):
        repo = ConversionRepository(db)
        repo.save_outcome("raw", ConversionOutcome.fail(
            FailureReason.BUILD_FAILURE, "boom", content_hash="h" * 64
        ))
        repo.save_outcome("raw", ConversionOutcome.ok({}, "{}", content_hash="h" * 64))
        
        records = repo.list_all()
        assert len(records) == 1
        assert records[0].status == ConversionStatus.SUCCESS.value
        assert records[0].error_message is None
    
    def test_integrity_error_returns_stored_row(self, db):
        repo = ConversionRepository(db)
        existing = repo.save_outcome("raw", ConversionOutcome.ok({}, "{}", content_hash="h" * 64))
        existing_id = existing.id
        
        real_find = repo.find_by_hash
        calls = []
        
        def miss_first(hl7_hash):
            calls.append(hl7_hash)
            return None if len(calls) == 1 else real_find(hl7_hash)
        
        with patch.object(repo, "find_by_hash", side_effect=miss_first):
            stored = repo.save_outcome("raw", ConversionOutcome.ok({"b": 2}, '{"b": 2}', content_hash="h" * 64))
        
        assert stored.id == existing_id
        assert stored.fhir_json == "{}"
        assert db.query(ConversionRecord).count() == 1
