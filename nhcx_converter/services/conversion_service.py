import json
import logging
from typing import List

from sqlalchemy.orm import Session

from ..config import settings
from ..fhir.converter import HL7ToFHIRConverter, ConversionOutcome, ConversionStatus
from ..models import ConversionRecord
from ..repository import ConversionRepository

logger = logging.getLogger(__name__)


class ConversionService:
    """HL7 -> FHIR coverage conversion with hash-based deduplication"""

    def __init__(self, db: Session, converter: HL7ToFHIRConverter = None):
        self.repository = ConversionRepository(db)
        self.converter = converter or HL7ToFHIRConverter()

    def convert(self, raw_hl7: str) -> ConversionOutcome:
        """
        Convert a message, reusing the stored bundle for a repeated one.

        Every attempt that runs the pipeline is recorded, success or
        failure. A repeat of a successfully converted message returns the
        stored JSON verbatim so its `created` date does not change.
        """
        content_hash = ConversionRecord.compute_hash(raw_hl7)

        # Check for an earlier successful conversion first
        if settings.enable_dedup:
            existing = self.repository.find_by_hash(content_hash)
            if existing is not None and existing.status == ConversionStatus.SUCCESS.value:
                logger.info("Duplicate HL7 detected (%s), returning stored bundle", content_hash[:12])
                return self._from_record(existing)

        outcome = self.converter.convert(raw_hl7, content_hash=content_hash)

        logger.info("Saving %s conversion record %s", outcome.status.value, content_hash[:12])
        stored = self.repository.save_outcome(raw_hl7, outcome)

        # Lost a race against an identical request that already succeeded
        if (
            stored.status == ConversionStatus.SUCCESS.value
            and stored.fhir_json != outcome.fhir_json
        ):
            return self._from_record(stored)

        return outcome

    def get_history(self) -> List[ConversionRecord]:
        """Every stored conversion attempt, oldest first"""
        return self.repository.list_all()

    def get_record(self, content_hash: str):
        return self.repository.find_by_hash(content_hash)

    @staticmethod
    def _from_record(record: ConversionRecord) -> ConversionOutcome:
        return ConversionOutcome.ok(
            document=json.loads(record.fhir_json),
            fhir_json=record.fhir_json,
            content_hash=record.hl7_hash,
            deduplicated=True,
        )
