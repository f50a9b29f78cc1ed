"""
HL7 -> FHIR Converter

Runs the conversion pipeline for a single message, entirely in memory:

1. Locate and tokenize the PID segment
2. Extract fields by fixed position
3. Normalize birth date and gender
4. Build Patient, Coverage and CoverageEligibilityRequest
5. Assemble and serialize the Bundle

Persistence and deduplication live in the conversion service; this
module never touches the database.
"""
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Any, Optional, Callable

from ..config import settings
from ..errors import BundleBuildError, ConversionError, FailureReason
from ..hl7.parser import HL7Parser
from ..hl7.record import PatientRecord
from .bundler import FHIRBundler, serialize_bundle
from .mappers import (
    PatientMapper,
    CoverageMapper,
    CoverageEligibilityRequestMapper,
    normalize_record,
)

logger = logging.getLogger(__name__)


class ConversionStatus(str, Enum):
    """Terminal status of a conversion attempt (stored as-is)."""
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ConversionOutcome:
    """
    Result of one conversion attempt.
    
    Either a Bundle (document + serialized fhir_json) or a failure
    reason, plus the content hash used as the deduplication key.
    """
    status: ConversionStatus
    content_hash: Optional[str] = None
    document: Optional[Dict[str, Any]] = None
    fhir_json: Optional[str] = None
    error: Optional[str] = None
    reason: Optional[FailureReason] = None
    deduplicated: bool = False
    
    @property
    def success(self) -> bool:
        return self.status == ConversionStatus.SUCCESS
    
    @classmethod
    def ok(cls, document: Dict[str, Any], fhir_json: str, content_hash: str = None,
           deduplicated: bool = False) -> "ConversionOutcome":
        """Create successful outcome."""
        return cls(
            status=ConversionStatus.SUCCESS,
            content_hash=content_hash,
            document=document,
            fhir_json=fhir_json,
            deduplicated=deduplicated,
        )
    
    @classmethod
    def fail(cls, reason: FailureReason, error: str, content_hash: str = None) -> "ConversionOutcome":
        """Create failed outcome."""
        return cls(
            status=ConversionStatus.ERROR,
            content_hash=content_hash,
            error=error,
            reason=reason,
        )


class HL7ToFHIRConverter:
    """
    Converts a raw HL7 message to a coverage eligibility Bundle.
    
    Usage:
        converter = HL7ToFHIRConverter()
        outcome = converter.convert(raw_hl7)
        
        if outcome.success:
            fhir_json = outcome.fhir_json
    """
    
    def __init__(
        self,
        parser: HL7Parser = None,
        identifier_system: str = None,
        organization_reference: str = None,
        today: Callable[[], date] = date.today,
    ):
        self.parser = parser or HL7Parser()
        self.identifier_system = identifier_system or settings.identifier_system
        self.organization_reference = organization_reference or settings.organization_reference
        self.today = today
    
    def build_bundle(self, record: PatientRecord) -> Dict[str, Any]:
        """
        Build the Bundle for a parsed record.
        
        Raises:
            BundleBuildError: Any fault while mapping or assembling
        """
        try:
            record = normalize_record(record)
            bundler = FHIRBundler()
            bundler.add_resources([
                PatientMapper.map(record, self.identifier_system),
                CoverageMapper.map(record, self.organization_reference),
                CoverageEligibilityRequestMapper.map(
                    record, self.organization_reference, self.today()
                ),
            ])
            return bundler.build()
        except Exception as e:
            raise BundleBuildError(f"Failed to build FHIR Bundle: {e}") from e
    
    def convert(self, raw_hl7: str, content_hash: str = None) -> ConversionOutcome:
        """
        Convert a raw message.
        
        Args:
            raw_hl7: Full HL7 message text
            content_hash: Deduplication key to carry on the outcome
            
        Returns:
            ConversionOutcome; failures are returned, never raised
        """
        message_ref = (content_hash or "unhashed")[:12]
        try:
            logger.info("Step 1: Parsing HL7 message %s", message_ref)
            record = self.parser.parse(raw_hl7)
            
            logger.info("Step 2: Building FHIR Bundle for %s", message_ref)
            bundle = self.build_bundle(record)
            fhir_json = serialize_bundle(bundle)
            
            return ConversionOutcome.ok(bundle, fhir_json, content_hash=content_hash)
        
        except ConversionError as e:
            level = logging.WARNING if e.reason == FailureReason.NO_PID_SEGMENT else logging.ERROR
            logger.log(level, "Conversion failed (%s): %s", e.reason.value, e)
            return ConversionOutcome.fail(e.reason, str(e), content_hash=content_hash)
        except Exception as e:
            logger.exception("Unexpected conversion failure")
            return ConversionOutcome.fail(
                FailureReason.BUILD_FAILURE,
                f"Conversion failed: {e}",
                content_hash=content_hash,
            )
