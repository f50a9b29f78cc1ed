"""
FHIR Conversion Module

Converts the PID segment of an HL7 v2 message into a FHIR Bundle with
Patient, Coverage and CoverageEligibilityRequest resources.

Components:
- mappers: Field normalization and resource mappers
- bundler: FHIR Bundle assembler
- converter: Pipeline from raw message to ConversionOutcome
"""
from .converter import HL7ToFHIRConverter, ConversionOutcome, ConversionStatus
from .bundler import FHIRBundler, serialize_bundle

__all__ = [
    "HL7ToFHIRConverter",
    "ConversionOutcome",
    "ConversionStatus",
    "FHIRBundler",
    "serialize_bundle",
]
