"""
FHIR Resource Mappers

Maps a PatientRecord parsed from a PID segment to the three resources of
a coverage eligibility bundle.

Mappings:
- PatientRecord → Patient
- PatientRecord → Coverage (beneficiary, NHCX payor)
- PatientRecord → CoverageEligibilityRequest (validation purpose)

Resources are plain dicts built in FHIR field order; insertion order is
the serialized order. Cardinality follows FHIR: identifier, name, given,
payor and purpose are always lists, even with one element.
"""
from dataclasses import replace
from datetime import date
from typing import Optional, Dict, Any

from ..hl7.record import PatientRecord


GENDER_CODES = {
    "M": "male",
    "F": "female",
    "O": "other",
}
UNKNOWN_GENDER = "unknown"


def format_date(hl7_date: Optional[str]) -> Optional[str]:
    """
    Convert an HL7 date (YYYYMMDD) to FHIR form (YYYY-MM-DD).
    
    Anything that is not an 8-digit calendar date is returned unchanged.
    """
    if hl7_date is None or len(hl7_date) != 8:
        return hl7_date
    if not (hl7_date.isascii() and hl7_date.isdigit()):
        return hl7_date
    try:
        return date(int(hl7_date[:4]), int(hl7_date[4:6]), int(hl7_date[6:])).isoformat()
    except ValueError:
        return hl7_date


def map_gender(hl7_gender: Optional[str]) -> str:
    """Map an HL7 administrative sex code to a FHIR gender."""
    if hl7_gender is None:
        return UNKNOWN_GENDER
    return GENDER_CODES.get(hl7_gender.upper(), UNKNOWN_GENDER)


def normalize_record(record: PatientRecord) -> PatientRecord:
    """Return a copy with FHIR birth date and gender values."""
    return replace(
        record,
        birth_date=format_date(record.birth_date),
        gender=map_gender(record.gender),
    )


def patient_reference(record: PatientRecord) -> Optional[str]:
    """Relative reference to the bundle's Patient, e.g. 'Patient/ABHA123'."""
    if record.external_id is None:
        return None
    return f"Patient/{record.external_id}"


class PatientMapper:
    """Maps PatientRecord to FHIR Patient resource."""
    
    @staticmethod
    def map(record: PatientRecord, identifier_system: str) -> Dict[str, Any]:
        """
        Convert a normalized record to a Patient resource.
        
        Args:
            record: PatientRecord after normalize_record()
            identifier_system: Identifier.system for the external id
            
        Returns:
            Patient resource as an ordered dict
        """
        return {
            "resourceType": "Patient",
            "identifier": [{
                "system": identifier_system,
                "value": record.external_id,
            }],
            "name": [{
                "family": record.family_name,
                "given": [record.given_name],
            }],
            "birthDate": record.birth_date,
            "gender": record.gender,
        }


class CoverageMapper:
    """Maps PatientRecord to FHIR Coverage resource."""
    
    @staticmethod
    def map(record: PatientRecord, payor_reference: str) -> Dict[str, Any]:
        return {
            "resourceType": "Coverage",
            "status": "active",
            "beneficiary": {"reference": patient_reference(record)},
            "payor": [{"reference": payor_reference}],
        }


class CoverageEligibilityRequestMapper:
    """Maps PatientRecord to FHIR CoverageEligibilityRequest resource."""
    
    @staticmethod
    def map(
        record: PatientRecord,
        insurer_reference: str,
        created: date
    ) -> Dict[str, Any]:
        """
        Convert a record to an eligibility validation request.
        
        Args:
            record: Normalized PatientRecord
            insurer_reference: Reference to the insurer Organization
            created: Date the request is created
            
        Returns:
            CoverageEligibilityRequest resource as an ordered dict
        """
        return {
            "resourceType": "CoverageEligibilityRequest",
            "status": "active",
            "purpose": ["validation"],
            "patient": {"reference": patient_reference(record)},
            "created": created.isoformat(),
            "insurer": {"reference": insurer_reference},
        }
