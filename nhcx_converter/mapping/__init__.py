"""
HL7 -> FHIR mapping rules and profile loading.
"""
from .rules import FieldRule, PID_FIELD_RULES
from .profile import MappingProfile, load_profile, check_profile

__all__ = [
    "FieldRule",
    "PID_FIELD_RULES",
    "MappingProfile",
    "load_profile",
    "check_profile",
]
