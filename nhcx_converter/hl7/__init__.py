"""
HL7 v2 message parsing.
"""
from .parser import HL7Parser, find_pid_segment, split_fields, split_components
from .record import PatientRecord

__all__ = [
    "HL7Parser",
    "PatientRecord",
    "find_pid_segment",
    "split_fields",
    "split_components",
]
