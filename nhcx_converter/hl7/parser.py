"""
HL7 v2 PID segment parser.

Only the first PID segment of a message is read. Fields are addressed
by fixed position, so splitting keeps empty values between delimiters.
Repeating fields, escape sequences and other segment types are not
interpreted.
"""
import logging
import re
from typing import List, Optional, Sequence

from ..errors import NoPidSegmentError
from ..mapping.rules import FieldRule, PID_FIELD_RULES
from .record import PatientRecord

logger = logging.getLogger(__name__)

PID_SEGMENT = "PID"
FIELD_SEPARATOR = "|"
COMPONENT_SEPARATOR = "^"

# CR alone is the HL7 segment terminator; LF and CRLF come from files and HTTP bodies
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def find_pid_segment(raw_hl7: str) -> str:
    """
    Return the first trimmed line that starts with 'PID'.
    
    Raises:
        NoPidSegmentError: No such line exists
    """
    for line in _LINE_BREAK.split(raw_hl7):
        line = line.strip()
        if line.startswith(PID_SEGMENT):
            return line
    raise NoPidSegmentError()


def split_fields(segment: str) -> List[str]:
    """Split a segment on '|'; index 0 is the segment code."""
    return segment.split(FIELD_SEPARATOR)


def split_components(value: str) -> List[str]:
    """Split a field on '^'."""
    return value.split(COMPONENT_SEPARATOR)


def _value_at(values: Sequence[str], index: int) -> Optional[str]:
    """Trimmed value at index, or None if out of range or blank."""
    if index >= len(values):
        return None
    value = values[index].strip()
    return value or None


def extract_field(fields: Sequence[str], rule: FieldRule) -> Optional[str]:
    """Read the value a single rule points at."""
    if rule.field >= len(fields):
        return None
    if rule.component is None:
        return _value_at(fields, rule.field)
    return _value_at(split_components(fields[rule.field]), rule.component)


class HL7Parser:
    """
    Extracts a PatientRecord from a raw HL7 message.
    
    Usage:
        record = HL7Parser().parse("PID|1||ABHA123||Sharma^Rahul||19900415|M")
    """
    
    def __init__(self, rules: Sequence[FieldRule] = PID_FIELD_RULES):
        self.rules = tuple(rules)
    
    def parse(self, raw_hl7: str) -> PatientRecord:
        """
        Parse the PID segment of a message.
        
        Args:
            raw_hl7: Full message text, LF or CRLF separated
            
        Returns:
            PatientRecord with the raw (unnormalized) field values
            
        Raises:
            NoPidSegmentError: The message has no PID segment
        """
        fields = split_fields(find_pid_segment(raw_hl7))
        values = {rule.target: extract_field(fields, rule) for rule in self.rules}
        record = PatientRecord(**values)
        logger.debug("Parsed PID segment with %d fields", len(fields))
        return record
