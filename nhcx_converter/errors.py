"""
Conversion errors.

Only two kinds of failure reach a caller of the conversion pipeline:
the message has no PID segment, or the bundle could not be assembled.
Both are terminal for the attempt and are recorded, never retried.
"""
from enum import Enum


class FailureReason(str, Enum):
    """Tag stored with a failed conversion."""
    NO_PID_SEGMENT = "NO_PID_SEGMENT"
    BUILD_FAILURE = "BUILD_FAILURE"


class ConversionError(Exception):
    """Base class for conversion failures."""
    reason: FailureReason = FailureReason.BUILD_FAILURE


class NoPidSegmentError(ConversionError):
    """The message contains no line starting with 'PID'."""
    reason = FailureReason.NO_PID_SEGMENT
    
    def __init__(self, message: str = None):
        super().__init__(
            message
            or "No PID segment found in the HL7 message. "
            "The message must contain a line starting with 'PID'."
        )


class BundleBuildError(ConversionError):
    """Unexpected fault while assembling the FHIR Bundle."""
    reason = FailureReason.BUILD_FAILURE


class MappingProfileError(Exception):
    """Mapping profile document is missing or malformed."""
