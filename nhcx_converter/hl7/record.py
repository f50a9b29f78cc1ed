from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PatientRecord:
    """
    Patient demographics read from a PID segment.
    
    Every attribute is optional: a short or sparse PID segment is valid
    input and its missing fields simply stay None.
    """
    external_id: Optional[str] = None  # PID-3, e.g. "ABHA123"
    family_name: Optional[str] = None  # PID-5.0
    given_name: Optional[str] = None  # PID-5.1
    birth_date: Optional[str] = None  # PID-7, YYYYMMDD until mapped
    gender: Optional[str] = None  # PID-8, single letter until mapped
