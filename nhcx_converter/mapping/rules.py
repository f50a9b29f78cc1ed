"""
Compiled PID field rules.

The extractor reads PID fields by fixed position. This table is the
single source of those positions; the YAML mapping profile only
documents them and is checked against this table at startup.
"""
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FieldRule(BaseModel):
    """One positional HL7 field mapped to a patient record attribute."""
    model_config = ConfigDict(frozen=True)
    
    segment: str = Field(..., min_length=3, max_length=3, description="Segment type code, e.g. PID")
    field: int = Field(..., ge=1, description="Field index; the segment code is field 0")
    component: Optional[int] = Field(None, ge=0, description="Caret-delimited component index")
    target: str = Field(..., min_length=1, description="PatientRecord attribute name")
    
    def describe(self) -> str:
        position = f"{self.segment}-{self.field}"
        if self.component is not None:
            position += f".{self.component}"
        return f"{position} -> {self.target}"


PID_FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule(segment="PID", field=3, target="external_id"),
    FieldRule(segment="PID", field=5, component=0, target="family_name"),
    FieldRule(segment="PID", field=5, component=1, target="given_name"),
    FieldRule(segment="PID", field=7, target="birth_date"),
    FieldRule(segment="PID", field=8, target="gender"),
)
