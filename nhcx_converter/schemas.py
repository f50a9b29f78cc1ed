from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

# Health check schema
class HealthResponse(BaseModel):
    """Health check response"""
    status: str


class ConversionRecordResponse(BaseModel):
    """Stored conversion attempt"""
    id: int
    hl7_hash: str = Field(..., description="SHA-256 of the trimmed HL7 message")
    raw_hl7: str = Field(..., description="Message exactly as received")
    fhir_json: Optional[str] = Field(None, description="Bundle JSON if conversion succeeded")
    status: str = Field(..., description="SUCCESS or ERROR")
    error_message: Optional[str] = Field(None, description="Failure reason if conversion failed")
    created_at: Optional[datetime] = None
    
    model_config = {"from_attributes": True}


class ConversionErrorResponse(BaseModel):
    """Body returned when a message cannot be converted"""
    error: str = "Conversion failed"
    reason: str = Field(..., description="NO_PID_SEGMENT or BUILD_FAILURE")
    message: str
    content_hash: Optional[str] = None
