from sqlalchemy import Column, Integer, String, Text, DateTime
from datetime import datetime, timezone
import hashlib

from .database import Base




def utcnow():
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class ConversionRecord(Base):
    """
    One HL7 -> FHIR conversion attempt.
    
    Every attempt is stored, successful or not. The SHA-256 hash of the
    trimmed message is unique and serves as the deduplication key: a
    message that was already converted successfully is answered from
    `fhir_json` instead of being rebuilt with a new `created` date.
    """
    __tablename__ = "conversion_records"
    
    id = Column(Integer, primary_key=True, index=True)
    hl7_hash = Column(String(64), unique=True, index=True, nullable=False)
    raw_hl7 = Column(Text, nullable=False)
    fhir_json = Column(Text, nullable=True)  # Bundle JSON exactly as returned to the caller
    status = Column(String(20), nullable=False)  # 'SUCCESS' or 'ERROR'
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    
    @staticmethod
    def compute_hash(raw_hl7: str) -> str:
        """SHA-256 hex digest of the trimmed message"""
        return hashlib.sha256(raw_hl7.strip().encode("utf-8")).hexdigest()
