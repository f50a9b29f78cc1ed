"""
Conversion record persistence.

The unique constraint on hl7_hash is what actually prevents duplicate
rows; the service's lookup-before-convert is only a shortcut. A request
that loses an insert race is rolled back and answered with the row that
won.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .fhir.converter import ConversionOutcome
from .models import ConversionRecord, utcnow

logger = logging.getLogger(__name__)


class ConversionRepository:
    """Stores and looks up ConversionRecord rows."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def find_by_hash(self, hl7_hash: str) -> Optional[ConversionRecord]:
        return self.db.query(ConversionRecord).filter(
            ConversionRecord.hl7_hash == hl7_hash
        ).first()
    
    def list_all(self) -> List[ConversionRecord]:
        """All records, oldest first."""
        return self.db.query(ConversionRecord).order_by(ConversionRecord.id).all()
    
    def save_outcome(self, raw_hl7: str, outcome: ConversionOutcome) -> ConversionRecord:
        """
        Persist a conversion attempt.
        
        A stored row with the same hash (an earlier failure, or any row
        when deduplication is off) is overwritten with this attempt.
        
        Args:
            raw_hl7: Message exactly as received
            outcome: Result of the attempt, carrying its content hash
            
        Returns:
            The stored record
        """
        record = self.find_by_hash(outcome.content_hash)
        if record is None:
            record = ConversionRecord(hl7_hash=outcome.content_hash)
            self.db.add(record)
        else:
            record.created_at = utcnow()
        
        record.raw_hl7 = raw_hl7
        record.fhir_json = outcome.fhir_json
        record.status = outcome.status.value
        record.error_message = outcome.error
        
        try:
            self.db.commit()
        except IntegrityError:
            # Another request stored the same hash between lookup and insert
            self.db.rollback()
            logger.info("Concurrent conversion stored hash %s first", outcome.content_hash[:12])
            return self.find_by_hash(outcome.content_hash)
        
        self.db.refresh(record)
        return record
