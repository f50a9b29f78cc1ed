#!/usr/bin/env python3
"""
Sample conversion script

Pushes every HL7 message in data/samples/ through the conversion
service against the configured database. Running it twice shows the
second pass answered from stored bundles.

Usage:
    python scripts/load_samples.py
"""
import sys
from pathlib import Path

# Add parent directory to path to import the package without installing
sys.path.append(str(Path(__file__).parent.parent))

from nhcx_converter.database import SessionLocal, engine
from nhcx_converter.models import Base
from nhcx_converter.services.conversion_service import ConversionService

# Create all tables
Base.metadata.create_all(bind=engine)

def load_samples():
    """Convert every data/samples/*.hl7 file"""
    samples_dir = Path(__file__).parent.parent / "data" / "samples"
    
    if not samples_dir.exists():
        print(f"⚠️  Samples directory not found: {samples_dir}")
        return
    
    sample_files = sorted(samples_dir.glob("*.hl7"))
    if not sample_files:
        print(f"⚠️  No .hl7 files found in {samples_dir}")
        return
    
    db = SessionLocal()
    try:
        service = ConversionService(db)
        for sample_file in sample_files:
            raw_hl7 = sample_file.read_text(encoding="utf-8")
            outcome = service.convert(raw_hl7)
            
            marker = "✅" if outcome.success else "❌"
            detail = "duplicate" if outcome.deduplicated else (outcome.error or "converted")
            print(f"{marker} {sample_file.name}: {outcome.status.value} "
                  f"[{outcome.content_hash[:12]}] {detail}")
    finally:
        db.close()
    
    print(f"\n📊 {len(sample_files)} messages processed")

if __name__ == "__main__":
    load_samples()
