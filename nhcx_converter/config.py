from pathlib import Path

from pydantic_settings import BaseSettings

DEFAULT_PROFILE_PATH = Path(__file__).parent / "mapping" / "profiles" / "hl7_adt_v2_coverage.yaml"


class Settings(BaseSettings):
    """Application configuration with environment variable support"""
    
    # Database
    database_url: str = "sqlite:///./nhcx_conversions.db"
    
    # App
    app_name: str = "NHCX FHIR Converter"
    debug: bool = False
    log_level: str = "INFO"
    
    # Mapping profile (documentation/validation only, read once at startup)
    mapping_profile_path: str = str(DEFAULT_PROFILE_PATH)
    
    # Fixed FHIR values
    identifier_system: str = "https://ndhm.gov.in/abha"
    organization_reference: str = "Organization/NHCX"  # Coverage payor and eligibility insurer
    
    # Return the stored bundle for a previously converted message
    enable_dedup: bool = True
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
