"""
NHCX FHIR Converter

Converts HL7 v2 PID segments into FHIR coverage eligibility Bundles.
"""
__version__ = "1.0.0"
