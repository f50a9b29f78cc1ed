"""
Mapping profile loader.

Reads the YAML mapping profile into a typed, immutable model. The
profile is loaded once at process start and compared against the
compiled rules; it is never consulted while converting a message.
"""
import logging
from pathlib import Path
from typing import List, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import MappingProfileError
from .rules import FieldRule, PID_FIELD_RULES

logger = logging.getLogger(__name__)


class MappingProfile(BaseModel):
    """Typed view of a mapping profile document."""
    model_config = ConfigDict(frozen=True)
    
    profile: str
    version: str
    source_format: str
    target_format: str
    fields: List[FieldRule]


def load_profile(path: Union[str, Path]) -> MappingProfile:
    """
    Load and validate a mapping profile.
    
    Args:
        path: Location of the YAML document
        
    Returns:
        Validated MappingProfile
        
    Raises:
        MappingProfileError: File missing, unreadable, or not a valid profile
    """
    path = Path(path)
    if not path.is_file():
        raise MappingProfileError(f"Mapping profile not found at: {path}")
    
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise MappingProfileError(f"Mapping profile {path} is not valid YAML: {e}") from e
    
    if not isinstance(data, dict):
        raise MappingProfileError(f"Mapping profile {path} must be a mapping at the top level")
    
    try:
        profile = MappingProfile(**data)
    except ValidationError as e:
        raise MappingProfileError(f"Mapping profile {path} is invalid: {e}") from e
    
    logger.info("Loaded mapping profile: %s v%s", profile.profile, profile.version)
    return profile


def check_profile(profile: MappingProfile) -> List[str]:
    """
    Compare a profile's declared fields with the compiled rules.
    
    Returns:
        Discrepancy descriptions; empty when the profile matches
    """
    declared = set(profile.fields)
    compiled = set(PID_FIELD_RULES)
    
    problems = []
    for rule in PID_FIELD_RULES:
        if rule not in declared:
            problems.append(f"missing from profile: {rule.describe()}")
    for rule in profile.fields:
        if rule not in compiled:
            problems.append(f"not supported by converter: {rule.describe()}")
    return problems
