"""
FHIR Bundle Assembler

Creates a FHIR Bundle (collection type) from resource dicts. Every
resource is wrapped in an entry object under the "resource" key and
entries keep the order they were added in.
"""
from typing import List, Dict, Any
import json


class FHIRBundler:
    """
    Assembles FHIR resources into a Bundle.
    
    Creates a collection-type Bundle whose JSON form keeps the
    construction order of every key and entry.
    """
    
    def __init__(self):
        """Initialize the bundler."""
        self.entries: List[Dict[str, Any]] = []
    
    def add_resource(self, resource: Dict[str, Any]) -> None:
        """
        Add a resource to the bundle.
        
        Args:
            resource: FHIR resource dict (must carry resourceType)
        """
        self.entries.append({"resource": resource})
    
    def add_resources(self, resources: List[Dict[str, Any]]) -> None:
        """Add multiple resources to the bundle, in order."""
        for resource in resources:
            self.add_resource(resource)
    
    def build(self) -> Dict[str, Any]:
        """
        Build the final FHIR Bundle.
        
        Returns:
            Bundle dict with resourceType, type and entry, in that order
        """
        return {
            "resourceType": "Bundle",
            "type": "collection",
            "entry": list(self.entries),
        }


def serialize_bundle(bundle: Dict[str, Any], indent: int = 2) -> str:
    """Serialize a bundle to JSON text without reordering keys."""
    return json.dumps(bundle, indent=indent, ensure_ascii=False)
