"""POI catalog service module.

Loads and validates the POI dataset and answers listing/filter queries.
"""

from .service import POICatalog, ValidationResult, validate_record

__all__ = ["POICatalog", "ValidationResult", "validate_record"]
