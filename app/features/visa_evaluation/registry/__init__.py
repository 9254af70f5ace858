"""
Schema registry package.

Loads the versioned visa rule sets and serves immutable per
(visa type, application type) schemas to the evaluation engines.
"""

from .schema import normalize_application_type, normalize_visa_type
from .service import DEFAULT_SCHEMA_PATH, RegistrySnapshot, SchemaRegistry, read_snapshot

__all__ = [
    "DEFAULT_SCHEMA_PATH",
    "RegistrySnapshot",
    "SchemaRegistry",
    "normalize_application_type",
    "normalize_visa_type",
    "read_snapshot",
]
