"""
Schema registry - immutable, versioned visa rule sets.

The registry holds a single RegistrySnapshot. Readers take the current
snapshot reference without locking; reloads build a complete new snapshot
and swap it in one assignment, so an evaluation never sees a half-updated
rule set.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import ValidationError

from app.features.visa_evaluation.domain.errors import RegistryLoadError, SchemaNotFoundError
from app.features.visa_evaluation.domain.models import VisaTypeSchema
from app.infrastructure.observability.logging import get_logger

from .schema import RegistryDocument, normalize_application_type, normalize_visa_type

logger = get_logger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "data" / "visa_schemas.yaml"


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    schema_version: str
    schemas: Mapping[tuple[str, str], VisaTypeSchema]
    document_names: Mapping[str, str] = field(default_factory=dict)
    document_categories: Mapping[str, str] = field(default_factory=dict)
    critical_documents: frozenset[str] = frozenset()
    document_validity_months: Mapping[str, int] = field(default_factory=dict)
    default_validity_months: int = 12
    source: str | None = None

    @classmethod
    def from_document(cls, data: Any, source: str | None = None) -> RegistrySnapshot:
        """Validate a parsed registry document and build a snapshot from it."""
        try:
            document = RegistryDocument.model_validate(data)
        except ValidationError as exc:
            raise RegistryLoadError(f"Invalid schema registry ({source or 'inline'}): {exc}") from exc

        return cls(
            schema_version=document.schema_version,
            schemas=MappingProxyType(document.build_schemas()),
            document_names=MappingProxyType(
                {doc_type: config.name for doc_type, config in document.document_types.items()}
            ),
            document_categories=MappingProxyType(
                {doc_type: config.category for doc_type, config in document.document_types.items()}
            ),
            critical_documents=frozenset(
                doc_type for doc_type, config in document.document_types.items() if config.critical
            ),
            document_validity_months=MappingProxyType(
                {
                    doc_type: config.validity_months
                    for doc_type, config in document.document_types.items()
                    if config.validity_months
                }
            ),
            default_validity_months=document.default_validity_months,
            source=source,
        )


def read_snapshot(path: str | Path) -> RegistrySnapshot:
    """Read and validate a registry YAML file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise RegistryLoadError(f"Unable to read schema registry {path}: {exc}") from exc

    return RegistrySnapshot.from_document(data, source=str(path))


class SchemaRegistry:
    """Lookup facade over the current registry snapshot."""

    def __init__(self, snapshot: RegistrySnapshot):
        self._snapshot = snapshot
        self._swap_lock = threading.Lock()

    @classmethod
    def load_from_path(cls, path: str | Path | None = None) -> SchemaRegistry:
        snapshot = read_snapshot(path or DEFAULT_SCHEMA_PATH)
        logger.info(
            "Schema registry loaded",
            schema_version=snapshot.schema_version,
            rule_sets=len(snapshot.schemas),
            source=snapshot.source,
        )
        return cls(snapshot)

    @classmethod
    def from_document(cls, data: Any) -> SchemaRegistry:
        return cls(RegistrySnapshot.from_document(data))

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    @property
    def schema_version(self) -> str:
        return self._snapshot.schema_version

    def swap(self, snapshot: RegistrySnapshot) -> RegistrySnapshot:
        """Atomically replace the active snapshot and return the previous one."""
        with self._swap_lock:
            previous = self._snapshot
            self._snapshot = snapshot
        logger.info(
            "Schema registry swapped",
            previous_version=previous.schema_version,
            schema_version=snapshot.schema_version,
        )
        return previous

    def reload(self, path: str | Path | None = None) -> RegistrySnapshot:
        """Re-read the registry file; the active snapshot is kept if loading fails."""
        return self.swap(read_snapshot(path or self._snapshot.source or DEFAULT_SCHEMA_PATH))

    def get(self, visa_type: str, application_type: str = "NEW") -> VisaTypeSchema | None:
        key = (normalize_visa_type(visa_type), normalize_application_type(application_type))
        return self._snapshot.schemas.get(key)

    def require(self, visa_type: str, application_type: str = "NEW") -> VisaTypeSchema:
        schema = self.get(visa_type, application_type)
        if schema is None:
            raise SchemaNotFoundError(
                normalize_visa_type(visa_type), normalize_application_type(application_type)
            )
        return schema

    def keys(self) -> list[tuple[str, str]]:
        return sorted(self._snapshot.schemas)

    def visa_types(self) -> list[str]:
        return sorted({visa_type for visa_type, _ in self._snapshot.schemas})

    def document_name(self, document_type: str) -> str:
        return self._snapshot.document_names.get(
            document_type, document_type.replace("_", " ").capitalize()
        )

    def document_category(self, document_type: str) -> str:
        return self._snapshot.document_categories.get(document_type, "other")

    def is_critical(self, document_type: str) -> bool:
        return document_type in self._snapshot.critical_documents

    def validity_months(self, document_type: str) -> int:
        """Registry-wide validity window, used when no visa rule set applies."""
        snapshot = self._snapshot
        return snapshot.document_validity_months.get(document_type, snapshot.default_validity_months)
