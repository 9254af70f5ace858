"""
Document completeness package.

Matches submitted documents against a visa type's required, optional and
alternative document lists and ages them against their validity windows.
"""

from .service import ChecklistItem, DocumentCompletenessEngine, add_months

__all__ = ["ChecklistItem", "DocumentCompletenessEngine", "add_months"]
