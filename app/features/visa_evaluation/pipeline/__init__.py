"""
Pipeline components for the visa evaluation feature.

Stages run in order: validation gates scoring, scoring produces diagnostics,
documents are evaluated independently, matching consumes the scored result.
"""

__all__ = ["diagnostics", "documents", "matching", "scoring", "validation"]
