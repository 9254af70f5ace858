"""
Case diagnostics package.
"""

from .service import CaseDiagnosticsAnalyzer

__all__ = ["CaseDiagnosticsAnalyzer"]
