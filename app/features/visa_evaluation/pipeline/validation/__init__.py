"""
Eligibility validation package.
"""

from .service import EligibilityValidator

__all__ = ["EligibilityValidator"]
