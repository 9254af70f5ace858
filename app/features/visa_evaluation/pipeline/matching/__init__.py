"""
Representative matching package.
"""

from .planning import ServicePlanner
from .service import RepresentativeMatchingEngine

__all__ = ["RepresentativeMatchingEngine", "ServicePlanner"]
