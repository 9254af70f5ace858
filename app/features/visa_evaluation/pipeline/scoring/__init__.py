"""
Eligibility scoring package.

Provides the engine that turns normalised applicant data into a weighted,
explained eligibility score.
"""

from .confidence import calculate_confidence, score_band
from .recommendations import prioritize
from .service import ScoringEngine

__all__ = ["ScoringEngine", "calculate_confidence", "prioritize", "score_band"]
