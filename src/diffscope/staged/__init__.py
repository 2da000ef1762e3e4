"""Staged content detection."""

from ._detector import DEFAULT_STAGED_TTL, StagedContentDetector
from ._models import DiffSummary, StagedDetails, StagedDetectionResult

__all__ = [
    "DEFAULT_STAGED_TTL",
    "DiffSummary",
    "StagedContentDetector",
    "StagedDetails",
    "StagedDetectionResult",
]
