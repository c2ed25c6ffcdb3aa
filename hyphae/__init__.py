"""Hyphae - Static sync/async classification of embedded runtime API calls."""

from hyphae.config import (
    AliasDescriptor,
    ClassificationResult,
    ClassificationSource,
    DetectorConfig,
    ProductionKind,
    ResolutionResult,
)
from hyphae.detector import AsyncDetector

__version__ = "0.1.0"
__all__ = [
    "AsyncDetector",
    "DetectorConfig",
    "AliasDescriptor",
    "ClassificationResult",
    "ClassificationSource",
    "ProductionKind",
    "ResolutionResult",
]
