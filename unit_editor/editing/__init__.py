"""Change-set extraction and application for generated edits."""

from .extractor import (
    ChangeSetExtractor, ExtractionResult, ExtractionStatus, ScanResult,
)
from .continuation import ContinuationRequestor
from .prompts import PromptLibrary, DEFAULT_TEMPLATES
from .applier import apply_changes, ApplyResult

__all__ = [
    "ChangeSetExtractor", "ExtractionResult", "ExtractionStatus", "ScanResult",
    "ContinuationRequestor",
    "PromptLibrary", "DEFAULT_TEMPLATES",
    "apply_changes", "ApplyResult",
]
