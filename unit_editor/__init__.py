"""unit_editor — split Go sources into declaration units, let a generative
service edit the units, and reassemble the files."""

from .units import (
    Composer, Decomposer, EditRecord, Manifest, ManifestReconciler,
    Unit, UnitError, UnitStore,
)
from .editing import ChangeSetExtractor, ExtractionResult, ExtractionStatus

__all__ = [
    "Composer", "Decomposer", "EditRecord", "Manifest", "ManifestReconciler",
    "Unit", "UnitError", "UnitStore",
    "ChangeSetExtractor", "ExtractionResult", "ExtractionStatus",
]
