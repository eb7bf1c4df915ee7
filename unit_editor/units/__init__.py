"""Unit decomposition / recomposition engine for Go source files."""

from .errors import (
    UnitError, DecomposeError, MissingUnitError, ManifestError,
    ContainerNotFoundError, ContainerPathError,
)
from .models import (
    UnitKind, Unit, Manifest, EditRecord, HEADER_ID, SHARED_ID,
)
from .directives import Placement, parse_directives, absorb_directives
from .decomposer import Decomposer, Decomposition
from .store import UnitStore
from .composer import Composer, join_units
from .reconciler import ManifestReconciler

__all__ = [
    "UnitError", "DecomposeError", "MissingUnitError", "ManifestError",
    "ContainerNotFoundError", "ContainerPathError",
    "UnitKind", "Unit", "Manifest", "EditRecord", "HEADER_ID", "SHARED_ID",
    "Placement", "parse_directives", "absorb_directives",
    "Decomposer", "Decomposition",
    "UnitStore",
    "Composer", "join_units",
    "ManifestReconciler",
]
