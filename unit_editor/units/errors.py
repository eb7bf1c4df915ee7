"""Errors raised by the unit decomposition / recomposition engine."""


class UnitError(Exception):
    """Base class for unit store and engine errors."""


class DecomposeError(UnitError):
    """Raised when a source file cannot be split into units."""


class MissingUnitError(UnitError):
    """Raised when a manifest entry has no stored unit."""

    def __init__(self, container: str, unit_id: str):
        super().__init__(f"Unit '{unit_id}' listed in manifest of "
                         f"'{container}' is not in the store")
        self.container = container
        self.unit_id = unit_id


class ManifestError(UnitError):
    """Raised for malformed manifests (duplicates, bad JSON)."""


class ContainerNotFoundError(UnitError):
    """Raised when a container has no manifest (file was never split)."""


class ContainerPathError(UnitError):
    """Raised when a path maps to a container outside the project."""
