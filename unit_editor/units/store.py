"""
Unit store — durable storage of units and manifests on disk.

Layout::

    <root>/<container>/manifest.json      JSON array of unit ids
    <root>/<container>/<unit-id>.gopart   verbatim unit content

A container is named after the source file it came from, without the
``.go`` extension (``pkg/server.go`` -> ``pkg/server``).  The store assumes
a single writer per container.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .errors import ContainerPathError, ManifestError
from .models import Manifest, Unit, UnitKind

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
DEFAULT_EXTENSION = ".gopart"


def _check_container(container: str) -> None:
    parts = container.split("/")
    if not container or any(p in ("", ".", os.pardir) for p in parts):
        raise ContainerPathError(f"Invalid container name: {container!r}")


class UnitStore:
    """Keyed storage for units, addressed by ``(container, unit_id)``.

    *base* is the project directory that relative source and record paths
    are taken from; it defaults to the current directory at call time.
    A relative *root* is resolved against *base* as well.
    """

    def __init__(self, root: str, extension: str = DEFAULT_EXTENSION,
                 base: Optional[str] = None) -> None:
        self.root = root
        self.extension = extension
        self.base = base

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def base_dir(self) -> str:
        return os.path.abspath(self.base or os.getcwd())

    def absolute(self, path: str) -> str:
        """*path* made absolute against the base directory."""
        return os.path.normpath(os.path.join(self.base_dir(), path))

    def root_dir(self) -> str:
        return self.absolute(self.root)

    def container_for(self, source_path: str) -> str:
        """Container name for a source file path.

        Raises
        ------
        ContainerPathError
            If the source file lies outside the base directory.
        """
        rel = os.path.relpath(self.absolute(source_path), self.base_dir())
        stem, _ext = os.path.splitext(rel)
        container = stem.replace(os.sep, "/")
        _check_container(container)
        return container

    def container_dir(self, container: str) -> str:
        _check_container(container)
        return os.path.join(self.root_dir(), *container.split("/"))

    def unit_path(self, container: str, unit_id: str) -> str:
        return os.path.join(self.container_dir(container), unit_id + self.extension)

    def manifest_path(self, container: str) -> str:
        return os.path.join(self.container_dir(container), MANIFEST_FILE)

    def resolve(self, path: str) -> Optional[tuple[str, str]]:
        """Map a unit file path back to ``(container, unit_id)``.

        Returns ``None`` for paths outside the store or without the unit
        extension.
        """
        if not path.endswith(self.extension):
            return None
        rel = os.path.relpath(self.absolute(path), self.root_dir())
        if rel == os.pardir or rel.startswith(os.pardir + os.sep):
            return None
        container, filename = os.path.split(rel)
        if not container:
            return None
        unit_id = filename[: -len(self.extension)]
        if not unit_id:
            return None
        return container.replace(os.sep, "/"), unit_id

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def put(self, container: str, unit: Unit) -> None:
        """Write *unit*.  A container's first write creates its manifest."""
        path = self.unit_path(container, unit.id)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(unit.content)
        if not os.path.isfile(self.manifest_path(container)):
            self.write_manifest(container, Manifest((unit.id,)))

    def get(self, container: str, unit_id: str) -> Optional[Unit]:
        """Return the stored unit, or ``None`` if it does not exist."""
        path = self.unit_path(container, unit_id)
        if not os.path.isfile(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
        return Unit(id=unit_id, kind=UnitKind.for_id(unit_id), content=content)

    def remove(self, container: str, unit_id: str) -> bool:
        """Delete a unit file.  Returns False if there was nothing to delete."""
        path = self.unit_path(container, unit_id)
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        return True

    def has(self, container: str, unit_id: str) -> bool:
        return os.path.isfile(self.unit_path(container, unit_id))

    def stored_ids(self, container: str) -> list[str]:
        """Ids of every unit file in the container directory (sorted)."""
        cdir = self.container_dir(container)
        if not os.path.isdir(cdir):
            return []
        return sorted(
            name[: -len(self.extension)]
            for name in os.listdir(cdir)
            if name.endswith(self.extension)
            and os.path.isfile(os.path.join(cdir, name))
        )

    # ------------------------------------------------------------------
    # Manifests
    # ------------------------------------------------------------------

    def read_manifest(self, container: str) -> Optional[Manifest]:
        """Return the container's manifest, or ``None`` if it has none."""
        path = self.manifest_path(container)
        if not os.path.isfile(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        try:
            return Manifest.from_json(text)
        except ManifestError as exc:
            raise ManifestError(f"{path}: {exc}") from exc

    def write_manifest(self, container: str, manifest: Manifest) -> None:
        """Persist *manifest* atomically (temp file + rename)."""
        path = self.manifest_path(container)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(manifest.to_json())
        os.replace(tmp, path)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def exists(self, container: str) -> bool:
        return os.path.isfile(self.manifest_path(container))

    def containers(self) -> list[str]:
        """All containers under the store root, sorted."""
        found: list[str] = []
        root = self.root_dir()
        if not os.path.isdir(root):
            return found
        for dirpath, _dirnames, filenames in os.walk(root):
            if MANIFEST_FILE in filenames and dirpath != root:
                rel = os.path.relpath(dirpath, root)
                found.append(rel.replace(os.sep, "/"))
        return sorted(found)

    def save(self, decomposition) -> None:
        """Replace a container with a fresh decomposition.

        Unit files left over from an earlier split are removed.
        """
        container = decomposition.container
        fresh = {u.id for u in decomposition.units}
        for stale in self.stored_ids(container):
            if stale not in fresh:
                self.remove(container, stale)
                logger.debug("Removed stale unit %s/%s", container, stale)
        for unit in decomposition.units:
            self.put(container, unit)
        self.write_manifest(container, decomposition.manifest)
