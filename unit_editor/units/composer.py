"""
Composer — reassembles source text from stored units in manifest order.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .errors import ContainerNotFoundError, MissingUnitError
from .models import Manifest, Unit, clean_block

logger = logging.getLogger(__name__)

SEPARATOR = "\n\n"


def join_units(
    manifest: Manifest,
    lookup: Callable[[str], Optional[Unit]],
    container: str = "",
) -> str:
    """Concatenate units in manifest order with one blank line between.

    Empty units are skipped.  Output is deterministic and always ends in
    a single newline.

    Raises
    ------
    MissingUnitError
        If *lookup* returns ``None`` for any manifest entry.
    """
    parts: list[str] = []
    for unit_id in manifest:
        unit = lookup(unit_id)
        if unit is None:
            raise MissingUnitError(container, unit_id)
        text = clean_block(unit.content)
        if text:
            parts.append(text)
    return SEPARATOR.join(parts) + "\n"


class Composer:
    """Materializes containers from a :class:`UnitStore`."""

    def __init__(self, store) -> None:
        self.store = store

    def compose(self, container: str) -> str:
        manifest = self.store.read_manifest(container)
        if manifest is None:
            raise ContainerNotFoundError(
                f"No manifest for '{container}' in {self.store.root}. "
                "Make sure the file was split first."
            )
        return join_units(
            manifest,
            lambda unit_id: self.store.get(container, unit_id),
            container,
        )

    def unsplit_file(self, source_path: str) -> str:
        """Recreate *source_path* from its container and return the text."""
        container = self.store.container_for(source_path)
        text = self.compose(container)
        with open(source_path, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info("Recreated %s from %s", source_path,
                    self.store.container_dir(container))
        return text
