"""
Manifest reconciler — lands unit edits and keeps manifest order right.

Placement rules for a non-delete edit on an existing container:

1. ``insert_before`` names a unit in the manifest -> splice before it
2. else ``insert_after`` names a unit in the manifest -> splice after it
3. else the unit is already listed -> keep its position
4. else append at the end

A hint naming an absent unit degrades to rules 3/4.  Deletes drop the
id from the manifest and the unit from the store; repeating a delete is
a no-op.
"""

from __future__ import annotations

import logging

from .directives import absorb_directives
from .models import EditRecord, Manifest, Unit, UnitKind

logger = logging.getLogger(__name__)


class ManifestReconciler:
    """Applies unit-level edit records to a :class:`UnitStore`."""

    def __init__(self, store) -> None:
        self.store = store

    def reconcile(self, record: EditRecord) -> EditRecord:
        """Apply *record* if it targets a unit; return the landed record.

        Records for paths outside the store are returned unchanged.
        """
        address = self.store.resolve(record.path)
        if address is None:
            return record
        container, unit_id = address

        if record.delete:
            self.delete(container, unit_id)
            return record
        if record.content is None:
            logger.warning("Record for %s has neither content nor delete; skipped",
                           record.path)
            return record

        record = absorb_directives(record, self.store.extension)
        self._land(container, unit_id, record)
        return record

    def delete(self, container: str, unit_id: str) -> None:
        manifest = self.store.read_manifest(container)
        if manifest is not None and unit_id in manifest:
            self.store.write_manifest(container, manifest.without(unit_id))
        removed = self.store.remove(container, unit_id)
        if removed:
            logger.info("Deleted unit %s/%s", container, unit_id)
        else:
            logger.debug("Delete of missing unit %s/%s ignored", container, unit_id)

    def place(self, manifest: Manifest, unit_id: str, record: EditRecord) -> Manifest:
        """Return *manifest* with *unit_id* positioned per the placement rules."""
        before = record.insert_before
        after = record.insert_after
        if unit_id in (before, after):
            before = after = None

        if before is not None and before in manifest:
            return manifest.with_inserted(unit_id, before=before)
        if after is not None and after in manifest:
            return manifest.with_inserted(unit_id, after=after)
        if before is not None or after is not None:
            logger.warning("Placement target %s not in manifest; keeping/appending %s",
                           before or after, unit_id)
        if unit_id in manifest:
            return manifest
        return manifest.with_inserted(unit_id)

    def _land(self, container: str, unit_id: str, record: EditRecord) -> None:
        manifest = self.store.read_manifest(container)
        unit = Unit(id=unit_id, kind=UnitKind.for_id(unit_id),
                    content=record.content)
        self.store.put(container, unit)

        if manifest is None:
            # put() created a single-entry manifest
            logger.info("Created container %s with unit %s", container, unit_id)
            return

        updated = self.place(manifest, unit_id, record)
        if updated != manifest:
            self.store.write_manifest(container, updated)
        logger.debug("Placed %s/%s at %d of %d", container, unit_id,
                      updated.index(unit_id), len(updated))
