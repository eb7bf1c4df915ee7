"""
Edit applier — lands a change-set on the unit store and the file system.

Records that address a unit file go through the manifest reconciler;
any other path (a Makefile, a README...) is written or deleted directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from ..units.models import EditRecord

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Summary of applying a change-set."""
    units_updated: list[str] = field(default_factory=list)
    units_deleted: list[str] = field(default_factory=list)
    files_written: list[str] = field(default_factory=list)
    files_deleted: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def total(self) -> int:
        return (len(self.units_updated) + len(self.units_deleted)
                + len(self.files_written) + len(self.files_deleted))


def apply_changes(records: list[EditRecord], reconciler,
                  base_dir: Optional[str] = None) -> ApplyResult:
    """Apply every record; per-file I/O failures are collected, not raised.

    Relative plain-file paths are taken from *base_dir* (default: the
    current directory).  A unit delete followed later in the same
    change-set by new content for that unit is a replacement: the delete
    is skipped so the unit keeps its manifest position.
    """
    result = ApplyResult()
    store = reconciler.store
    rewritten = _rewritten_units(records, store)

    for index, record in enumerate(records):
        if not record.delete and record.content is None:
            logger.warning("Record for %s has neither content nor delete; skipped",
                           record.path)
            continue

        address = store.resolve(record.path)
        if address is not None:
            if record.delete and rewritten.get(address, -1) > index:
                logger.debug("Delete of %s/%s superseded by later content",
                             *address)
                continue
            reconciler.reconcile(record)
            if record.delete:
                result.units_deleted.append(record.path)
            else:
                result.units_updated.append(record.path)
            continue

        target = os.path.join(base_dir, record.path) if base_dir else record.path

        if record.delete:
            try:
                os.remove(target)
            except FileNotFoundError:
                logger.debug("Delete of missing file %s ignored", record.path)
            except OSError as exc:
                logger.error("Error deleting file %s: %s", record.path, exc)
                result.errors.append(f"{record.path}: {exc}")
            else:
                logger.info("Deleted file: %s", record.path)
                result.files_deleted.append(record.path)
            continue

        try:
            parent = os.path.dirname(target)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                f.write(record.content)
        except OSError as exc:
            logger.error("Error writing file %s: %s", record.path, exc)
            result.errors.append(f"{record.path}: {exc}")
            continue
        logger.info("Updated file: %s", record.path)
        result.files_written.append(record.path)

    return result


def _rewritten_units(records: list[EditRecord], store) -> dict:
    """Index of the last content record for each unit address."""
    last: dict = {}
    for index, record in enumerate(records):
        if record.delete or record.content is None:
            continue
        address = store.resolve(record.path)
        if address is not None:
            last[address] = index
    return last
