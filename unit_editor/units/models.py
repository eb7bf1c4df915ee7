"""
Unit model — units, manifests and edit records.

A *container* holds the units of one source file plus a manifest giving
their recomposition order.  Edit records are what the generative service
emits; their wire names follow the JSON format used in prompts.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, Optional

from .errors import ManifestError

HEADER_ID = "imports"
SHARED_ID = "varsandstructs"

RESERVED_IDS = (HEADER_ID, SHARED_ID)


class UnitKind(str, Enum):
    HEADER = "header"
    SHARED_DECLS = "shared_decls"
    FUNCTION = "function"

    @classmethod
    def for_id(cls, unit_id: str) -> "UnitKind":
        """Infer the kind of a stored unit from its id."""
        if unit_id == HEADER_ID:
            return cls.HEADER
        if unit_id == SHARED_ID:
            return cls.SHARED_DECLS
        return cls.FUNCTION


@dataclass
class Unit:
    """One independently editable chunk of a source file."""
    id: str
    kind: UnitKind
    content: str


@dataclass(frozen=True)
class Manifest:
    """Ordered list of unit ids for one container.

    Manifests are values: the mutating helpers return a new manifest.
    """
    ids: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        ids = tuple(self.ids)
        object.__setattr__(self, "ids", ids)
        seen: set[str] = set()
        for unit_id in ids:
            if not isinstance(unit_id, str) or not unit_id:
                raise ManifestError(f"Invalid unit id in manifest: {unit_id!r}")
            if unit_id in seen:
                raise ManifestError(f"Duplicate unit id in manifest: {unit_id}")
            seen.add(unit_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self.ids

    def index(self, unit_id: str) -> int:
        return self.ids.index(unit_id)

    def without(self, unit_id: str) -> "Manifest":
        return Manifest(tuple(i for i in self.ids if i != unit_id))

    def with_inserted(
        self,
        unit_id: str,
        before: Optional[str] = None,
        after: Optional[str] = None,
    ) -> "Manifest":
        """Return a manifest with *unit_id* spliced next to an anchor.

        *unit_id* is first removed if already present.  Without an anchor
        (or with an anchor that is not in the manifest) it is appended.
        """
        base = list(self.without(unit_id).ids)
        if before is not None and before in base:
            base.insert(base.index(before), unit_id)
        elif after is not None and after in base:
            base.insert(base.index(after) + 1, unit_id)
        else:
            base.append(unit_id)
        return Manifest(tuple(base))

    def to_json(self) -> str:
        return json.dumps(list(self.ids))

    @classmethod
    def from_json(cls, text: str) -> "Manifest":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"Manifest is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise ManifestError("Manifest must be a JSON array of unit ids")
        return cls(tuple(data))


@dataclass
class EditRecord:
    """One replace/create/delete instruction for a single file or unit."""
    path: str
    content: Optional[str] = None
    delete: bool = False
    insert_before: Optional[str] = None
    insert_after: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "EditRecord":
        """Build a record from its wire form.

        Raises ``ValueError`` for objects that are not edit records.
        """
        if not isinstance(data, dict):
            raise ValueError("edit record must be a JSON object")
        path = data.get("filepath")
        if not isinstance(path, str) or not path.strip():
            raise ValueError("edit record is missing 'filepath'")

        delete = data.get("delete", False)
        if delete is None:
            delete = False
        if not isinstance(delete, bool):
            raise ValueError(f"'delete' must be a boolean in record for {path}")

        values = {}
        for wire, attr in (("content", "content"),
                           ("insert-before", "insert_before"),
                           ("insert-after", "insert_after")):
            value = data.get(wire)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"'{wire}' must be a string in record for {path}")
            values[attr] = value

        return cls(path=path.strip(), delete=delete, **values)

    def to_dict(self) -> dict:
        out: dict = {"filepath": self.path}
        if self.content is not None:
            out["content"] = self.content
        if self.delete:
            out["delete"] = True
        if self.insert_before is not None:
            out["insert-before"] = self.insert_before
        if self.insert_after is not None:
            out["insert-after"] = self.insert_after
        return out

    def evolve(self, **changes) -> "EditRecord":
        return replace(self, **changes)


def clean_block(text: str) -> str:
    """Drop leading/trailing blank lines and trailing whitespace."""
    lines = text.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(line.rstrip() for line in lines)


def records_to_json(records: list[EditRecord]) -> str:
    """Serialize records in the wire format used by prompts."""
    return json.dumps([r.to_dict() for r in records])
