"""
Decomposer — splits a Go source file into independently editable units.

A file becomes three kinds of unit:

* ``imports``         package clause + import block (with any comments,
                      build constraints or license text above them)
* ``varsandstructs``  every top-level type/var/const declaration
* one unit per function or method, keyed by name

Comments travel with the declaration that follows them, so ``//go:embed``
directives and doc comments are never dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from . import go_parser
from .errors import DecomposeError
from .models import (
    HEADER_ID, RESERVED_IDS, SHARED_ID, Manifest, Unit, UnitKind, clean_block,
)

logger = logging.getLogger(__name__)


@dataclass
class _Piece:
    """A top-level declaration plus the comments attached to it."""
    node: object
    start: int
    end: int
    end_row: int


@dataclass
class Decomposition:
    """Result of splitting one source file."""
    container: str
    units: list[Unit] = field(default_factory=list)
    manifest: Manifest = field(default_factory=Manifest)

    def unit(self, unit_id: str) -> Optional[Unit]:
        for u in self.units:
            if u.id == unit_id:
                return u
        return None

    @property
    def by_id(self) -> dict[str, Unit]:
        return {u.id: u for u in self.units}


class Decomposer:
    """Pure transformer: Go source text -> units + initial manifest."""

    def decompose(self, source: Union[str, bytes], container: str) -> Decomposition:
        """Split *source* into units.

        Raises
        ------
        DecomposeError
            If the source is not valid UTF-8 or does not parse as Go.
        """
        data = self._as_bytes(source, container)
        root = go_parser.parse(data)

        where = go_parser.first_error(root)
        if where is not None:
            raise DecomposeError(
                f"{container}: syntax error at line {where[0]}, column {where[1]}"
            )

        header, pieces = self._collect(root, data, container)

        header_unit = Unit(
            id=HEADER_ID,
            kind=UnitKind.HEADER,
            content=clean_block(data[:header.end].decode("utf-8")),
        )

        shared_parts: list[str] = []
        functions: list[Unit] = []
        taken: set[str] = set(RESERVED_IDS)

        for piece in pieces:
            text = clean_block(data[piece.start:piece.end].decode("utf-8"))
            if piece.node.type in go_parser.DECL_NODES:
                shared_parts.append(text)
                continue
            unit_id = self._unit_id(piece.node, taken)
            taken.add(unit_id)
            functions.append(Unit(id=unit_id, kind=UnitKind.FUNCTION, content=text))

        shared_unit = Unit(
            id=SHARED_ID,
            kind=UnitKind.SHARED_DECLS,
            content="\n\n".join(shared_parts),
        )

        units = [header_unit, shared_unit] + functions
        manifest = Manifest(tuple(u.id for u in units))
        logger.debug("Decomposed %s into %d units", container, len(units))
        return Decomposition(container=container, units=units, manifest=manifest)

    def split_file(self, path: str, store) -> Decomposition:
        """Decompose the file at *path* and persist it through *store*."""
        with open(path, "rb") as fh:
            data = fh.read()
        container = store.container_for(path)
        decomposition = self.decompose(data, container)
        store.save(decomposition)
        logger.info("Split %s into %d units in %s", path,
                    len(decomposition.units), store.container_dir(container))
        return decomposition

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _as_bytes(source: Union[str, bytes], container: str) -> bytes:
        if isinstance(source, str):
            return source.encode("utf-8")
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecomposeError(f"{container}: source is not UTF-8: {exc}") from exc
        return source

    @staticmethod
    def _collect(root, data: bytes, container: str) -> tuple[_Piece, list[_Piece]]:
        """Walk top-level nodes and group comments with declarations."""
        header: Optional[_Piece] = None
        pieces: list[_Piece] = []
        last: Optional[_Piece] = None
        pending_start: Optional[int] = None
        pending_end = 0

        for child in root.children:
            kind = child.type

            if kind == go_parser.COMMENT_NODE:
                if (last is not None and pending_start is None
                        and child.start_point[0] == last.end_row):
                    # trailing comment on the declaration's last line
                    last.end = child.end_byte
                    last.end_row = child.end_point[0]
                elif pending_start is None:
                    pending_start = child.start_byte
                pending_end = child.end_byte
                continue

            if kind in (go_parser.PACKAGE_NODE, go_parser.IMPORT_NODE):
                if pieces:
                    raise DecomposeError(
                        f"{container}: {kind} after top-level declarations")
                if kind == go_parser.PACKAGE_NODE and header is not None:
                    raise DecomposeError(f"{container}: duplicate package clause")
                if kind == go_parser.IMPORT_NODE and header is None:
                    raise DecomposeError(f"{container}: import before package clause")
                if header is None:
                    header = _Piece(child, 0, child.end_byte, child.end_point[0])
                else:
                    header.end = child.end_byte
                    header.end_row = child.end_point[0]
                pending_start = None
                last = header
                continue

            if kind in go_parser.DECL_NODES or kind in go_parser.FUNC_NODES:
                if header is None:
                    raise DecomposeError(f"{container}: missing package clause")
                start = pending_start if pending_start is not None else child.start_byte
                last = _Piece(child, start, child.end_byte, child.end_point[0])
                pieces.append(last)
                pending_start = None
                continue

            if child.is_named:
                raise DecomposeError(
                    f"{container}: unexpected top-level {kind} at line "
                    f"{child.start_point[0] + 1}")

        if header is None:
            raise DecomposeError(f"{container}: missing package clause")

        # Comments after the last declaration stay with it
        if pending_start is not None and last is not None:
            last.end = max(last.end, pending_end)

        return header, pieces

    @staticmethod
    def _unit_id(node, taken: set[str]) -> str:
        """Deterministic unit id for a function or method.

        First come keeps the bare name; a later method whose name is
        taken becomes ``Receiver.name``; anything still colliding gets an
        ordinal suffix ``#2``, ``#3``...
        """
        name = go_parser.function_name(node)
        unit_id = name
        if unit_id in taken:
            receiver = go_parser.receiver_type(node)
            if receiver:
                unit_id = f"{receiver}.{name}"
        if unit_id in taken:
            n = 2
            while f"{unit_id}#{n}" in taken:
                n += 1
            unit_id = f"{unit_id}#{n}"
        return unit_id
