"""
Tree-sitter Go parser used by the decomposer.

Uses tree-sitter >= 0.22 API with the ``tree-sitter-go`` language package.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import tree_sitter as ts
import tree_sitter_go

logger = logging.getLogger(__name__)

# Top-level node types of a Go ``source_file``
PACKAGE_NODE = "package_clause"
IMPORT_NODE = "import_declaration"
DECL_NODES = {"type_declaration", "var_declaration", "const_declaration"}
FUNC_NODES = {"function_declaration", "method_declaration"}
COMMENT_NODE = "comment"

_RECEIVER_TYPE = re.compile(r"\(\s*(?:[A-Za-z_]\w*\s+)?\*?\s*([A-Za-z_]\w*)")

# Cache Language / Parser objects to avoid repeated construction
_LANG_CACHE: dict[str, object] = {}
_PARSER_CACHE: dict[str, object] = {}


def get_language():
    """Return the tree_sitter.Language object for Go (cached)."""
    if "go" not in _LANG_CACHE:
        _LANG_CACHE["go"] = ts.Language(tree_sitter_go.language())
    return _LANG_CACHE["go"]


def get_parser():
    """Return a tree-sitter Parser configured for Go (cached)."""
    if "go" not in _PARSER_CACHE:
        _PARSER_CACHE["go"] = ts.Parser(get_language())
        logger.debug("Created tree-sitter parser for go")
    return _PARSER_CACHE["go"]


def parse(source_bytes: bytes):
    """Parse *source_bytes* and return the tree's root node."""
    return get_parser().parse(source_bytes).root_node


def node_text(node) -> str:
    """Decode a tree-sitter Node's text as UTF-8."""
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace") if node.text else ""


def function_name(node) -> str:
    """Return the declared name of a function or method node."""
    return node_text(node.child_by_field_name("name"))


def receiver_type(node) -> Optional[str]:
    """Return the base receiver type of a method (``*Server`` -> ``Server``)."""
    if node.type != "method_declaration":
        return None
    m = _RECEIVER_TYPE.match(node_text(node.child_by_field_name("receiver")))
    return m.group(1) if m else None


def first_error(node) -> Optional[tuple[int, int]]:
    """Return the (row, column) of the first ERROR/MISSING node, if any."""
    if node.type == "ERROR" or node.is_missing:
        return node.start_point[0] + 1, node.start_point[1] + 1
    if not node.has_error:
        return None
    for child in node.children:
        found = first_error(child)
        if found:
            return found
    return None
