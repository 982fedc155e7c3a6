"""Text sources — pick the lines to send out of a document.

Positions follow the usual editor convention: rows are 1-based, columns
0-based. A selection ending at ``MAXCOL`` is linewise.

The syntax-tree helpers work on tree-sitter nodes (anything with ``type``,
``parent`` and ``text`` attributes) and walk upwards from the node under
the cursor.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

MAXCOL = 2**31 - 1

Position = tuple[int, int]


def buffer_text(
    lines: Sequence[str], start_row: int, start_col: int, end_row: int, end_col: int
) -> list[str]:
    """Text between two 0-based positions, end column exclusive.

    Columns are clamped to the line lengths.
    """
    if not lines or end_row < start_row:
        return []
    end_row = min(end_row, len(lines) - 1)
    if start_row == end_row:
        return [lines[start_row][start_col:end_col]]
    result = [lines[start_row][start_col:]]
    result.extend(lines[start_row + 1 : end_row])
    result.append(lines[end_row][:end_col])
    return result


def selection_lines(lines: Sequence[str], start: Position, end: Position) -> list[str]:
    """Lines of a visual selection between the ``<`` and ``>`` marks.

    A linewise selection returns whole lines, a charwise one the exact
    text with the end column included.
    """
    (row1, col1), (row2, col2) = start, end
    if col1 == 0 and col2 == MAXCOL:
        return list(lines[row1 - 1 : row2])
    return buffer_text(lines, row1 - 1, col1, row2 - 1, col2 + 1)


def motion_lines(lines: Sequence[str], start: Position, end: Position) -> list[str]:
    """Text covered by a motion between the ``[`` and ``]`` marks, inclusive."""
    (row1, col1), (row2, col2) = start, end
    return buffer_text(lines, row1 - 1, col1, row2 - 1, col2 + 1)


def node_lines(node: Any) -> list[str]:
    text = node.text
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return text.split("\n")


def node_upwards(
    node: Any, type: str | None = None, parent_type: str | None = None
) -> Any | None:
    """First node, starting at ``node`` and walking up, matching all filters.

    ``type`` matches the node's own type, ``parent_type`` the type of its
    parent. Either may be left out.
    """
    while node is not None:
        parent = node.parent
        if (type is None or node.type == type) and (
            parent_type is None or (parent is not None and parent.type == parent_type)
        ):
            return node
        node = parent
    return None


def root_of(node: Any) -> Any:
    while node.parent is not None:
        node = node.parent
    return node


def find_node(node: Any, type: str) -> list[str]:
    """Text of the closest enclosing node of ``type``, or no lines."""
    found = node_upwards(node, type=type)
    return node_lines(found) if found is not None else []


def find_node_by_parent(node: Any, parent_type: str) -> list[str]:
    """Text of the closest enclosing node whose parent is of ``parent_type``.

    For a Lisp this is the top-level form around the cursor when
    ``parent_type`` is the source root.
    """
    found = node_upwards(node, parent_type=parent_type)
    return node_lines(found) if found is not None else []


def first_capture(captures: Mapping[str, Sequence[Any]], name: str) -> list[str]:
    """Text of the first node captured as ``name`` in a query result."""
    nodes = captures.get(name) or []
    return node_lines(nodes[0]) if nodes else []


def query_from(node: Any, query: Any, capture: str) -> list[str]:
    """Run ``query`` from ``node`` and return the text of its first ``capture``.

    ``query.captures(node)`` must return a mapping of capture names to
    nodes, the shape ``tree_sitter.QueryCursor.captures`` returns.
    """
    return first_capture(query.captures(node), capture)


def query_from_node(node: Any, type: str, query: Any, capture: str) -> list[str]:
    found = node_upwards(node, type=type)
    return query_from(found, query, capture) if found is not None else []


def query_from_node_by_parent(
    node: Any, parent_type: str, query: Any, capture: str
) -> list[str]:
    found = node_upwards(node, parent_type=parent_type)
    return query_from(found, query, capture) if found is not None else []


def query_from_root(node: Any, query: Any, capture: str) -> list[str]:
    """Run ``query`` over the whole tree ``node`` belongs to."""
    return query_from(root_of(node), query, capture)
