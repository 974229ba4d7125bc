"""Tree-sitter parse quality gate for JavaScript sources."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParseGateMetrics:
    has_error: bool
    error_ratio: float
    total_nodes: int
    error_nodes: int
    missing_nodes: int


def _walk_counts(root) -> tuple[int, int, int]:
    total = error_nodes = missing_nodes = 0
    stack = [root]
    while stack:
        node = stack.pop()
        total += 1
        if node.type == "ERROR":
            error_nodes += 1
        if getattr(node, "is_missing", False):
            missing_nodes += 1
        stack.extend(node.children)
    return total, error_nodes, missing_nodes


def gate_tree(tree, *, max_error_ratio: float) -> tuple[bool, ParseGateMetrics]:
    """Return (ok, metrics). A clean tree always passes."""

    root = tree.root_node
    total, error_nodes, missing_nodes = _walk_counts(root)
    error_ratio = (error_nodes + missing_nodes) / max(total, 1)
    metrics = ParseGateMetrics(
        has_error=bool(root.has_error),
        error_ratio=float(error_ratio),
        total_nodes=int(total),
        error_nodes=int(error_nodes),
        missing_nodes=int(missing_nodes),
    )
    ok = (not metrics.has_error) or (metrics.error_ratio <= max_error_ratio and max_error_ratio > 0.0)
    return ok, metrics
