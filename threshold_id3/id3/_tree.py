"""Decision tree nodes and structural utilities.

Traversals are iterative, so trees deeper than the interpreter recursion limit
are handled like any other tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence, Tuple, TypeAlias

from threshold_id3.core import CorruptionError, DataError


@dataclass(frozen=True, slots=True)
class Leaf:
    """A terminal node."""

    prediction: bool = field(metadata={"description": "The predicted label."})


@dataclass(frozen=True, slots=True)
class Internal:
    """A decision point splitting on ``features[split_attribute] < split_threshold``."""

    split_attribute: int = field(
        metadata={"description": "Index of the attribute tested at this node."}
    )
    split_threshold: float = field(
        metadata={"description": "Samples strictly below this value go left."}
    )
    left: TreeNode = field(
        metadata={"description": "Subtree for samples satisfying the test."}
    )
    right: TreeNode = field(
        metadata={"description": "Subtree for samples failing the test."}
    )

    def goes_left(self, features: Sequence[float]) -> bool:
        """Apply the branching rule to a feature vector."""
        try:
            return bool(features[self.split_attribute] < self.split_threshold)
        except IndexError:
            raise DataError(
                f"Feature vector of length {len(features)} has no attribute "
                f"{self.split_attribute}"
            ) from None


TreeNode: TypeAlias = Leaf | Internal


def walk(tree: TreeNode | None) -> Iterator[Tuple[TreeNode, int]]:
    """Yield every node with its distance from ``tree``, in preorder."""
    if tree is None:
        return
    stack: List[Tuple[TreeNode, int]] = [(tree, 0)]
    while stack:
        node, level = stack.pop()
        yield node, level
        if isinstance(node, Internal):
            stack.append((node.right, level + 1))
            stack.append((node.left, level + 1))


def node_count(tree: TreeNode | None) -> int:
    """Counts the total number of nodes in a tree.

    Args:
        tree: Root of a tree, or None for an absent tree.

    Returns:
        Number of nodes in total, 0 for an absent tree.
    """
    return sum(1 for _ in walk(tree))


def leaf_count(tree: TreeNode | None) -> int:
    """Counts the leaves of a tree."""
    return sum(1 for node, _ in walk(tree) if isinstance(node, Leaf))


def depth(tree: TreeNode | None) -> int:
    """Finds the depth of a tree.

    Args:
        tree: Root of a tree, or None for an absent tree.

    Returns:
        The maximum number of edges from the root to a leaf. A single leaf has
        depth 0 and an absent tree has depth -1.
    """
    return max((level for _, level in walk(tree)), default=-1)


def route(tree: TreeNode, features: Sequence[float]) -> Leaf:
    """Follow the branching rules from ``tree`` down to the leaf for ``features``."""
    node = tree
    while isinstance(node, Internal):
        node = node.left if node.goes_left(features) else node.right
    return node


def predict_one(tree: TreeNode, features: Sequence[float]) -> bool:
    """Predicted label of a single feature vector."""
    return route(tree, features).prediction


def tree_to_records(tree: TreeNode) -> List[Dict[str, Any]]:
    """Flatten a tree into node records numbered in preorder.

    Internal records refer to their children by id, so the records can be
    stored without nesting. The root always has id 0.
    """
    records: List[Dict[str, Any]] = []
    pending: List[Tuple[TreeNode, Dict[str, Any] | None, str]] = [(tree, None, "")]
    while pending:
        node, parent, side = pending.pop()
        node_id = len(records)
        if parent is not None:
            parent[side] = node_id
        if isinstance(node, Leaf):
            records.append({"id": node_id, "type": "leaf", "prediction": node.prediction})
            continue
        record: Dict[str, Any] = {
            "id": node_id,
            "type": "internal",
            "split_attribute": node.split_attribute,
            "split_threshold": node.split_threshold,
            "left": None,
            "right": None,
        }
        records.append(record)
        pending.append((node.right, record, "right"))
        pending.append((node.left, record, "left"))
    return records


def tree_from_records(records: Sequence[Dict[str, Any]]) -> TreeNode:
    """Rebuild a tree from the records produced by :func:`tree_to_records`."""
    if not records:
        raise CorruptionError("A tree needs at least one node")

    built: Dict[int, TreeNode] = {}
    try:
        # Children always carry larger ids than their parent.
        for record in sorted(records, key=lambda r: int(r["id"]), reverse=True):
            node_id = int(record["id"])
            node_type = record["type"]
            if node_type == "leaf":
                built[node_id] = Leaf(prediction=bool(record["prediction"]))
            elif node_type == "internal":
                built[node_id] = Internal(
                    split_attribute=int(record["split_attribute"]),
                    split_threshold=float(record["split_threshold"]),
                    left=built.pop(int(record["left"])),
                    right=built.pop(int(record["right"])),
                )
            else:
                raise CorruptionError(
                    f"Unknown type {node_type!r} for node {node_id}"
                )
    except (KeyError, TypeError, ValueError) as e:
        raise CorruptionError(f"Malformed tree records: {e!r}") from e

    if list(built) != [0]:
        raise CorruptionError(
            f"Tree records do not form a single tree rooted at 0: {sorted(built)}"
        )
    return built[0]
