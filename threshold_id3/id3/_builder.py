"""ID3 tree induction over continuous attributes.

Every node searches all attributes for the threshold split with the lowest
conditional entropy of the label. A split is kept only when it is strictly
better than the entropy of the node itself; otherwise the node becomes a
majority-vote leaf.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from threshold_id3.core import CorruptionError, InvalidInputError, settings
from ._entropy import binary_entropy, check_log_base, conditional_entropy
from ._tree import Internal, Leaf, TreeNode
from ._types import IndexArray, Sample


logger = logging.getLogger(__name__)

FeatureMatrix = npt.NDArray[np.float64]
LabelArray = npt.NDArray[np.bool_]


@dataclass(frozen=True, slots=True)
class Split:
    """The best threshold split found at a node."""

    attribute: int = field(metadata={"description": "Attribute index to test."})
    threshold: float = field(
        metadata={"description": "Samples with a value below this go left."}
    )
    entropy: float = field(
        metadata={"description": "Conditional entropy of the label after the split."}
    )


@dataclass(slots=True)
class BuildTask:
    node_id: int
    depth: int
    sample_indices: IndexArray


def samples_to_arrays(samples: Sequence[Sample]) -> Tuple[FeatureMatrix, LabelArray]:
    """Copy samples into a feature matrix and a label vector.

    Raises:
        InvalidInputError: If there are no samples, their feature vectors
            differ in length or hold non-finite values.
    """
    samples = list(samples)
    if not samples:
        raise InvalidInputError("Empty data set")

    num_features = samples[0].num_features
    for i, sample in enumerate(samples):
        if sample.num_features != num_features:
            raise InvalidInputError(
                f"Sample {i} has {sample.num_features} features, "
                f"expected {num_features}"
            )

    X = np.array([s.features for s in samples], dtype=np.float64).reshape(
        len(samples), num_features
    )
    y = np.array([s.label for s in samples], dtype=np.bool_)
    check_arrays(X, y)
    return X, y


def check_arrays(X: FeatureMatrix, y: LabelArray) -> None:
    """Raise InvalidInputError unless ``X`` and ``y`` can be learned from."""
    if X.ndim != 2:
        raise InvalidInputError(f"Features must be 2-dimensional, got {X.ndim}")
    if X.shape[0] == 0:
        raise InvalidInputError("Empty data set")
    if X.shape[1] == 0:
        raise InvalidInputError("Samples must have at least one feature")
    if y.shape != (X.shape[0],):
        raise InvalidInputError(
            f"Expected {X.shape[0]} labels, got array of shape {y.shape}"
        )
    if not np.isfinite(X).all():
        raise InvalidInputError("Feature values must be finite numbers")


def candidate_splits(
    values: npt.NDArray[np.float64], labels: LabelArray
) -> Tuple[npt.NDArray[np.float64], IndexArray, IndexArray]:
    """Eligible threshold splits of a single attribute.

    Samples are stably sorted by value, negatives first among equal values.
    A position ``i`` of the sorted order is eligible when its label differs
    from the one before it, or when it starts a new value right after a run of
    equal values that holds both labels. The split is drawn at the start of the
    run containing ``i``, so equal values are never separated. Positions whose
    run starts at 0 would leave the left side empty, and splits leaving both
    sides with the positive proportion of the whole gain nothing; both are
    dropped.

    Returns:
        Thresholds (the value at each eligible position), the number of
        samples left of each split and the number of positive labels among
        them, in sorted order.
    """
    order = np.argsort(labels, kind="stable")
    order = order[np.argsort(values[order], kind="stable")]
    v = values[order]
    lab = labels[order]
    n = v.shape[0]

    new_run = np.ones(n, dtype=np.bool_)
    new_run[1:] = v[1:] != v[:-1]
    label_change = np.zeros(n, dtype=np.bool_)
    label_change[1:] = lab[1:] != lab[:-1]

    run_id = np.cumsum(new_run) - 1
    run_start = np.flatnonzero(new_run)[run_id]
    mixed_run = (
        np.bincount(run_id, weights=(label_change & ~new_run).astype(np.float64)) > 0
    )
    after_mixed = np.zeros(n, dtype=np.bool_)
    after_mixed[1:] = new_run[1:] & mixed_run[run_id[:-1]]

    positive_prefix = np.concatenate(([0], np.cumsum(lab, dtype=np.int64)))
    # A side keeping the parent's positive proportion gains nothing; compared
    # in integers since the entropy sum may round just below the parent's.
    same_proportion = positive_prefix[run_start] * n == positive_prefix[n] * run_start

    positions = np.flatnonzero(
        (label_change | after_mixed) & (run_start > 0) & ~same_proportion
    )
    left_total = run_start[positions]
    left_positive = positive_prefix[left_total]
    return v[positions], left_total, left_positive


def find_best_split(
    X: FeatureMatrix, y: LabelArray, log_base: float = 2.0
) -> Split | None:
    """Search every attribute for the split with the lowest conditional entropy.

    The search starts from the entropy of ``y`` itself and only adopts strictly
    lower values, so ties keep the first split found: lowest attribute, then
    earliest position in sorted order.

    Returns:
        The best split, or None if no split improves on the node's entropy.
    """
    total = y.shape[0]
    total_positive = int(np.count_nonzero(y))
    min_entropy = float(binary_entropy(total_positive / total, log_base))
    best: Split | None = None

    for attribute in range(X.shape[1]):
        thresholds, left_total, left_positive = candidate_splits(X[:, attribute], y)
        if thresholds.size == 0:
            continue

        entropies = conditional_entropy(
            left_total, left_positive, total, total_positive, log_base
        )
        i = int(np.argmin(entropies))
        if entropies[i] < min_entropy:
            min_entropy = float(entropies[i])
            best = Split(
                attribute=attribute,
                threshold=float(thresholds[i]),
                entropy=min_entropy,
            )
            logger.debug(
                f"New minimum found: {min_entropy:.6f} "
                f"(attribute {attribute} < {best.threshold})"
            )

    return best


def grow_tree(X: FeatureMatrix, y: LabelArray, log_base: float = 2.0) -> TreeNode:
    """Grow a tree from validated arrays.

    Pending nodes are kept on a frontier of build tasks, each owning the
    indices of the samples that reached it. Nodes are numbered as they are
    discovered, so a child always has a larger id than its parent and the
    immutable nodes can be assembled bottom-up by descending id.
    """
    check_arrays(X, y)
    log_base = check_log_base(log_base)

    leaves: Dict[int, bool] = {}
    splits: Dict[int, Tuple[Split, int, int]] = {}
    frontier: List[BuildTask] = [
        BuildTask(
            node_id=0,
            depth=0,
            sample_indices=np.arange(X.shape[0], dtype=np.intp),
        )
    ]
    next_id = 1

    while frontier:
        task = frontier.pop()
        sample_y = y[task.sample_indices]
        size = sample_y.shape[0]
        positives = int(np.count_nonzero(sample_y))

        if positives == 0 or positives == size:
            leaves[task.node_id] = positives > 0
            logger.debug(
                f"Pure node {task.node_id} at depth {task.depth} ({size} samples)"
            )
            continue

        sample_X = X[task.sample_indices]
        split = find_best_split(sample_X, sample_y, log_base)
        if split is None:
            leaves[task.node_id] = positives / size >= 0.5
            logger.debug(
                f"Terminating at node {task.node_id}. No split improves entropy "
                f"({positives}/{size} positive)."
            )
            continue

        goes_left = sample_X[:, split.attribute] < split.threshold
        left_indices = task.sample_indices[goes_left]
        right_indices = task.sample_indices[~goes_left]
        if left_indices.size == 0 or right_indices.size == 0:
            raise CorruptionError(
                f"Split attribute {split.attribute} < {split.threshold} at node "
                f"{task.node_id} leaves a partition empty"
            )

        left_id, right_id = next_id, next_id + 1
        next_id += 2
        splits[task.node_id] = (split, left_id, right_id)
        logger.debug(
            f"Node {task.node_id} at depth {task.depth}: attribute "
            f"{split.attribute} < {split.threshold} splits {size} samples into "
            f"{left_indices.size}/{right_indices.size}"
        )

        frontier.append(
            BuildTask(right_id, task.depth + 1, right_indices)
        )
        frontier.append(BuildTask(left_id, task.depth + 1, left_indices))

    nodes: Dict[int, TreeNode] = {}
    for node_id in range(next_id - 1, -1, -1):
        if node_id in leaves:
            nodes[node_id] = Leaf(prediction=leaves[node_id])
            continue
        split, left_id, right_id = splits[node_id]
        nodes[node_id] = Internal(
            split_attribute=split.attribute,
            split_threshold=split.threshold,
            left=nodes.pop(left_id),
            right=nodes.pop(right_id),
        )

    logger.info(
        f"Built tree with {next_id} nodes ({len(leaves)} leaves) "
        f"from {X.shape[0]} samples"
    )
    return nodes[0]


def build_tree(
    samples: Sequence[Sample], *, log_base: float | None = None
) -> TreeNode:
    """Constructs a binary decision tree using the provided samples.

    Args:
        samples: Samples to learn the tree on. They are copied, never modified.
        log_base: Logarithm base for entropies. Defaults to
            ``settings.ENTROPY_LOG_BASE``.

    Returns:
        The root node of the tree.

    Raises:
        InvalidInputError: If ``samples`` is empty or the feature vectors are
            inconsistent.
    """
    base = check_log_base(
        settings.ENTROPY_LOG_BASE if log_base is None else log_base
    )
    X, y = samples_to_arrays(samples)
    return grow_tree(X, y, base)
