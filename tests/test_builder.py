"""Tests for tree induction."""

import math
from typing import List

import numpy as np
import pytest

from threshold_id3.core import DataError, InvalidInputError
from threshold_id3.id3 import Internal, Leaf, Sample, TreeNode
from threshold_id3.id3 import binary_entropy, build_tree, conditional_entropy
from threshold_id3.id3 import depth, find_best_split, node_count, predict_one
from threshold_id3.id3._builder import candidate_splits


def make_samples(rows) -> List[Sample]:
    return [Sample(label=label, features=features) for label, features in rows]


def random_samples(seed: int, n: int = 80, num_features: int = 3) -> List[Sample]:
    rng = np.random.default_rng(seed)
    # Few distinct values so that runs of equal values with mixed labels occur.
    X = rng.integers(0, 5, size=(n, num_features)).astype(float)
    y = rng.random(n) < 0.4
    return [Sample(label=bool(lab), features=row) for row, lab in zip(X, y)]


def check_node(tree: TreeNode, samples: List[Sample]) -> None:
    """Walk the tree alongside the samples reaching each node."""
    pending = [(tree, samples)]
    while pending:
        node, reached = pending.pop()
        assert reached
        if isinstance(node, Leaf):
            continue

        left = [s for s in reached if node.goes_left(s.features)]
        right = [s for s in reached if not node.goes_left(s.features)]
        assert left and right
        assert len(left) + len(right) == len(reached)

        positives = sum(s.label for s in reached)
        left_positives = sum(s.label for s in left)
        assert left_positives * len(reached) != positives * len(left)
        parent_entropy = float(binary_entropy(positives / len(reached)))
        split_entropy = float(
            conditional_entropy(len(left), left_positives, len(reached), positives)
        )
        assert split_entropy < parent_entropy

        pending.append((node.left, left))
        pending.append((node.right, right))


def test_empty_input():
    with pytest.raises(InvalidInputError):
        build_tree([])


def test_invalid_input_is_a_value_error():
    assert issubclass(InvalidInputError, ValueError)
    assert issubclass(InvalidInputError, DataError)


@pytest.mark.parametrize(
    "rows",
    [
        [(True, [1.0, 2.0]), (False, [1.0])],
        [(True, []), (False, [])],
        [(True, [1.0]), (False, [math.nan])],
        [(True, [math.inf]), (False, [1.0])],
    ],
)
def test_unusable_features(rows):
    with pytest.raises(InvalidInputError):
        build_tree(make_samples(rows))


@pytest.mark.parametrize("label", [True, False])
def test_pure_samples_give_a_leaf(label):
    samples = make_samples([(label, [float(i), -float(i)]) for i in range(10)])
    assert build_tree(samples) == Leaf(label)


def test_single_sample():
    assert build_tree(make_samples([(True, [0.0])])) == Leaf(True)


def test_simple_threshold():
    samples = make_samples(
        [(False, [1.0]), (False, [2.0]), (True, [3.0]), (True, [4.0])]
    )
    tree = build_tree(samples)
    assert tree == Internal(
        split_attribute=0, split_threshold=3.0, left=Leaf(False), right=Leaf(True)
    )
    assert node_count(tree) == 3
    assert depth(tree) == 1


@pytest.mark.parametrize(
    "labels, expected",
    [
        ([True, True, False], True),
        ([True, False], True),
        ([False, False, True], False),
    ],
)
def test_no_separating_split_gives_majority_leaf(labels, expected):
    samples = make_samples([(lab, [7.0, 7.0]) for lab in labels])
    assert build_tree(samples) == Leaf(expected)


def test_picks_informative_attribute():
    samples = make_samples(
        [
            (False, [0.3, 1.0]),
            (True, [0.1, 5.0]),
            (False, [0.2, 2.0]),
            (True, [0.4, 6.0]),
        ]
    )
    tree = build_tree(samples)
    assert isinstance(tree, Internal)
    assert tree.split_attribute == 1
    assert tree.split_threshold == 5.0


def test_ties_go_to_lower_attribute():
    samples = make_samples(
        [(lab, [x, x]) for lab, x in [(False, 1.0), (False, 2.0), (True, 3.0)]]
    )
    tree = build_tree(samples)
    assert isinstance(tree, Internal)
    assert tree.split_attribute == 0


def test_negatives_sort_first_among_equal_values():
    values = np.array([1.0, 5.0, 5.0])
    labels = np.array([False, True, False])
    thresholds, left_total, left_positive = candidate_splits(values, labels)
    np.testing.assert_array_equal(thresholds, [5.0])
    np.testing.assert_array_equal(left_total, [1])
    np.testing.assert_array_equal(left_positive, [0])


def test_splits_around_mixed_value_run():
    values = np.array([1.3, 1.2, 1.1, 1.2])
    labels = np.array([True, True, False, False])
    thresholds, left_total, left_positive = candidate_splits(values, labels)
    # Before and after the run of 1.2, never inside it.
    np.testing.assert_array_equal(thresholds, [1.2, 1.3])
    np.testing.assert_array_equal(left_total, [1, 3])
    np.testing.assert_array_equal(left_positive, [0, 1])


def test_split_keeping_the_proportion_is_not_taken():
    # 1/3 positive on the left and 2/6 on the right, as in the whole set.
    samples = make_samples(
        [(lab, [0.0]) for lab in [False, False, True]]
        + [(lab, [1.0]) for lab in [False, False, False, False, True, True]]
    )
    thresholds, _, _ = candidate_splits(
        np.array([s.features[0] for s in samples]),
        np.array([s.label for s in samples]),
    )
    assert thresholds.size == 0
    assert build_tree(samples) == Leaf(False)


@pytest.mark.parametrize("seed", range(5))
def test_every_split_changes_the_proportion(seed):
    samples = random_samples(seed, n=120, num_features=1)
    check_node(build_tree(samples), samples)


def test_mixed_run_at_the_start():
    samples = make_samples([(True, [1.3]), (False, [1.2]), (True, [1.2])])
    assert build_tree(samples) == Internal(
        split_attribute=0, split_threshold=1.3, left=Leaf(True), right=Leaf(True)
    )


def test_positive_first_sample_is_counted():
    samples = make_samples(
        [(True, [0.0]), (False, [1.0]), (False, [2.0]), (False, [3.0])]
    )
    split = find_best_split(
        np.array([s.features for s in samples]),
        np.array([s.label for s in samples]),
    )
    assert split is not None
    assert split.threshold == 1.0
    assert split.entropy == 0.0


def test_no_split_when_nothing_improves():
    X = np.array([[0.0, 0.0], [1.0, 1.0], [0.0, 1.0], [1.0, 0.0]])
    y = np.array([False, False, True, True])
    assert find_best_split(X, y) is None
    assert build_tree(
        [Sample(label=bool(lab), features=row) for row, lab in zip(X, y)]
    ) == Leaf(True)


def test_alternating_labels_are_fitted():
    samples = make_samples([(i % 2 == 0, [float(i)]) for i in range(200)])
    tree = build_tree(samples)
    assert all(predict_one(tree, s.features) == s.label for s in samples)
    check_node(tree, samples)


@pytest.mark.parametrize("seed", range(5))
def test_structural_properties(seed):
    samples = random_samples(seed)
    tree = build_tree(samples)
    check_node(tree, samples)
    assert node_count(tree) >= depth(tree) + 1
    for sample in samples:
        assert isinstance(predict_one(tree, sample.features), bool)


@pytest.mark.parametrize("seed", range(3))
def test_deterministic(seed):
    samples = random_samples(seed)
    shuffled = list(samples)
    np.random.default_rng(seed + 100).shuffle(shuffled)

    tree = build_tree(samples)
    assert build_tree(samples) == tree
    assert build_tree(shuffled) == tree


def test_input_is_not_reordered():
    samples = random_samples(7)
    before = list(samples)
    build_tree(samples)
    assert samples == before


def test_log_base():
    samples = make_samples(
        [(False, [1.0]), (False, [2.0]), (True, [3.0]), (True, [4.0])]
    )
    assert build_tree(samples, log_base=math.e) == build_tree(samples, log_base=2)
    with pytest.raises(ValueError):
        build_tree(samples, log_base=1)
