"""A binary decision tree classifier for numeric features.

Trees are grown with the ID3 information-gain heuristic, splitting each
continuous attribute on a threshold.
"""

from ._builder import Split, build_tree, find_best_split
from ._entropy import binary_entropy, conditional_entropy
from ._id3 import ID3, samples_from_frame
from ._tree import Internal, Leaf, TreeNode, depth, leaf_count, node_count
from ._tree import predict_one, route, tree_from_records, tree_to_records
from ._types import Sample

__all__ = [
    "ID3",
    "Sample",
    "Leaf",
    "Internal",
    "TreeNode",
    "Split",
    "build_tree",
    "find_best_split",
    "binary_entropy",
    "conditional_entropy",
    "node_count",
    "leaf_count",
    "depth",
    "route",
    "predict_one",
    "tree_to_records",
    "tree_from_records",
    "samples_from_frame",
]
