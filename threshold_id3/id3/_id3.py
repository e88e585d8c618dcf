"""ID3.

Entropy based decision tree classifier for numeric features.
"""

from __future__ import annotations

import datetime
import logging
import os
import re
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Sequence
from uuid import uuid4

import numpy as np
import numpy.typing as npt
import orjson
import pandas as pd

from threshold_id3.core import CorruptionError, DataError, settings
from ._builder import FeatureMatrix, LabelArray, grow_tree
from ._entropy import check_log_base
from ._tree import TreeNode, depth, leaf_count, node_count, predict_one
from ._tree import tree_from_records, tree_to_records
from ._types import Sample


logger = logging.getLogger(__name__)

TREE_FILE = "id3tree.json"


def _to_matrix(X: pd.DataFrame | npt.ArrayLike) -> FeatureMatrix:
    try:
        if isinstance(X, pd.DataFrame):
            X_array = X.to_numpy(dtype=np.float64)
        else:
            X_array = np.asarray(X, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise DataError(f"X must contain only numeric values: {e}") from e

    if X_array.ndim != 2:
        raise DataError(f"X must be 2-dimensional, got {X_array.ndim} dimensions")
    return X_array


def _to_labels(y: Sequence[bool] | npt.ArrayLike, num_rows: int) -> LabelArray:
    labels = list(y)  # type: ignore
    if not all(isinstance(v, (bool, np.bool_)) for v in labels):
        raise DataError("y must be a sequence of booleans")
    if len(labels) != num_rows:
        raise DataError("y and X must have the same number of rows")
    return np.array(labels, dtype=np.bool_)


def samples_from_frame(
    X: pd.DataFrame | npt.ArrayLike, y: Sequence[bool] | npt.ArrayLike
) -> List[Sample]:
    """Convert tabular features and labels into samples, one per row."""
    X_array = _to_matrix(X)
    labels = _to_labels(y, X_array.shape[0])
    return [Sample(label=bool(lab), features=row) for row, lab in zip(X_array, labels)]


class ID3:
    """Decision tree classifier splitting numeric features on thresholds.

    Args:
        log_base: Logarithm base for entropies. Defaults to
            ``settings.ENTROPY_LOG_BASE``.
        save_path: Directory to save models under. Defaults to
            ``<cwd>/<settings.SAVE_DIR>``.
        name: Name of the tree instance.
    """

    def __init__(
        self,
        log_base: float | None = None,
        save_path: str | PathLike[str] | None = None,
        name: str | None = None,
    ):
        self.log_base: float = check_log_base(
            settings.ENTROPY_LOG_BASE if log_base is None else log_base
        )
        self.name: str = self._get_name(name)
        self.save_path: Path = self._set_save_path(save_path)

        self._root: TreeNode | None = None
        self._feature_names: List[str] | None = None
        self._num_features: int | None = None

    def _get_name(self, name: str | None) -> str:
        if name is None:
            name = str(uuid4()).replace("-", "_")
            logger.debug(f"No name provided. Assigned name: {name}")

        if not re.match(r"^[a-zA-Z0-9_]+$", name):
            raise ValueError("Name must be only alphanumeric and underscores")
        return name

    def _set_save_path(self, save_path: str | PathLike[str] | None) -> Path:
        if save_path is None:
            return (Path(os.getcwd()) / settings.SAVE_DIR).resolve()
        save_path = Path(save_path).resolve()
        if save_path.is_file():
            raise ValueError("Please provide a directory, not a file.")
        return save_path

    @property
    def root(self) -> TreeNode | None:
        """Root of the fitted tree."""
        return self._root

    @property
    def feature_names(self) -> List[str] | None:
        """Column names seen during fit, if X was a DataFrame."""
        return self._feature_names

    @property
    def num_features(self) -> int | None:
        return self._num_features

    @property
    def node_count(self) -> int:
        return node_count(self._root)

    @property
    def leaf_count(self) -> int:
        return leaf_count(self._root)

    @property
    def depth(self) -> int:
        return depth(self._root)

    def _set_data(
        self, X: pd.DataFrame | npt.ArrayLike, X_array: FeatureMatrix, root: TreeNode
    ) -> None:
        self._feature_names = (
            [str(c) for c in X.columns] if isinstance(X, pd.DataFrame) else None
        )
        self._num_features = X_array.shape[1]
        self._root = root

    def fit(
        self, X: pd.DataFrame | npt.ArrayLike, y: Sequence[bool] | npt.ArrayLike
    ) -> ID3:
        """Grow the tree on numeric features.

        Args:
            X: DataFrame or 2-D array of numeric features, one row per sample.
            y: Boolean label per row of X.

        Returns:
            The fitted tree itself.

        Raises:
            DataError: If X is not numeric and 2-D or y does not match it.
            InvalidInputError: If X has no rows or columns, or holds NaNs.
        """
        X_array = _to_matrix(X)
        y_array = _to_labels(y, X_array.shape[0])
        root = grow_tree(X_array, y_array, self.log_base)
        self._set_data(X, X_array, root)
        logger.info(
            f"Fitted {self!r}: {self.node_count} nodes, depth {self.depth}"
        )
        return self

    def predict(self, X: pd.DataFrame | npt.ArrayLike) -> npt.NDArray[np.bool_]:
        """Predict a label for every row of X.

        DataFrames are matched to the training columns by name when the tree
        was fitted on a DataFrame.
        """
        if self._root is None:
            raise ValueError("Tree is empty. Fit or load a tree before predicting.")

        if isinstance(X, pd.DataFrame) and self._feature_names is not None:
            missing = [c for c in self._feature_names if c not in X.columns]
            if missing:
                raise DataError(f"X is missing feature columns: {missing}")
            X = X[self._feature_names]

        X_array = _to_matrix(X)
        if X_array.shape[1] != self._num_features:
            raise DataError(
                f"X has {X_array.shape[1]} features, tree was fitted "
                f"on {self._num_features}"
            )
        root = self._root
        return np.array([predict_one(root, row) for row in X_array], dtype=np.bool_)

    @classmethod
    def _load(cls, path: str | PathLike[str]) -> ID3:
        base = Path(path)
        if not base.exists():
            raise FileNotFoundError(f"No saved tree at: {base}")
        if base.is_dir():
            tree_json_path = base / TREE_FILE
            if not tree_json_path.exists():
                raise FileNotFoundError(f"'{TREE_FILE}' not found in directory: {base}")
        else:
            raise ValueError("Please provide a directory, not a file.")

        manifest = orjson.loads(tree_json_path.read_bytes())

        inst = cls(
            log_base=manifest["params"]["log_base"],
            save_path=base.parent,
            name=manifest["tree_name"],
        )
        inst._feature_names = manifest["feature_names"]
        inst._num_features = manifest["num_features"]
        nodes = manifest["nodes"]
        inst._root = tree_from_records(nodes) if nodes is not None else None
        return inst

    @classmethod
    def load(cls, path: str | PathLike[str]) -> ID3:
        """Load a tree from saved state.

        Args:
            path: Directory containing the tree JSON file.

        Returns:
            Reconstructed ID3 instance.
        """
        try:
            return cls._load(path)
        except KeyError as e:
            raise CorruptionError(
                f"Failed to load ID3 tree. Tree json is probably corrupted: {e}"
            ) from e

    def save(self, dir_path: str | PathLike[str] | None = None) -> Path:
        """Save the tree to JSON in a directory.

        If dir_path is None, uses `<self.save_path>/<self.name>`.

        Args:
            dir_path: The directory to save the tree to.

        Returns:
            The directory the tree was written to.
        """
        base = Path(dir_path) if dir_path is not None else (self.save_path / self.name)
        if base.is_file():
            raise ValueError("Please provide a directory, not a file.")
        base.mkdir(parents=True, exist_ok=True)

        payload: Dict[str, Any] = {
            "tree_name": self.name,
            "created_at": datetime.datetime.now().isoformat(),
            "params": {"log_base": self.log_base},
            "feature_names": self._feature_names,
            "num_features": self._num_features,
            "nodes": tree_to_records(self._root) if self._root is not None else None,
        }
        (base / TREE_FILE).write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        logger.debug(f"Saved {self!r} to {base}")
        return base

    def __repr__(self) -> str:
        return f"ID3(name={self.name})"

    def __str__(self) -> str:
        return f"ID3(name={self.name})"
