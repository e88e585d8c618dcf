from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, TypeAlias

import numpy as np
import numpy.typing as npt


IndexArray: TypeAlias = npt.NDArray[np.intp]
FeatureVector: TypeAlias = Tuple[float, ...]


@dataclass(frozen=True, slots=True)
class Sample:
    """A labeled numeric feature vector."""

    label: bool = field(metadata={"description": "Ground-truth classification."})
    features: FeatureVector = field(
        metadata={"description": "Ordered attribute values, one float per attribute."}
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "label", bool(self.label))
        object.__setattr__(self, "features", tuple(float(v) for v in self.features))

    @property
    def num_features(self) -> int:
        """Number of attributes in the feature vector."""
        return len(self.features)

    def __str__(self) -> str:
        return f"Label: {self.label}, {list(self.features)}"
