from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import ValidationError


@dataclass(frozen=True, eq=False)
class Curve:
    """Ordered (x, y) samples of one instrument signal.

    x is expected to be ascending; this is the producer's obligation and is
    only checked by the estimators that divide by x differences.
    """

    x: NDArray[np.float64]
    y: NDArray[np.float64]
    curve_id: str = ""
    label: str = ""

    def __post_init__(self) -> None:
        x = np.asarray(self.x, dtype=float).reshape(-1)
        y = np.asarray(self.y, dtype=float).reshape(-1)
        if x.size != y.size:
            raise ValidationError(f"x and y must have same size, got {x.size} and {y.size}")
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    @classmethod
    def from_arrays(cls, x: ArrayLike, y: ArrayLike, curve_id: str = "", label: str = "") -> "Curve":
        return cls(np.asarray(x, dtype=float), np.asarray(y, dtype=float), curve_id, label)

    @classmethod
    def from_points(cls, points: Iterable[Tuple[float, float]], curve_id: str = "", label: str = "") -> "Curve":
        pts = np.asarray(list(points), dtype=float).reshape(-1, 2)
        return cls(pts[:, 0], pts[:, 1], curve_id, label)

    @property
    def points(self) -> List[Tuple[float, float]]:
        return [(float(a), float(b)) for a, b in zip(self.x, self.y)]

    def __len__(self) -> int:
        return int(self.x.size)
