import dataclasses
from collections.abc import Iterable

import numpy

from nfsample.exceptions import (
    InvalidNeighborhoodSizeError,
    OutOfRangeError,
)


@dataclasses.dataclass(frozen=True)
class Feature:
    """
    A candidate node test: two points of a neighborhood and a projection operator.

    `point1` and `point2` are neighbor slots (0..k-1 within a neighborhood),
    not dataset ids. `projection_type` indexes an externally defined list of
    projection operators.
    """

    point1: int
    point2: int
    projection_type: int

    def __post_init__(self) -> None:
        if self.point1 == self.point2:
            raise ValueError(
                f"A feature needs two distinct points, got point1 == point2 == {self.point1}."
            )


def candidate_space_size(neighborhood_size: int, num_projection_types: int) -> int:
    """Number of distinct features: ordered pairs of distinct slots times projection types."""
    return neighborhood_size * (neighborhood_size - 1) * num_projection_types


def _check_neighborhood_size(neighborhood_size: int) -> None:
    if neighborhood_size < 2:
        raise InvalidNeighborhoodSizeError(
            f"A neighborhood of {neighborhood_size} point(s) has no pair of distinct points."
        )


def decode_feature(index: int, neighborhood_size: int) -> Feature:
    """
    Map a linear candidate index to its feature.

    The index space is laid out as `projection_type` blocks of `k * (k - 1)`
    ordered pairs. Within a block, `point1` picks the row and the remaining
    `k - 1` columns skip the diagonal, so `point1 != point2` always holds.

    Raises:
        InvalidNeighborhoodSizeError: if neighborhood_size < 2
        ValueError: if index is negative
    """
    _check_neighborhood_size(neighborhood_size)
    if index < 0:
        raise ValueError(f"Candidate index must be non-negative, got {index}.")

    n_pairs = neighborhood_size * (neighborhood_size - 1)
    projection_type, pair = divmod(int(index), n_pairs)
    point1, column = divmod(pair, neighborhood_size - 1)
    point2 = column if column < point1 else column + 1
    return Feature(point1=point1, point2=point2, projection_type=projection_type)


def encode_feature(feature: Feature, neighborhood_size: int) -> int:
    """
    Inverse of `decode_feature`.

    Raises:
        InvalidNeighborhoodSizeError: if neighborhood_size < 2
        OutOfRangeError: if a point is not a slot of the neighborhood
    """
    _check_neighborhood_size(neighborhood_size)
    for point in (feature.point1, feature.point2):
        if not 0 <= point < neighborhood_size:
            raise OutOfRangeError(
                f"Point slot {point} is outside a neighborhood of size {neighborhood_size}."
            )

    column = feature.point2 if feature.point2 < feature.point1 else feature.point2 - 1
    pair = feature.point1 * (neighborhood_size - 1) + column
    return feature.projection_type * neighborhood_size * (neighborhood_size - 1) + pair


def features_to_array(
    features: Iterable[Feature],
) -> numpy.ndarray[tuple[int, int], numpy.dtype[numpy.intp]]:
    """Stack features into an (m, 3) array of (point1, point2, projection_type) rows."""
    rows = [(f.point1, f.point2, f.projection_type) for f in features]
    return numpy.array(rows, dtype=numpy.intp).reshape(len(rows), 3)
