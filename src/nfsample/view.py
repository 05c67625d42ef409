import dataclasses
import logging

import numpy
import numpy.typing

from nfsample.exceptions import (
    InconsistentShapeError,
    InvalidNeighborhoodSizeError,
    InvalidSubsetError,
    OutOfRangeError,
    SampleSizeExceedsPopulationError,
)
from nfsample.feature import Feature, candidate_space_size, decode_feature
from nfsample.rng import RandomState, UniformSubsetSampler, seed_sequence
from nfsample.types import (
    DatasetMatrix,
    DistanceMatrix,
    IdVector,
    IndexMatrix,
    LabelVector,
    NeighborhoodBlock,
)

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ViewConfig:
    """Scalar configuration shared by a view and every view derived from it."""

    num_classes: int
    num_features: int  # Size of the feature pool drawn at each node
    num_projection_types: int = 1

    def __post_init__(self) -> None:
        if self.num_classes < 1:
            raise ValueError(f"num_classes must be at least 1, got {self.num_classes}.")
        if self.num_features < 0:
            raise ValueError(
                f"num_features must be non-negative, got {self.num_features}."
            )
        if self.num_projection_types < 1:
            raise ValueError(
                f"num_projection_types must be at least 1, got {self.num_projection_types}."
            )


def _check_arrays(
    dataset: DatasetMatrix,
    labels: LabelVector,
    index_matrix: IndexMatrix,
    distance_matrix: DistanceMatrix,
) -> None:
    if dataset.ndim != 2:
        raise InconsistentShapeError(
            f"Dataset must be a 2-D matrix, got shape {dataset.shape}."
        )
    n_points = dataset.shape[0]

    if labels.ndim != 1 or labels.shape[0] != n_points:
        raise InconsistentShapeError(
            f"Expected {n_points} labels, got shape {labels.shape}."
        )
    if index_matrix.ndim != 2 or index_matrix.shape[0] != n_points:
        raise InconsistentShapeError(
            f"Index matrix must have {n_points} rows, got shape {index_matrix.shape}."
        )
    if distance_matrix.shape != index_matrix.shape:
        raise InconsistentShapeError(
            f"Distance matrix shape {distance_matrix.shape} does not match "
            f"index matrix shape {index_matrix.shape}."
        )
    if not numpy.issubdtype(index_matrix.dtype, numpy.integer):
        raise InconsistentShapeError(
            f"Index matrix must hold integers, got dtype {index_matrix.dtype}."
        )

    if index_matrix.size > 0 and (
        index_matrix.min() < 0 or index_matrix.max() >= n_points
    ):
        raise OutOfRangeError(
            f"Index matrix refers to points outside [0, {n_points})."
        )


class NeighborhoodSampleView:
    """
    Sampling view over a dataset and its precomputed nearest-neighbor graph.

    The dataset, labels, index matrix and distance matrix are referenced, never
    copied, and must not be modified while any view over them is alive.
    A view owns only its selected sample ids and its feature pool.

    Views come from three places:
        - `NeighborhoodSampleView(...)`: a root view over the whole dataset
        - `NeighborhoodSampleView.alias(view)`: a second handle on the same
          arrays and the same selected ids
        - `NeighborhoodSampleView.subview(view, ids)`: a view restricted to
          `ids`, which are global dataset ids taken from the parent's population

    Bootstrap sampling and feature-pool sampling draw from two independent
    random streams spawned from the view's seed.
    """

    _dataset: DatasetMatrix
    _labels: LabelVector
    _index_matrix: IndexMatrix
    _distance_matrix: DistanceMatrix
    _config: ViewConfig

    _population: IdVector | None
    """
    Ids bootstrap samples are drawn from, None for the whole dataset
    """

    _selected_samples_id: IdVector | None
    """
    Selected ids, None until the view is sampled or restricted
    """

    _features: tuple[Feature, ...]

    _seed: numpy.random.SeedSequence
    _bootstrap_rng: numpy.random.Generator
    _feature_rng: numpy.random.Generator

    def __init__(
        self,
        dataset: DatasetMatrix,
        labels: LabelVector,
        index_matrix: IndexMatrix,
        distance_matrix: DistanceMatrix,
        num_classes: int,
        num_features: int,
        *,
        num_projection_types: int = 1,
        random_state: RandomState = None,
    ) -> None:
        """
        Create a root view; nothing is sampled yet.

        Args:
            dataset: N x D data matrix
            labels: class id of every point
            index_matrix: N x k ids of each point's nearest neighbors
            distance_matrix: N x k distances, parallel to index_matrix
            num_classes: number of distinct classes
            num_features: size of the feature pool drawn by `sample_feature_pool`
            num_projection_types: number of projection operators a feature can use
            random_state: seed for this view and the views derived from it.
                None draws fresh OS entropy.

        Raises:
            InconsistentShapeError: if the arrays disagree in shape
            OutOfRangeError: if the index matrix refers to unknown points
            ValueError: if a count is out of range
        """
        _check_arrays(dataset, labels, index_matrix, distance_matrix)

        self._dataset = dataset
        self._labels = labels
        self._index_matrix = index_matrix
        self._distance_matrix = distance_matrix
        self._config = ViewConfig(
            num_classes=num_classes,
            num_features=num_features,
            num_projection_types=num_projection_types,
        )
        self._population = None
        self._selected_samples_id = None
        self._features = ()
        self._seed_streams(seed_sequence(random_state))

        logger.debug(
            "Created root view over %d points, k=%d, %d classes",
            self.num_points,
            self.neighborhood_size,
            num_classes,
        )

    def _seed_streams(self, seed: numpy.random.SeedSequence) -> None:
        self._seed = seed
        bootstrap_seed, feature_seed = seed.spawn(2)
        self._bootstrap_rng = numpy.random.default_rng(bootstrap_seed)
        self._feature_rng = numpy.random.default_rng(feature_seed)

    @classmethod
    def _derive(
        cls,
        source: "NeighborhoodSampleView",
        population: IdVector | None,
        selected_samples_id: IdVector | None,
        random_state: RandomState,
    ) -> "NeighborhoodSampleView":
        view = cls.__new__(cls)
        view._dataset = source._dataset
        view._labels = source._labels
        view._index_matrix = source._index_matrix
        view._distance_matrix = source._distance_matrix
        view._config = source._config
        view._population = population
        view._selected_samples_id = selected_samples_id
        view._features = ()
        if random_state is None:
            view._seed_streams(source._seed.spawn(1)[0])
        else:
            view._seed_streams(seed_sequence(random_state))
        return view

    @classmethod
    def alias(
        cls,
        source: "NeighborhoodSampleView",
        *,
        random_state: RandomState = None,
    ) -> "NeighborhoodSampleView":
        """
        Create a second handle on `source` without resampling or copying.

        The alias shares the backing arrays, the configuration, the population and
        the selected id array of `source`. Its feature pool starts empty.

        Args:
            source: view to alias
            random_state: seed of the alias; None spawns one from `source`
        """
        view = cls._derive(
            source,
            population=source._population,
            selected_samples_id=source._selected_samples_id,
            random_state=random_state,
        )
        logger.debug("Aliased view with %d selected samples", view.num_selected_samples)
        return view

    @classmethod
    def subview(
        cls,
        parent: "NeighborhoodSampleView",
        samples_id: numpy.typing.ArrayLike,
        *,
        random_state: RandomState = None,
    ) -> "NeighborhoodSampleView":
        """
        Create a view restricted to `samples_id`.

        The ids are global dataset ids. They must be drawn from the parent's
        population: its selected samples once it has been sampled or restricted,
        otherwise the points it was built over. An id may appear as many times as it does in that
        population, so bootstrap duplicates can be routed to a child.

        Args:
            parent: view to restrict
            samples_id: 1-D sequence of dataset ids
            random_state: seed of the new view; None spawns one from `parent`

        Raises:
            OutOfRangeError: if an id is not a row of the dataset
            InvalidSubsetError: if an id is missing from the parent population,
                or repeated more often than there
        """
        ids = parent._as_ids(samples_id)
        parent._check_subset(ids)
        view = cls._derive(
            parent,
            population=ids,
            selected_samples_id=ids.copy(),
            random_state=random_state,
        )
        logger.debug(
            "Created sub-view with %d of %d parent samples",
            len(ids),
            parent.num_selected_samples,
        )
        return view

    def _as_ids(self, samples_id: numpy.typing.ArrayLike) -> IdVector:
        ids = numpy.asarray(samples_id)
        if ids.size == 0:
            ids = ids.astype(numpy.intp)
        if ids.ndim != 1:
            raise ValueError(f"Sample ids must be 1-D, got shape {ids.shape}.")
        if not numpy.issubdtype(ids.dtype, numpy.integer):
            raise ValueError(f"Sample ids must be integers, got dtype {ids.dtype}.")
        if ids.size > 0 and (ids.min() < 0 or ids.max() >= self.num_points):
            raise OutOfRangeError(
                f"Sample ids must lie in [0, {self.num_points})."
            )
        return ids.astype(numpy.intp)

    def _current_population(self) -> IdVector | None:
        if self._selected_samples_id is not None:
            return self._selected_samples_id
        return self._population

    def _check_subset(self, ids: IdVector) -> None:
        if ids.size == 0:
            return

        ids_unique, ids_counts = numpy.unique(ids, return_counts=True)
        population = self._current_population()

        if population is None:
            # Every point is present exactly once
            if numpy.any(ids_counts > 1):
                raise InvalidSubsetError(
                    f"Ids {ids_unique[ids_counts > 1].tolist()} are repeated, "
                    "but appear once in the parent population."
                )
            return

        if population.size == 0:
            raise InvalidSubsetError("Parent population is empty.")

        pop_unique, pop_counts = numpy.unique(population, return_counts=True)
        positions = numpy.searchsorted(pop_unique, ids_unique)
        clipped = numpy.minimum(positions, len(pop_unique) - 1)
        present = (positions < len(pop_unique)) & (pop_unique[clipped] == ids_unique)
        if not numpy.all(present):
            raise InvalidSubsetError(
                f"Ids {ids_unique[~present].tolist()} are not in the parent population."
            )

        excess = ids_counts > pop_counts[clipped]
        if numpy.any(excess):
            raise InvalidSubsetError(
                f"Ids {ids_unique[excess].tolist()} are repeated more often "
                "than in the parent population."
            )

    def _check_point_id(self, point_id: int) -> int:
        if isinstance(point_id, bool) or not isinstance(point_id, (int, numpy.integer)):
            raise OutOfRangeError(f"Point id must be an integer, got {point_id!r}.")
        if not 0 <= point_id < self.num_points:
            raise OutOfRangeError(
                f"Point id {point_id} is outside [0, {self.num_points})."
            )
        return int(point_id)

    def bootstrap_sample(self, count: int) -> IdVector:
        """
        Draw `count` ids with replacement from the view's population (bagging).

        The population is the whole dataset for a root view and the restricted ids
        for a sub-view. The draw replaces the view's selected samples and is
        returned as well. Duplicates are expected.

        Raises:
            ValueError: if count is negative
            SampleSizeExceedsPopulationError: if count > 0 and the population is empty
        """
        if count < 0:
            raise ValueError(f"Sample count must be non-negative, got {count}.")

        if self._population is None:
            pop_size = self.num_points
        else:
            pop_size = self._population.size
        if count > 0 and pop_size == 0:
            raise SampleSizeExceedsPopulationError(
                f"Cannot draw {count} samples from an empty population."
            )

        positions = self._bootstrap_rng.integers(0, max(pop_size, 1), size=count)
        if self._population is None:
            selected = positions.astype(numpy.intp)
        else:
            selected = self._population[positions]

        self._selected_samples_id = selected
        logger.debug("Bootstrapped %d samples from %d points", count, pop_size)
        return selected.copy()

    def sample_feature_pool(self) -> tuple[Feature, ...]:
        """
        Draw `num_features` distinct features from the neighborhood's candidate space.

        A neighborhood of k points with p projection types has k * (k - 1) * p
        candidates. The pool replaces any previous one.

        Raises:
            InvalidNeighborhoodSizeError: if k < 2
            SampleSizeExceedsPopulationError: if num_features exceeds the candidate count
        """
        k = self.neighborhood_size
        if k < 2:
            raise InvalidNeighborhoodSizeError(
                f"Feature sampling needs at least 2 neighbors, got {k}."
            )
        n_candidates = candidate_space_size(k, self._config.num_projection_types)
        sampler = UniformSubsetSampler(n_candidates, self._config.num_features)

        indices = sampler.sample_without_replacement(self._feature_rng)
        self._features = tuple(decode_feature(int(i), k) for i in indices)
        logger.debug(
            "Sampled %d features from %d candidates", len(self._features), n_candidates
        )
        return self._features

    def build_neighborhood(self, point_id: int) -> NeighborhoodBlock:
        """
        Return the k x D block whose row j is the data vector of the j-th neighbor
        of `point_id`. The block is a copy.

        Raises:
            OutOfRangeError: if point_id is not a row of the dataset
        """
        point_id = self._check_point_id(point_id)
        return self._dataset[self._index_matrix[point_id]]

    def neighbor_distances(self, point_id: int) -> numpy.ndarray:
        """Distances from `point_id` to its neighbors, in neighborhood row order."""
        point_id = self._check_point_id(point_id)
        return self._distance_matrix[point_id].copy()

    def selected_labels(self) -> LabelVector:
        """Labels of the selected samples, duplicates included."""
        return self._labels[self.selected_samples_id]

    @property
    def config(self) -> ViewConfig:
        return self._config

    @property
    def num_classes(self) -> int:
        return self._config.num_classes

    @property
    def num_features(self) -> int:
        return self._config.num_features

    @property
    def num_projection_types(self) -> int:
        return self._config.num_projection_types

    @property
    def num_points(self) -> int:
        """Number of rows of the backing dataset."""
        return self._dataset.shape[0]

    @property
    def neighborhood_size(self) -> int:
        return self._index_matrix.shape[1]

    @property
    def selected_samples_id(self) -> IdVector:
        if self._selected_samples_id is None:
            return numpy.empty(0, dtype=numpy.intp)
        return self._selected_samples_id.copy()

    @property
    def num_selected_samples(self) -> int:
        if self._selected_samples_id is None:
            return 0
        return self._selected_samples_id.size

    @property
    def features(self) -> tuple[Feature, ...]:
        return self._features

    @property
    def is_sampled(self) -> bool:
        """True once samples were selected (even zero of them) or a feature pool drawn."""
        return self._selected_samples_id is not None or len(self._features) > 0

    @property
    def dataset(self) -> DatasetMatrix:
        return self._dataset

    @property
    def labels(self) -> LabelVector:
        return self._labels

    @property
    def index_matrix(self) -> IndexMatrix:
        return self._index_matrix

    @property
    def distance_matrix(self) -> DistanceMatrix:
        return self._distance_matrix
