import logging

import numpy

from nfsample.exceptions import SampleSizeExceedsPopulationError
from nfsample.types import IdVector

logger = logging.getLogger(__name__)

RandomState = int | numpy.random.SeedSequence | numpy.random.Generator | None
"""Anything accepted as a source of randomness"""


def check_random_state(random_state: RandomState) -> numpy.random.Generator:
    """
    Turn `random_state` into a numpy Generator.

    None gives a generator seeded from fresh OS entropy,
    an int or SeedSequence gives a reproducible generator,
    and a Generator is returned as-is (shared, not copied).
    """
    if isinstance(random_state, numpy.random.Generator):
        return random_state
    if random_state is None or isinstance(
        random_state, (int, numpy.integer, numpy.random.SeedSequence)
    ):
        return numpy.random.default_rng(random_state)
    raise TypeError(f"Cannot build a random generator from {random_state!r}.")


def seed_sequence(random_state: RandomState) -> numpy.random.SeedSequence:
    """
    Return a SeedSequence from which independent child streams can be spawned.

    A SeedSequence argument is copied, so spawning from the result leaves the
    caller's object untouched and the same object always seeds the same streams.
    """
    if isinstance(random_state, numpy.random.SeedSequence):
        return numpy.random.SeedSequence(
            random_state.entropy,
            spawn_key=random_state.spawn_key,
            pool_size=random_state.pool_size,
            n_children_spawned=random_state.n_children_spawned,
        )
    if isinstance(random_state, numpy.random.Generator):
        # Seeded from the caller's stream
        return numpy.random.SeedSequence(
            random_state.integers(0, 2**63, size=4, dtype=numpy.uint64)
        )
    if random_state is None or isinstance(random_state, (int, numpy.integer)):
        return numpy.random.SeedSequence(random_state)
    raise TypeError(f"Cannot build a seed sequence from {random_state!r}.")


def spawn_generators(random_state: RandomState, n: int) -> list[numpy.random.Generator]:
    """
    Spawn `n` statistically independent generators, one per worker or tree.

    Args:
        random_state: root seed; None draws fresh OS entropy
        n: number of generators

    Returns:
        list of `n` generators whose streams do not overlap
    """
    if n < 0:
        raise ValueError(f"Number of generators must be non-negative, got {n}.")
    children = seed_sequence(random_state).spawn(n)
    return [numpy.random.default_rng(child) for child in children]


class UniformSubsetSampler:
    """
    Draws `sample_size` distinct integers from `{0, ..., pop_size - 1}`.

    The whole population is materialized and permuted, and the prefix is kept,
    so a draw costs O(pop_size) regardless of `sample_size`.
    Meant for small candidate spaces such as the feature pool of a neighborhood,
    not for bagging over a full dataset.
    """

    _pop_size: int
    _sample_size: int

    def __init__(self, pop_size: int, sample_size: int) -> None:
        """
        Args:
            pop_size: size of the population to draw from
            sample_size: number of distinct values to draw

        Raises:
            ValueError: if either size is negative
            SampleSizeExceedsPopulationError: if sample_size > pop_size
        """
        if pop_size < 0 or sample_size < 0:
            raise ValueError(
                f"Sizes must be non-negative, got pop_size={pop_size}, sample_size={sample_size}."
            )
        if sample_size > pop_size:
            raise SampleSizeExceedsPopulationError(
                f"Cannot draw {sample_size} distinct values from a population of {pop_size}."
            )
        self._pop_size = pop_size
        self._sample_size = sample_size

    @property
    def pop_size(self) -> int:
        return self._pop_size

    @property
    def sample_size(self) -> int:
        return self._sample_size

    def sample_without_replacement(self, rng: RandomState = None) -> IdVector:
        """
        Draw one subset.

        Every subset of size `sample_size` is equally likely to be the set of values
        returned. The order comes from the shuffle.

        Args:
            rng: generator or seed to draw from; None uses fresh OS entropy for this call only
        """
        rng = check_random_state(rng)
        population = numpy.arange(self._pop_size, dtype=numpy.intp)
        rng.shuffle(population)
        logger.debug(
            "Drew %d of %d values without replacement", self._sample_size, self._pop_size
        )
        return population[: self._sample_size].copy()


def sample_without_replacement(
    pop_size: int,
    sample_size: int,
    rng: RandomState = None,
) -> IdVector:
    """Shortcut for `UniformSubsetSampler(pop_size, sample_size).sample_without_replacement(rng)`."""
    return UniformSubsetSampler(pop_size, sample_size).sample_without_replacement(rng)
