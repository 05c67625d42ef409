import numpy as np
import pytest

from nfsample.exceptions import SampleSizeExceedsPopulationError
from nfsample.rng import (
    UniformSubsetSampler,
    check_random_state,
    sample_without_replacement,
    spawn_generators,
)


class TestUniformSubsetSampler:
    """Unit tests for sampling without replacement."""

    @pytest.mark.parametrize(
        "pop_size,sample_size",
        [(0, 0), (1, 0), (1, 1), (5, 3), (24, 24), (100, 7)],
    )
    def test_distinct_values_in_range(self, pop_size, sample_size):
        """Exactly sample_size distinct values, all in [0, pop_size)."""
        samples = UniformSubsetSampler(pop_size, sample_size).sample_without_replacement()

        assert samples.shape == (sample_size,)
        assert len(np.unique(samples)) == sample_size
        assert np.all((samples >= 0) & (samples < pop_size))

    def test_full_draw_is_permutation(self):
        """Drawing the whole population returns every value once."""
        samples = sample_without_replacement(24, 24, np.random.default_rng(1))
        assert sorted(samples.tolist()) == list(range(24))

    def test_fresh_entropy_differs(self):
        """Unseeded draws differ with overwhelming probability."""
        sampler = UniformSubsetSampler(1000, 10)
        draws = {tuple(sampler.sample_without_replacement()) for _ in range(5)}
        assert len(draws) > 1

    def test_seeded_is_reproducible(self):
        """The same seed gives the same draw."""
        first = sample_without_replacement(50, 10, np.random.default_rng(7))
        second = sample_without_replacement(50, 10, np.random.default_rng(7))
        assert np.array_equal(first, second)

    def test_sample_exceeds_population(self):
        """More samples than the population is rejected up front."""
        with pytest.raises(SampleSizeExceedsPopulationError):
            UniformSubsetSampler(3, 4)

    def test_negative_size(self):
        with pytest.raises(ValueError):
            UniformSubsetSampler(-1, 0)

    def test_subsets_are_roughly_uniform(self):
        """Each value shows up in about s/n of the draws."""
        rng = np.random.default_rng(3)
        counts = np.zeros(10)
        for _ in range(2000):
            counts[sample_without_replacement(10, 3, rng)] += 1
        # Expected 600 per value
        assert np.all(np.abs(counts - 600) < 100)


class TestRandomState:
    """Tests for random state coercion and spawning."""

    def test_generator_passthrough(self):
        rng = np.random.default_rng(0)
        assert check_random_state(rng) is rng

    def test_int_seed_reproducible(self):
        assert check_random_state(5).integers(1 << 30) == check_random_state(5).integers(1 << 30)

    def test_invalid_random_state(self):
        with pytest.raises(TypeError):
            check_random_state("seed")

    def test_spawned_generators_are_independent(self):
        """Spawned streams differ from each other but are reproducible from the root."""
        first = [g.integers(1 << 30, size=4).tolist() for g in spawn_generators(11, 3)]
        second = [g.integers(1 << 30, size=4).tolist() for g in spawn_generators(11, 3)]

        assert first == second
        assert len({tuple(stream) for stream in first}) == 3

    def test_spawn_from_seed_sequence_is_repeatable(self):
        """Spawning does not advance the caller's SeedSequence."""
        seed = np.random.SeedSequence(123)
        first = [g.integers(1 << 30) for g in spawn_generators(seed, 2)]
        second = [g.integers(1 << 30) for g in spawn_generators(seed, 2)]

        assert first == second
        assert seed.n_children_spawned == 0

    def test_spawn_from_generator(self):
        generators = spawn_generators(np.random.default_rng(0), 2)
        assert len(generators) == 2

    def test_spawn_negative(self):
        with pytest.raises(ValueError):
            spawn_generators(0, -1)
