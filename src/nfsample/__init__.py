from nfsample.feature import Feature, candidate_space_size, decode_feature, encode_feature
from nfsample.rng import UniformSubsetSampler, sample_without_replacement, spawn_generators
from nfsample.view import NeighborhoodSampleView, ViewConfig

__all__ = [
    "Feature",
    "NeighborhoodSampleView",
    "UniformSubsetSampler",
    "ViewConfig",
    "candidate_space_size",
    "decode_feature",
    "encode_feature",
    "sample_without_replacement",
    "spawn_generators",
]
