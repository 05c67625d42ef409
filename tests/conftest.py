import numpy as np
import pytest
from sklearn.datasets import load_iris
from sklearn.neighbors import NearestNeighbors

from nfsample.view import NeighborhoodSampleView


@pytest.fixture
def three_point_graph() -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Three 2-D points, each with two hand-picked neighbors"""
    dataset = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 2.0]], dtype=np.float32)
    labels = np.array([0, 1, 1], dtype=np.int32)
    index_matrix = np.array([[0, 1], [1, 0], [2, 0]], dtype=np.int32)
    distance_matrix = np.array([[0.0, 1.0], [0.0, 1.0], [0.0, 2.0]], dtype=np.float32)
    return dataset, labels, index_matrix, distance_matrix


@pytest.fixture
def ten_point_graph() -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Ten points on a line, each listing itself and its 3 successors (cyclic)"""
    dataset = np.arange(20, dtype=np.float64).reshape(10, 2)
    labels = np.array([0, 1] * 5, dtype=np.int64)
    index_matrix = np.array(
        [[(i + j) % 10 for j in range(4)] for i in range(10)], dtype=np.int64
    )
    distance_matrix = np.tile(np.arange(4, dtype=np.float64), (10, 1))
    return dataset, labels, index_matrix, distance_matrix


@pytest.fixture
def iris_graph() -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Iris with a 5-nearest-neighbor graph"""
    features, labels = load_iris(return_X_y=True)
    distances, indices = NearestNeighbors(n_neighbors=5).fit(features).kneighbors(features)
    return features, labels, indices, distances


@pytest.fixture
def ten_point_view(ten_point_graph) -> NeighborhoodSampleView:
    """k=4, 2 projection types, pool of 5 features"""
    dataset, labels, index_matrix, distance_matrix = ten_point_graph
    return NeighborhoodSampleView(
        dataset,
        labels,
        index_matrix,
        distance_matrix,
        num_classes=2,
        num_features=5,
        num_projection_types=2,
        random_state=0,
    )
