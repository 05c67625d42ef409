#!/usr/bin/env python3
"""Coverage experiment for forest sampling over a nearest-neighbor graph.

Pipeline:
    1. Load a scikit-learn toy dataset
    2. Build a k-nearest-neighbor graph with NearestNeighbors
    3. For each tree (in a thread pool, one spawned seed per tree):
       - create a root view and bootstrap the training population
       - split the population by class into sub-views
       - draw a feature pool at every view
    4. Report how much of the dataset and of the candidate space was covered

Usage:
    python exp/feature_pool_coverage.py --dataset iris --trees 50
    python exp/feature_pool_coverage.py --neighbors 8 --features 40 --projections 4 -v
"""

from __future__ import annotations

import argparse
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

import numpy as np
from sklearn.datasets import load_breast_cancer, load_iris, load_wine
from sklearn.neighbors import NearestNeighbors

from nfsample import NeighborhoodSampleView, candidate_space_size, encode_feature
from nfsample.exceptions import NFSampleException

logger = logging.getLogger("feature_pool_coverage")

DATASETS = {
    "iris": load_iris,
    "wine": load_wine,
    "breast_cancer": load_breast_cancer,
}

DEFAULT_DATASET = "iris"
DEFAULT_TREES = 20
DEFAULT_NEIGHBORS = 5
DEFAULT_FEATURES = 10
DEFAULT_PROJECTIONS = 2
DEFAULT_SEED = 42


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bootstrap and feature-pool coverage over a k-NN graph"
    )
    parser.add_argument(
        "--dataset",
        choices=sorted(DATASETS),
        default=DEFAULT_DATASET,
        help=f"Toy dataset to load (default: {DEFAULT_DATASET})",
    )
    parser.add_argument(
        "--trees",
        type=int,
        default=DEFAULT_TREES,
        help=f"Number of trees, one root view each (default: {DEFAULT_TREES})",
    )
    parser.add_argument(
        "--neighbors",
        type=int,
        default=DEFAULT_NEIGHBORS,
        help=f"Neighborhood size k (default: {DEFAULT_NEIGHBORS})",
    )
    parser.add_argument(
        "--features",
        type=int,
        default=DEFAULT_FEATURES,
        help=f"Feature pool size per view (default: {DEFAULT_FEATURES})",
    )
    parser.add_argument(
        "--projections",
        type=int,
        default=DEFAULT_PROJECTIONS,
        help=f"Number of projection types (default: {DEFAULT_PROJECTIONS})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help=f"Root seed, spawned into one stream per tree (default: {DEFAULT_SEED})",
    )
    parser.add_argument(
        "--worker-threads",
        type=int,
        default=None,
        help="Number of worker threads (default: CPU cores)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    return parser.parse_args()


def build_graph(
    features: np.ndarray, n_neighbors: int
) -> tuple[np.ndarray, np.ndarray]:
    """Return (index_matrix, distance_matrix) of the k-NN graph, each point included."""
    model = NearestNeighbors(n_neighbors=n_neighbors).fit(features)
    distances, indices = model.kneighbors(features)
    return indices, distances


def run_tree(
    tree_idx: int,
    seed: np.random.SeedSequence,
    arrays: tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray],
    args: argparse.Namespace,
) -> dict[str, Any]:
    """Grow the sampling side of one tree: bootstrap, per-class children, pools."""
    dataset, labels, index_matrix, distance_matrix = arrays
    root = NeighborhoodSampleView(
        dataset,
        labels,
        index_matrix,
        distance_matrix,
        num_classes=len(np.unique(labels)),
        num_features=args.features,
        num_projection_types=args.projections,
        random_state=seed,
    )
    population = root.bootstrap_sample(root.num_points)

    candidates: set[int] = set()
    views = [root]
    for class_id in range(root.num_classes):
        subset = population[labels[population] == class_id]
        if subset.size > 0:
            views.append(NeighborhoodSampleView.subview(root, subset))

    for view in views:
        for feature in view.sample_feature_pool():
            candidates.add(encode_feature(feature, view.neighborhood_size))

    logger.debug(
        "Tree %d: %d unique points, %d views", tree_idx, len(np.unique(population)), len(views)
    )
    return {
        "tree": tree_idx,
        "points": set(population.tolist()),
        "candidates": candidates,
    }


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    dataset, labels = DATASETS[args.dataset](return_X_y=True)
    index_matrix, distance_matrix = build_graph(dataset, args.neighbors)
    arrays = (dataset, labels, index_matrix, distance_matrix)
    n_candidates = candidate_space_size(args.neighbors, args.projections)

    logger.info(
        "Dataset %s: %d points, %d dims, k=%d, %d candidate features",
        args.dataset,
        dataset.shape[0],
        dataset.shape[1],
        args.neighbors,
        n_candidates,
    )

    seeds = np.random.SeedSequence(args.seed).spawn(args.trees)
    max_workers = args.worker_threads or os.cpu_count() or 1

    results: list[dict[str, Any]] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(run_tree, idx, seed, arrays, args): idx
            for idx, seed in enumerate(seeds)
        }
        for future in as_completed(futures):
            try:
                results.append(future.result())
            except NFSampleException as e:
                logger.error("Tree %d failed: %s", futures[future], e)

    if not results:
        logger.error("No tree finished.")
        return

    results.sort(key=lambda r: r["tree"])
    per_tree = np.mean([len(r["points"]) / dataset.shape[0] for r in results])
    covered_points = set().union(*(r["points"] for r in results))
    covered_candidates = set().union(*(r["candidates"] for r in results))

    print(f"trees:                 {len(results)}")
    print(f"points per bootstrap:  {per_tree:.3f} (expected ~0.632)")
    print(f"points covered:        {len(covered_points)}/{dataset.shape[0]}")
    print(f"candidates covered:    {len(covered_candidates)}/{n_candidates}")


if __name__ == "__main__":
    main()
