import numpy

DatasetMatrix = numpy.ndarray[tuple[int, int], numpy.dtype[numpy.floating]]
"""N x D data matrix, one row per point"""

LabelVector = numpy.ndarray[tuple[int], numpy.dtype[numpy.integer]]
"""Class id of every point, 0-indexed"""

IndexMatrix = numpy.ndarray[tuple[int, int], numpy.dtype[numpy.integer]]
"""N x k matrix, row i holds the ids of the k nearest neighbors of point i"""

DistanceMatrix = numpy.ndarray[tuple[int, int], numpy.dtype[numpy.floating]]
"""N x k matrix of neighbor distances, parallel to IndexMatrix"""

IdVector = numpy.ndarray[tuple[int], numpy.dtype[numpy.intp]]
"""Ordered point ids (rows of the dataset)"""

NeighborhoodBlock = numpy.ndarray[tuple[int, int], numpy.dtype[numpy.floating]]
"""k x D block of the data vectors of one point's neighbors"""
