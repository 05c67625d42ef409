class NFSampleException(Exception):
    """Library-specific exceptions in nfsample."""


class InvalidSubsetError(NFSampleException):
    """Raised when sub-view ids are not contained in the parent population."""

    def __init__(self, message: str):
        super().__init__(message)


class InvalidNeighborhoodSizeError(NFSampleException):
    """Raised when a neighborhood is too small to form a pair of distinct points."""

    def __init__(self, message: str):
        super().__init__(message)


class OutOfRangeError(NFSampleException, IndexError):
    """Raised when a point id is not a valid row of the dataset."""

    def __init__(self, message: str):
        super().__init__(message)


class SampleSizeExceedsPopulationError(NFSampleException):
    """Raised when more samples are requested than the population holds."""

    def __init__(self, message: str):
        super().__init__(message)


class InconsistentShapeError(NFSampleException):
    """Raised when the dataset, labels and neighbor matrices disagree in shape."""

    def __init__(self, message: str):
        super().__init__(message)
