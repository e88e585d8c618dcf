class DataError(Exception):
    """Data not in the expected format."""


class InvalidInputError(DataError, ValueError):
    """Samples handed to the tree builder cannot be learned from."""


class CorruptionError(Exception):
    """Internal state corruption detected. A tree's state is corrupted."""
