"""Custom exceptions for world generation."""


class WorldGenError(Exception):
    """Base exception for world generation errors."""

    pass


class InvalidDimensionsError(WorldGenError):
    """Raised when a world is created with a non-positive width or height."""

    pass


class CoordinateOutOfRangeError(WorldGenError):
    """Raised when a Y coordinate lies outside the map."""

    pass


class GenerationStageError(WorldGenError):
    """Raised when a pipeline stage fails or leaves the world invalid.

    The original exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, stage_name: str, message: str):
        super().__init__(f"Stage '{stage_name}' failed: {message}")
        self.stage_name = stage_name
