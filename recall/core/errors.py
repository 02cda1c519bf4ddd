"""
Error taxonomy for the recall core.

Only ItemNotFound and DimensionMismatch ever reach callers. EmbeddingUnavailable
is recovered inside the embedding generator and RecommendationFailed is turned
into a degraded result by the recommendation engine.
"""


class RecallError(Exception):
    """Base class for all recall errors."""


class EmbeddingUnavailable(RecallError):
    """A remote embedding source could not produce a usable vector."""


class DimensionMismatch(RecallError, ValueError):
    """Two vectors of different length were compared or stored together."""

    def __init__(self, expected: int, actual: int, context: str = ""):
        self.expected = expected
        self.actual = actual
        message = f"Vector dimension {actual} does not match expected dimension {expected}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class ItemNotFound(RecallError, KeyError):
    """No vector record exists for the requested item id."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"No vector record for item: {item_id}")

    def __str__(self) -> str:
        return self.args[0]


class RecommendationFailed(RecallError):
    """Unexpected failure inside a recommendation pass."""
