"""Error taxonomy for recipe resolution.

Only InvalidRequest and RecipeNotFound are meant to reach callers. The source
errors are raised by the external clients and recovered by the resolution
pipeline, which moves on to the next strategy.
"""

from typing import Optional


class RecipeMatcherError(Exception):
    """Base class for all recipe matcher errors."""


class InvalidRequest(RecipeMatcherError, ValueError):
    """The caller supplied something no fallback can repair (e.g. no ingredients)."""


class SourceUnavailable(RecipeMatcherError, ConnectionError):
    """An external source failed: network error, timeout, auth/quota rejection or non-2xx status."""

    def __init__(self, source: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status = status


class MalformedResponse(RecipeMatcherError, ValueError):
    """A source answered, but with data that cannot be normalized."""


class InternalInconsistency(RecipeMatcherError):
    """Internal state is corrupt (e.g. a cache entry of the wrong shape)."""


class RecipeNotFound(RecipeMatcherError, LookupError):
    """No source knows a recipe with the requested id."""

    def __init__(self, recipe_id: int) -> None:
        super().__init__(f"Recipe {recipe_id} not found")
        self.recipe_id = recipe_id
