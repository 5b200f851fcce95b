"""Base model configuration shared by all FeedSync models.

Example:
    >>> from feedsync.models.base import FeedSyncModel
    >>> class Tag(FeedSyncModel):
    ...     name: str
    >>> Tag(name="  news ").name
    'news'
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FeedSyncModel(BaseModel):
    """Base model with standard configuration.

    Models are frozen: instances built during a fetch cycle are never
    mutated, display copies are re-derived from storage reads.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
        extra="forbid",
    )
