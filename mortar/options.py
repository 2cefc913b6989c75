"""Pydantic model for per-query builder options."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class QueryOptions(BaseModel):
    """Defaults applied by the fluent builder.

    Attributes:
        page_size: Rows per page used by ``Query.page`` when no size is given.
        chunk_size: Rows per page used by ``Query.chunk`` when no size is given.
        chunk_index: Monotonic key column used as the ``Query.chunk`` cursor
            when no index is given.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    page_size: int = Field(default=100, ge=1)
    chunk_size: int = Field(default=100, ge=1)
    chunk_index: str = Field(default="id", min_length=1)
