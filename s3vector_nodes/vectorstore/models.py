"""Vector store data models."""

import json
from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel, Field, field_validator

# Values S3 Vectors metadata may hold. Nested mappings follow the same rule.
MetadataValue = Union[str, int, float, bool, None, dict[str, Any]]


def normalize_metadata(metadata: Mapping[str, Any]) -> dict[str, MetadataValue]:
    """Coerce metadata into the supported value union.

    Scalars and nested mappings are kept; anything else (lists, dates,
    arbitrary objects) is stored as its JSON text.
    """
    return {str(key): _normalize_value(value) for key, value in metadata.items()}


def _normalize_value(value: Any) -> MetadataValue:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Mapping):
        return normalize_metadata(value)
    return json.dumps(value, default=str, ensure_ascii=False)


class VectorRecord(BaseModel):
    """A record to store in the vector index.

    Attributes:
        key: Unique key for the record within the index.
        vector: The embedding vector.
        metadata: Filterable metadata stored with the vector, including the
            text needed to rebuild a search result.
    """

    key: str = Field(min_length=1, description="Unique record key")
    vector: list[float] = Field(description="Embedding vector")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata stored with the vector",
    )

    @field_validator("metadata", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return normalize_metadata(value)
        return value

    def to_put_input(self) -> dict[str, Any]:
        """Build the PutVectors entry for this record."""
        return {
            "key": self.key,
            "data": {"float32": self.vector},
            "metadata": self.metadata,
        }


class SearchResult(BaseModel):
    """Result from a vector similarity search.

    Attributes:
        key: Record key.
        score: Provider similarity value (S3 Vectors reports a distance, so
            lower means closer). None when the provider omitted it.
        metadata: Stored metadata.
    """

    key: str = Field(description="Record key")
    score: float | None = Field(default=None, description="Provider distance")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )
