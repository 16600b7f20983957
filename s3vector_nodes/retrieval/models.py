"""Retrieval data models."""

from typing import Any

from pydantic import BaseModel, Field


class RetrievalResult(BaseModel):
    """Result from a retrieval operation.

    Attributes:
        content: The stored chunk text.
        metadata: Metadata stored with the chunk.
        score: Provider score; its direction and range are the provider's.
        key: Key of the matching vector.
    """

    content: str = Field(description="Retrieved text content")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Stored metadata",
    )
    score: float | None = Field(default=None, description="Provider score")
    key: str = Field(default="", description="Vector key")

    def to_output(self) -> dict[str, Any]:
        """Shape used in node output records."""
        return {"content": self.content, "metadata": self.metadata, "score": self.score}
