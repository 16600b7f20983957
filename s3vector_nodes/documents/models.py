"""Document data models."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from s3vector_nodes.exceptions import ConfigurationError


class Document(BaseModel):
    """A piece of text and the metadata it came with.

    Attributes:
        content: The text content of the document.
        metadata: Source metadata, inherited by every chunk.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Text content of the document")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Source metadata",
    )

    @classmethod
    def from_item(
        cls,
        item: Mapping[str, Any],
        text_field: str,
        include_metadata: bool = True,
    ) -> "Document":
        """Create a document from a host input item.

        Args:
            item: The item's JSON fields.
            text_field: Name of the field holding the text.
            include_metadata: Copy the other fields into metadata.

        Returns:
            New Document instance.

        Raises:
            ConfigurationError: If the field is missing, empty or not a string.
        """
        text = item.get(text_field)
        if not text or not isinstance(text, str):
            raise ConfigurationError(
                f"No valid text found in field '{text_field}'",
                details={"text_field": text_field},
            )

        metadata: dict[str, Any] = {}
        if include_metadata:
            metadata = {k: v for k, v in item.items() if k != text_field}

        return cls(content=text, metadata=metadata)
