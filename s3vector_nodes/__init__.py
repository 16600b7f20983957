"""Workflow nodes for storing and searching text embeddings in AWS S3 Vectors."""

__version__ = "0.1.0"
