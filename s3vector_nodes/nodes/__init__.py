"""Workflow node types."""

from s3vector_nodes.nodes.base import NodeType, ServiceFactory
from s3vector_nodes.nodes.context import ExecutionContext, StaticExecutionContext
from s3vector_nodes.nodes.models import ItemFailure, ItemSuccess, NodeDescription
from s3vector_nodes.nodes.registry import NODE_TYPES, get_node_type, list_node_descriptions
from s3vector_nodes.nodes.s3_vector import S3VectorNode
from s3vector_nodes.nodes.vector_store import VectorStoreAwsS3Node

__all__ = [
    "ExecutionContext",
    "ItemFailure",
    "ItemSuccess",
    "NODE_TYPES",
    "NodeDescription",
    "NodeType",
    "S3VectorNode",
    "ServiceFactory",
    "StaticExecutionContext",
    "VectorStoreAwsS3Node",
    "get_node_type",
    "list_node_descriptions",
]
