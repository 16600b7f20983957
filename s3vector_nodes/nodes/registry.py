"""Node types exported to the host."""

from s3vector_nodes.exceptions import ErrorCode, NodeOperationError
from s3vector_nodes.nodes.base import NodeType, ServiceFactory
from s3vector_nodes.nodes.models import NodeDescription
from s3vector_nodes.nodes.s3_vector import S3VectorNode
from s3vector_nodes.nodes.vector_store import VectorStoreAwsS3Node

NODE_TYPES: dict[str, type[NodeType]] = {
    VectorStoreAwsS3Node.description.name: VectorStoreAwsS3Node,
    S3VectorNode.description.name: S3VectorNode,
}


def get_node_type(name: str, services: ServiceFactory | None = None) -> NodeType:
    """Instantiate a registered node type.

    Raises:
        NodeOperationError: If no node is registered under ``name``.
    """
    node_cls = NODE_TYPES.get(name)
    if node_cls is None:
        raise NodeOperationError(
            f"Unknown node type: {name}",
            code=ErrorCode.UNKNOWN_NODE,
            details={"node": name, "available": sorted(NODE_TYPES)},
        )
    return node_cls(services=services)


def list_node_descriptions() -> list[NodeDescription]:
    return [node_cls.description for node_cls in NODE_TYPES.values()]
