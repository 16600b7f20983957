#!/usr/bin/env python
"""Run a node type against a list of input items.

Usage:
    python -m scripts.run_node --node vectorStoreAwsS3 --items data/items.json \
        --param operation=insert --param bucketName=docs --param indexName=main

Parameter values are parsed as JSON when possible, so ``--param topK=8`` is an
integer and ``--param 'options={"namespace": "a"}'`` is an object. Without
``--credentials`` the AWS settings come from the environment.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from s3vector_nodes.exceptions import VectorNodesError
from s3vector_nodes.logging_config import get_logger, setup_logging
from s3vector_nodes.nodes.context import StaticExecutionContext
from s3vector_nodes.nodes.registry import NODE_TYPES, get_node_type

logger = get_logger(__name__)


def parse_param(raw: str) -> tuple[str, Any]:
    """Split a ``name=value`` argument, decoding the value as JSON if it is."""
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected name=value, got: {raw}")
    try:
        return name, json.loads(value)
    except ValueError:
        return name, value


def load_items(path: Path | None) -> list[dict[str, Any]]:
    """Load input items from a JSON file holding an object or a list of objects."""
    if path is None:
        return [{}]
    data = json.loads(path.read_text())
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list) or not all(isinstance(i, dict) for i in data):
        raise ValueError(f"{path} must contain a JSON object or a list of objects")
    return data


async def run_node(
    node_name: str,
    items: list[dict[str, Any]],
    parameters: dict[str, Any],
    credentials: dict[str, Any],
    continue_on_fail: bool = False,
) -> list[dict[str, Any]]:
    """Execute one node and return its output records.

    Args:
        node_name: Registered node type name.
        items: Input items.
        parameters: Node parameters shared by every item.
        credentials: AWS credential fields.
        continue_on_fail: Record item failures instead of aborting.

    Returns:
        One output record per item.
    """
    node = get_node_type(node_name)
    context = StaticExecutionContext(
        items=items,
        parameters=parameters,
        credentials={"aws": credentials} if credentials else None,
        continue_on_fail=continue_on_fail,
    )

    logger.info(f"Running {node_name} on {len(items)} items")
    return await node.execute(context)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run an S3 vector node against JSON input items",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--node",
        choices=sorted(NODE_TYPES),
        default="vectorStoreAwsS3",
        help="Node type to run",
    )
    parser.add_argument(
        "--items",
        type=Path,
        default=None,
        help="Path to a JSON file with the input items",
    )
    parser.add_argument(
        "--param",
        type=parse_param,
        action="append",
        default=[],
        help="Node parameter as name=value (repeatable)",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        default=None,
        help="Path to a JSON file with accessKeyId, secretAccessKey, sessionToken, region",
    )
    parser.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="Report failed items instead of aborting",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level",
    )

    args = parser.parse_args()
    setup_logging(level=args.log_level)

    credentials = json.loads(args.credentials.read_text()) if args.credentials else {}

    try:
        records = asyncio.run(
            run_node(
                node_name=args.node,
                items=load_items(args.items),
                parameters=dict(args.param),
                credentials=credentials,
                continue_on_fail=args.continue_on_fail,
            )
        )
    except VectorNodesError as e:
        logger.error(f"Node execution aborted: {e.message}", extra={"details": e.details})
        print(json.dumps(e.to_dict(), indent=2))
        sys.exit(1)

    print(json.dumps(records, indent=2, default=str))


if __name__ == "__main__":
    main()
