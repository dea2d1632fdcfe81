#!/usr/bin/env python3
"""
Script to generate Snowflake IDs or decode existing ones.
"""

import argparse
import json
import sys
from typing import List, Dict, Any, Optional

from snowflake_service.core.const import DEFAULT_EPOCH
from snowflake_service.core.exceptions import SnowflakeError
from snowflake_service.core.snowflake import SnowflakeGenerator, decode


def generate_ids(node_id: int, epoch: int, count: int) -> List[int]:
    """
    Generate IDs with a fresh generator.

    Args:
        node_id: Node ID
        epoch: Custom epoch in milliseconds
        count: Number of IDs

    Returns:
        Generated IDs
    """
    generator = SnowflakeGenerator(node_id=node_id, epoch=epoch)
    return generator.next_ids(count)


def decode_ids(values: List[str], epoch: int) -> List[Dict[str, Any]]:
    """
    Decode IDs given as decimal strings.

    Args:
        values: IDs to decode
        epoch: Epoch the IDs were generated against

    Returns:
        List of decoded ID dictionaries
    """
    decoded = []
    for value in values:
        parts = decode(int(value), epoch)
        decoded.append({
            "id": value,
            "timestamp": parts.timestamp,
            "unix_ms": parts.unix_ms(epoch),
            "datetime": parts.to_datetime(epoch).isoformat(),
            "node_id": parts.node_id,
            "sequence": parts.sequence
        })
    return decoded


def print_decoded_table(decoded: List[Dict[str, Any]]) -> None:
    """
    Print decoded IDs in a table format.

    Args:
        decoded: List of decoded ID dictionaries
    """
    header = f"{'ID':<20} {'Timestamp':<14} {'Datetime (UTC)':<34} {'Node':<6} {'Sequence'}"
    print(header)
    print("-" * 90)

    for info in decoded:
        print(f"{info['id']:<20} {info['timestamp']:<14} {info['datetime']:<34} {info['node_id']:<6} {info['sequence']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate or decode Snowflake IDs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser("generate", help="Generate IDs")
    generate_parser.add_argument("--node-id", type=int, required=True, help="Node ID")
    generate_parser.add_argument("--epoch", type=int, default=DEFAULT_EPOCH, help="Custom epoch in milliseconds")
    generate_parser.add_argument("--count", type=int, default=1, help="Number of IDs to generate")

    decode_parser = subparsers.add_parser("decode", help="Decode IDs")
    decode_parser.add_argument("ids", nargs="+", help="IDs to decode")
    decode_parser.add_argument("--epoch", type=int, default=DEFAULT_EPOCH, help="Epoch the IDs were generated against")
    decode_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = build_parser().parse_args(argv)

    if args.command == "generate":
        try:
            ids = generate_ids(args.node_id, args.epoch, args.count)
        except (SnowflakeError, ValueError) as e:
            print(f"Error: {str(e)}", file=sys.stderr)
            return 2

        for snowflake_id in ids:
            print(snowflake_id)
    else:
        try:
            decoded = decode_ids(args.ids, args.epoch)
        except ValueError as e:
            print(f"Error: {str(e)}", file=sys.stderr)
            return 2

        if args.json:
            print(json.dumps(decoded, indent=2))
        else:
            print_decoded_table(decoded)

    return 0


if __name__ == "__main__":
    """Run the script."""
    sys.exit(main())
