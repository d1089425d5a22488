from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from protoc_prost.compiler import ProtoIOError, compile_to_buffers, write_outputs
from protoc_prost.parser.errors import ProtoSchemaError

EXIT_SCHEMA_ERROR = 1
EXIT_IO_ERROR = 2


def _find_proto_files(inputs: Sequence[str]) -> List[str]:
    """Expand directories recursively into .proto files.

    Files found under a directory are sorted for deterministic output;
    explicit file arguments keep their command-line order.
    """
    results: List[str] = []
    for item in inputs:
        if os.path.isdir(item):
            results.extend(sorted(str(p) for p in Path(item).rglob("*.proto")))
        else:
            results.append(item)
    return results


def run(
    proto_inputs: Sequence[str],
    out_dir: str,
    includes: Sequence[str] = (),
) -> List[str]:
    """Main pipeline: find, compile, write."""
    proto_files = _find_proto_files(proto_inputs)
    if not proto_files:
        print(f"No .proto files found under {', '.join(proto_inputs)}")
        return []

    print(f"Found {len(proto_files)} proto file(s)")

    outputs = compile_to_buffers(proto_files, includes)
    print(f"Compiled {len(outputs)} package(s)")

    generated = write_outputs(outputs, out_dir)
    for f in generated:
        print(f"  Generated: {f}")

    print("Done!")
    return generated


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compile .proto files into Rust types annotated for prost",
    )
    parser.add_argument(
        "--proto",
        action="append",
        required=True,
        help="Path to a .proto file or a directory to scan recursively (repeatable)",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=[],
        help="Include directory for imports (repeatable; imports are not resolved)",
    )
    parser.add_argument(
        "--out",
        default=os.environ.get("OUT_DIR"),
        help="Output directory for generated .rs files (defaults to $OUT_DIR)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log each compiled file",
    )

    args = parser.parse_args(argv)
    if not args.out:
        parser.error("--out is required when OUT_DIR is not set")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args.proto, args.out, args.include)
    except ProtoSchemaError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return EXIT_SCHEMA_ERROR
    except ProtoIOError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return EXIT_IO_ERROR
    return 0
