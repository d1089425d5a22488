"""Batch compilation of .proto files into one Rust module per package."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from protoc_prost.generator.rust_prost_generator import generate_rust
from protoc_prost.parser.proto_ast_parser import ProtoParser
from protoc_prost.parser.proto_tokenizer import tokenize_proto

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

OUTPUT_EXTENSION = ".rs"


class ProtoIOError(Exception):
    """Raised when a schema cannot be read or an output cannot be written."""

    def __init__(self, path: PathLike, error: OSError):
        self.path = str(path)
        super().__init__(f"{self.path}: {error.strerror or error}")


def compile_to_buffers(
    protos: Sequence[PathLike],
    includes: Sequence[PathLike] = (),
) -> Dict[str, str]:
    """Compile schema files into generated Rust source keyed by package name.

    Files are processed in the given order. When several files declare the
    same package, their outputs are concatenated in that order.

    ``includes`` is accepted for interface compatibility; imports are parsed
    but never resolved.
    """
    if includes:
        logger.debug("Ignoring %d include path(s): imports are not resolved", len(includes))

    outputs: Dict[str, str] = {}
    for path in protos:
        try:
            source = Path(path).read_bytes()
        except OSError as e:
            raise ProtoIOError(path, e) from e

        package = ProtoParser(tokenize_proto(source)).parse()
        generated = generate_rust(package)
        logger.debug(
            "Compiled %s: package %r, %d top-level entries, %d byte(s) generated",
            path, package.name, len(package.entries), len(generated),
        )

        if package.name in outputs:
            logger.debug("Appending %s to existing package %r", path, package.name)
            outputs[package.name] += generated
        else:
            outputs[package.name] = generated

    return outputs


def write_outputs(outputs: Dict[str, str], out_dir: PathLike) -> List[str]:
    """Write each package buffer to ``<out_dir>/<package>.rs``.

    Returns list of generated file paths.
    """
    try:
        os.makedirs(out_dir, exist_ok=True)
    except OSError as e:
        raise ProtoIOError(out_dir, e) from e

    generated: List[str] = []
    for name, source in outputs.items():
        file_path = os.path.join(out_dir, f"{name}{OUTPUT_EXTENSION}")
        try:
            Path(file_path).write_text(source, encoding="utf-8")
        except OSError as e:
            raise ProtoIOError(file_path, e) from e
        logger.debug("Wrote %s", file_path)
        generated.append(file_path)

    return generated


def compile_protos(
    protos: Sequence[PathLike],
    includes: Sequence[PathLike] = (),
    out_dir: Optional[PathLike] = None,
) -> List[str]:
    """Compile schema files and write one Rust file per package.

    ``out_dir`` defaults to the ``OUT_DIR`` environment variable, which is
    where build scripts expect generated code.
    """
    if out_dir is None:
        out_dir = os.environ.get("OUT_DIR")
        if not out_dir:
            raise ValueError("out_dir not given and OUT_DIR is not set")

    outputs = compile_to_buffers(protos, includes)
    return write_outputs(outputs, out_dir)
