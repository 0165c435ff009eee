"""Tree index persistence.

Trees are stored either as JSON (readable, the default) or as a pickle of the same plain mapping
(compact, faster to load). The format follows the file extension unless given explicitly.

Writes are atomic: the payload is fully serialized first, written to a sibling temporary file and
renamed into place, so a failed save never leaves a truncated index behind.
"""

from __future__ import annotations

import json
import os
import pickle
import tempfile
from enum import Enum
from pathlib import Path

from pydantic import ValidationError

from pagetree.errors import (
    DirectoryCreationError,
    IndexNotFoundError,
    PersistenceError,
    SerializationError,
)
from pagetree.logging import get_logger
from pagetree.models.tree import DocumentTree

logger = get_logger(__name__)

DEFAULT_INDEX_FILENAME = "tree_index.json"

_BINARY_SUFFIXES = {".bin", ".bincode", ".pkl", ".pickle"}


class SaveFormat(str, Enum):
    """On-disk encoding of a tree index."""

    JSON = "json"
    BINARY = "binary"

    @classmethod
    def from_path(cls, path: Path | str) -> "SaveFormat":
        """Pick the format from the file extension; unknown extensions mean JSON."""

        suffix = Path(path).suffix.lower()
        if suffix in _BINARY_SUFFIXES:
            return cls.BINARY
        return cls.JSON


def _encode(tree: DocumentTree, fmt: SaveFormat) -> bytes:
    try:
        if fmt is SaveFormat.BINARY:
            return pickle.dumps(tree.to_dict(), protocol=pickle.HIGHEST_PROTOCOL)
        return tree.to_json().encode("utf-8")
    except (TypeError, ValueError, pickle.PicklingError) as exc:
        raise SerializationError(f"Could not encode tree '{tree.name}': {exc}") from exc


def _decode(payload: bytes, fmt: SaveFormat, path: Path) -> DocumentTree:
    try:
        if fmt is SaveFormat.BINARY:
            data = pickle.loads(payload)
        else:
            data = json.loads(payload.decode("utf-8"))
        return DocumentTree.from_dict(data)
    except ValidationError as exc:
        raise SerializationError(
            f"Index at '{path}' does not describe a tree: {exc.error_count()} validation error(s)",
            path,
        ) from exc
    except (pickle.UnpicklingError, EOFError, ValueError) as exc:
        raise SerializationError(f"Could not decode index at '{path}': {exc}", path) from exc


def save_tree_with_format(tree: DocumentTree, path: Path | str, fmt: SaveFormat) -> Path:
    """Write `tree` to `path` in the given format.

    Args:
        tree: Tree to store.
        path: Destination file; missing parent directories are created.
        fmt: Encoding to use regardless of the extension.

    Returns:
        The destination path.

    Raises:
        DirectoryCreationError: If the parent directory cannot be created.
        SerializationError: If the tree cannot be encoded.
        PersistenceError: If the file cannot be written.
    """

    path = Path(path)
    payload = _encode(tree, fmt)

    parent = path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationError(parent, str(exc)) from exc

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise PersistenceError(f"Could not write index to '{path}': {exc}", path) from exc

    logger.info("Saved tree '%s' to %s (%s, %d bytes)", tree.name, path, fmt.value, len(payload))
    return path


def save_tree(tree: DocumentTree, path: Path | str) -> Path:
    """Write `tree` to `path`, choosing the format from the extension."""

    return save_tree_with_format(tree, path, SaveFormat.from_path(path))


def load_tree_with_format(path: Path | str, fmt: SaveFormat) -> DocumentTree:
    """Read a tree stored in the given format.

    Raises:
        IndexNotFoundError: If `path` does not exist.
        SerializationError: If the content is not a valid tree.
        PersistenceError: If the file cannot be read.
    """

    path = Path(path)
    if not path.exists():
        raise IndexNotFoundError(path)
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise PersistenceError(f"Could not read index at '{path}': {exc}", path) from exc

    tree = _decode(payload, fmt, path)
    logger.debug("Loaded tree '%s' from %s (%d sections)", tree.name, path, tree.node_count())
    return tree


def load_tree(path: Path | str) -> DocumentTree:
    """Read a tree, choosing the format from the extension."""

    return load_tree_with_format(path, SaveFormat.from_path(path))


def tree_exists(path: Path | str) -> bool:
    return Path(path).is_file()


def tree_size(path: Path | str) -> int:
    """Size of a stored index in bytes.

    Raises:
        IndexNotFoundError: If `path` does not exist.
    """

    path = Path(path)
    if not path.exists():
        raise IndexNotFoundError(path)
    return path.stat().st_size
