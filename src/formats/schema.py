# src/formats/schema.py

"""
Loading Kaitai Struct format documents (.ksy).

A .ksy file is plain YAML. We keep the raw mapping around (the enum index
walks it) and lift out the few meta fields the pipeline needs:

    meta:
      id: ping
      file-extension: bin        # or a list: [zip, jar]
      imports:
        - common/vlq_base128_le
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from runtime.errors import SchemaParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatSchema:
    """Parsed .ksy document plus the meta fields the pipeline relies on."""

    id: str
    file_extensions: Tuple[str, ...]
    document: Dict[str, Any] = field(repr=False, compare=False)
    path: Optional[Path] = None
    imports: Tuple[str, ...] = ()

    @property
    def binary_names(self) -> Tuple[str, ...]:
        """Expected names of the associated binary: `<id>.<extension>`."""
        return tuple(f"{self.id}.{ext}" for ext in self.file_extensions)

    @property
    def source_dir(self) -> Optional[Path]:
        return self.path.parent if self.path is not None else None

    @classmethod
    def from_document(
        cls,
        document: Any,
        path: Optional[Union[str, Path]] = None,
    ) -> "FormatSchema":
        """Validate a raw YAML document and wrap it in a FormatSchema."""
        origin = path if path is not None else "<document>"

        if not isinstance(document, dict):
            raise SchemaParseError(origin, f"expected a mapping at top level, got {type(document).__name__}")

        meta = document.get("meta")
        if not isinstance(meta, dict):
            raise SchemaParseError(origin, "missing 'meta' section")

        schema_id = meta.get("id")
        if not isinstance(schema_id, str) or not schema_id:
            raise SchemaParseError(origin, "missing 'meta/id'")

        return cls(
            id=schema_id,
            file_extensions=_as_str_tuple(meta.get("file-extension"), origin, "meta/file-extension"),
            document=document,
            path=Path(path) if path is not None else None,
            imports=_as_str_tuple(meta.get("imports"), origin, "meta/imports"),
        )


def _as_str_tuple(value: Any, origin: Any, key: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, int)):
        return (str(value),)
    if isinstance(value, list) and all(isinstance(v, (str, int)) for v in value):
        return tuple(str(v) for v in value)
    raise SchemaParseError(origin, f"'{key}' must be a string or a list of strings")


def load_format_schema(path: Union[str, Path]) -> FormatSchema:
    """
    Read a .ksy file into a FormatSchema.

    Raises SchemaParseError for unreadable files, invalid YAML and documents
    without a usable meta/id.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as exc:
        raise SchemaParseError(path, f"cannot read file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise SchemaParseError(path, f"invalid YAML: {exc}") from exc

    return FormatSchema.from_document(document, path)


def load_imported_documents(schema: FormatSchema) -> List[Dict[str, Any]]:
    """
    Raw documents of every schema reachable through meta/imports.

    Relative imports resolve against the importing file's directory;
    absolute ones ('/common/x') against the root schema's directory, which
    is the import path the compiler is given. Unreadable imports are
    logged and left out; the compiler reports them properly.
    """
    documents: List[Dict[str, Any]] = []
    seen = {schema.path.resolve()} if schema.path is not None else set()
    pending = [(schema.source_dir, name) for name in schema.imports]

    while pending:
        base_dir, name = pending.pop(0)
        if name.startswith("/"):
            base_dir = schema.source_dir
        if base_dir is None:
            continue
        path = (base_dir / f"{name.lstrip('/')}.ksy").resolve()
        if path in seen:
            continue
        seen.add(path)
        try:
            imported = load_format_schema(path)
        except SchemaParseError as exc:
            logger.warning("Cannot index enums of import '%s': %s", name, exc)
            continue
        documents.append(imported.document)
        pending.extend((imported.source_dir, sub) for sub in imported.imports)
    return documents
