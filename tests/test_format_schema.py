# tests/test_format_schema.py

from __future__ import annotations

from pathlib import Path

import pytest

from formats.schema import FormatSchema, load_format_schema, load_imported_documents
from runtime.errors import SchemaParseError
from fakes.generated_modules import CONTAINER_KSY, PING_KSY, RECORD_KSY


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_load_format_schema_reads_meta(tmp_path: Path) -> None:
    path = _write(tmp_path / "ping.ksy", PING_KSY)

    schema = load_format_schema(path)

    assert schema.id == "ping"
    assert schema.file_extensions == ("bin",)
    assert schema.binary_names == ("ping.bin",)
    assert schema.path == path
    assert schema.source_dir == tmp_path
    assert schema.document["seq"][0]["id"] == "code"


def test_multiple_extensions_and_imports() -> None:
    document = {
        "meta": {"id": "zip", "file-extension": ["zip", "jar"], "imports": ["/common/dos_datetime"]},
    }
    schema = FormatSchema.from_document(document)

    assert schema.binary_names == ("zip.zip", "zip.jar")
    assert schema.imports == ("/common/dos_datetime",)
    assert schema.path is None
    assert schema.source_dir is None


def test_schema_without_extension() -> None:
    schema = FormatSchema.from_document({"meta": {"id": "record"}})

    assert schema.binary_names == ()


@pytest.mark.parametrize(
    "text, message",
    [
        ("- just\n- a list\n", "expected a mapping"),
        ("seq: []\n", "missing 'meta' section"),
        ("meta:\n  endian: le\n", "missing 'meta/id'"),
        ("meta:\n  id: x\n  file-extension: {a: 1}\n", "file-extension"),
        ("meta: [unclosed\n", "invalid YAML"),
    ],
)
def test_invalid_documents_raise(tmp_path: Path, text: str, message: str) -> None:
    path = _write(tmp_path / "bad.ksy", text)

    with pytest.raises(SchemaParseError) as excinfo:
        load_format_schema(path)

    assert message in str(excinfo.value)
    assert excinfo.value.schema == str(path)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(SchemaParseError, match="cannot read file"):
        load_format_schema(tmp_path / "nope.ksy")


def test_imported_documents_follow_nested_imports(tmp_path: Path) -> None:
    container = _write(tmp_path / "container.ksy", CONTAINER_KSY)
    _write(tmp_path / "record.ksy", RECORD_KSY.replace("  id: record\n", "  id: record\n  imports:\n    - sub/leaf\n"))
    _write(tmp_path / "sub" / "leaf.ksy", "meta:\n  id: leaf\n")

    documents = load_imported_documents(load_format_schema(container))

    assert [d["meta"]["id"] for d in documents] == ["record", "leaf"]


def test_unreadable_import_is_left_out(tmp_path: Path, caplog) -> None:
    container = _write(tmp_path / "container.ksy", CONTAINER_KSY)

    with caplog.at_level("WARNING", logger="formats.schema"):
        documents = load_imported_documents(load_format_schema(container))

    assert documents == []
    assert "record" in caplog.text


def test_absolute_imports_resolve_against_root_schema_dir(tmp_path: Path) -> None:
    root = _write(tmp_path / "main.ksy", "meta:\n  id: main\n  imports:\n    - lib/a\n")
    _write(tmp_path / "lib" / "a.ksy", "meta:\n  id: a\n  imports:\n    - /common/b\n")
    _write(tmp_path / "common" / "b.ksy", "meta:\n  id: b\n")
    # a relative lookup from lib/ must not be what finds it
    assert not (tmp_path / "lib" / "common").exists()

    documents = load_imported_documents(load_format_schema(root))

    assert [d["meta"]["id"] for d in documents] == ["a", "b"]
