# tests/test_normalizer.py
"""
Tests for dump.normalizer.

Parsed objects come from the fake generated modules, so the normalizer sees
the same attribute layout (`_io`, `_m_*`, IntEnum members) as in real runs.
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
import yaml
from kaitaistruct import BytesIO, KaitaiStream

from codegen.module_loader import load_parser
from dump.normalizer import force_instances, normalize, public_field_name, resolve_enum_value
from formats.enum_index import EnumIndex, build_enum_index
from fakes.generated_modules import (
    CONTAINER_BYTES,
    CONTAINER_EXPECTED,
    CONTAINER_KSY,
    MODULE_SETS,
    PING_KSY,
    RECORD_KSY,
    SUM_KSY,
)


def _parse(tmp_path: Path, schema_id: str, data: bytes):
    parser = load_parser(MODULE_SETS[schema_id], schema_id, tmp_path / schema_id)
    return parser(KaitaiStream(BytesIO(data)))


@pytest.fixture
def ping_index() -> EnumIndex:
    return build_enum_index(yaml.safe_load(PING_KSY))


def test_known_enum_code(tmp_path: Path, ping_index: EnumIndex) -> None:
    root = _parse(tmp_path, "ping", b"\x01")

    assert normalize(root, ping_index) == {"code": {"name": "FAIL", "value": 1}}


def test_unknown_enum_code_has_null_name(tmp_path: Path, ping_index: EnumIndex) -> None:
    root = _parse(tmp_path, "ping", b"\x05")

    assert normalize(root, ping_index) == {"code": {"name": None, "value": 5}}


def test_enum_field_without_index_is_plain_value(tmp_path: Path) -> None:
    root = _parse(tmp_path, "ping", b"\x00")

    assert normalize(root, EnumIndex()) == {"code": 0}


def test_lazy_instance_is_forced(tmp_path: Path) -> None:
    root = _parse(tmp_path, "sum", b"\x02\x03")

    assert "_m_total" not in vars(root)
    tree = normalize(root, build_enum_index(yaml.safe_load(SUM_KSY)))

    assert tree == {"a": 2, "b": 3, "total": 5}
    assert list(tree) == ["a", "b", "total"]


def test_container_tree(tmp_path: Path) -> None:
    index = build_enum_index(yaml.safe_load(CONTAINER_KSY), [yaml.safe_load(RECORD_KSY)])
    root = _parse(tmp_path, "container", CONTAINER_BYTES)

    tree = normalize(root, index)

    assert tree == CONTAINER_EXPECTED
    # eager fields in read order, then instances
    assert list(tree) == list(CONTAINER_EXPECTED)
    assert list(tree["records"][0]) == ["flag", "len_payload", "payload"]


def test_normalize_is_idempotent(tmp_path: Path) -> None:
    index = build_enum_index(yaml.safe_load(CONTAINER_KSY), [yaml.safe_load(RECORD_KSY)])
    root = _parse(tmp_path, "container", CONTAINER_BYTES)

    assert normalize(root, index) == normalize(root, index)


def test_bookkeeping_attributes_are_dropped() -> None:
    node = SimpleNamespace(_io=object(), _parent=None, _root=None, _raw_body=b"x", body=b"\x01\x02", _m_size=2)

    assert normalize(node, EnumIndex()) == {"body": [1, 2], "size": 2}


def test_public_field_name() -> None:
    assert public_field_name("code") == "code"
    assert public_field_name("_m_total") == "total"
    assert public_field_name("_io") is None
    assert public_field_name("_raw_payload") is None


def test_force_instances_reads_properties() -> None:
    class Node:
        reads = 0

        @property
        def lazy(self):
            Node.reads += 1
            self._m_lazy = 7
            return self._m_lazy

    node = Node()
    force_instances(node)

    assert Node.reads == 1
    assert vars(node) == {"_m_lazy": 7}


def test_enum_list_is_resolved_element_wise() -> None:
    index = EnumIndex(enums_by_name={"status": {0: "OK"}})

    assert resolve_enum_value([0, 3], "status", index) == [
        {"name": "OK", "value": 0},
        {"name": None, "value": 3},
    ]


def test_struct_under_enum_field_name_is_not_treated_as_code() -> None:
    index = EnumIndex(
        enums_by_name={"status": {0: "OK"}},
        enum_name_by_field={"status": "status"},
    )
    node = SimpleNamespace(status=SimpleNamespace(value=0))

    assert normalize(node, index) == {"status": {"value": 0}}


def test_scalars_pass_through() -> None:
    assert normalize(None, EnumIndex()) is None
    assert normalize("text", EnumIndex()) == "text"
    assert normalize(1.5, EnumIndex()) == 1.5
    assert normalize(True, EnumIndex()) is True
    assert normalize(bytearray(b"\x00\xff"), EnumIndex()) == [0, 255]


def test_value_without_attributes_is_rejected() -> None:
    with pytest.raises(TypeError, match="Cannot normalize value of type object"):
        normalize(object(), EnumIndex())
