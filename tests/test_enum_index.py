# tests/test_enum_index.py

from __future__ import annotations

import yaml

from formats.enum_index import EnumIndex, build_enum_index
from fakes.generated_modules import CONTAINER_KSY, PING_KSY, RECORD_KSY


def test_simple_enum_and_field_are_indexed() -> None:
    index = build_enum_index(yaml.safe_load(PING_KSY))

    assert index.enums_by_name == {"status": {0: "OK", 1: "FAIL"}}
    assert index.enum_name_by_field == {"code": "status"}
    assert index.display_name("status", 1) == "FAIL"


def test_dict_entries_use_their_id() -> None:
    index = build_enum_index(yaml.safe_load(CONTAINER_KSY))

    assert index.enums_by_name["kind"] == {0: "EMPTY", 1: "DATA"}


def test_field_keys_are_camel_cased() -> None:
    document = {
        "meta": {"id": "archive"},
        "enums": {"compression": {0: "none", 8: "deflated"}},
        "seq": [{"id": "compression_method", "type": "u2", "enum": "compression"}],
    }
    index = build_enum_index(document)

    assert index.enum_name_by_field == {"compressionMethod": "compression"}
    assert index.enum_for_field("compression_method") == "compression"
    assert index.enum_for_field("compressionMethod") == "compression"


def test_nested_types_share_one_flat_namespace() -> None:
    document = {
        "meta": {"id": "outer"},
        "types": {
            "header": {
                "enums": {"mode": {1: "fast"}},
                "seq": [{"id": "mode", "type": "u1", "enum": "mode"}],
            },
            "trailer": {
                "enums": {"mode": {1: "slow"}},
            },
        },
    }
    index = build_enum_index(document)

    # later definition wins
    assert index.enums_by_name["mode"] == {1: "SLOW"}
    assert index.enum_for_field("mode") == "mode"


def test_instance_enum_uses_its_key_when_no_id() -> None:
    document = {
        "meta": {"id": "x"},
        "enums": {"color": {0: "red"}},
        "instances": {"tint": {"value": 0, "enum": "color"}},
    }
    index = build_enum_index(document)

    assert index.enum_for_field("tint") == "color"


def test_imported_documents_are_indexed_and_root_wins() -> None:
    imported = yaml.safe_load(RECORD_KSY)
    root = {
        "meta": {"id": "root"},
        "enums": {"flag": {1: "yes"}},
    }
    index = build_enum_index(root, [imported])

    assert index.enum_for_field("flag") == "flag"
    assert index.enums_by_name["flag"] == {1: "YES"}

    index = build_enum_index(yaml.safe_load(CONTAINER_KSY), [imported])
    assert index.enums_by_name["flag"] == {1: "SET", 2: "CLEAR"}
    assert index.enum_for_field("kind") == "kind"


def test_qualified_enum_falls_back_to_last_segment() -> None:
    index = EnumIndex(enums_by_name={"compression": {0: "NONE"}})

    assert index.display_name("header::compression", 0) == "NONE"
    assert index.display_name("compression", 0) == "NONE"


def test_display_name_misses() -> None:
    index = EnumIndex(enums_by_name={"status": {0: "OK", "7": "SEVEN"}})

    assert index.display_name("status", 5) is None
    assert index.display_name("unknown", 0) is None
    assert index.display_name("status", [0, 1]) is None
    # string keys are a fallback for integer codes
    assert index.display_name("status", 7) == "SEVEN"


def test_non_mapping_documents_produce_empty_index() -> None:
    assert build_enum_index(None) == EnumIndex()
    assert build_enum_index(["not", "a", "schema"]) == EnumIndex()
