from pathlib import Path

import pytest

from activation.catalog import (
    clear_catalog_cache,
    load_catalog,
    load_catalog_files,
    parse_manifests,
)
from activation.conditions import (
    OnCapabilityPresent,
    OnComponentAbsent,
    OnPropertyEquals,
)
from activation.errors import CatalogError, MalformedConditionError

SAMPLE_CATALOG = Path(__file__).resolve().parents[2] / "configs" / "catalog"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_shorthand_and_full_condition_forms():
    data = {
        "modules": [
            {
                "name": "Jdbc",
                "priority": 5,
                "after": ["Other"],
                "conditions": [
                    {"on_capability_present": "jdbc"},
                    {"kind": "on_component_absent", "component": "tx"},
                    {
                        "on_property_equals": {
                            "key": "jdbc.enabled",
                            "expected": True,
                            "match_if_missing": True,
                        }
                    },
                ],
                "provides": ["txManager"],
            }
        ]
    }
    (mod,) = parse_manifests(data)
    assert mod.name == "Jdbc"
    assert mod.priority == 5
    assert mod.after == frozenset({"Other"})
    assert mod.provides == ("txManager",)
    assert mod.conditions == (
        OnCapabilityPresent("jdbc"),
        OnComponentAbsent("tx"),
        OnPropertyEquals("jdbc.enabled", True, match_if_missing=True),
    )


def test_single_mapping_and_plain_list_documents():
    assert [m.name for m in parse_manifests({"name": "Solo"})] == ["Solo"]
    listed = parse_manifests([{"name": "A"}, {"name": "B"}])
    assert [m.name for m in listed] == ["A", "B"]
    assert parse_manifests(None) == []


def test_unknown_manifest_key_rejected():
    with pytest.raises(CatalogError) as ei:
        parse_manifests({"name": "A", "requires": ["x"]}, "bad.yaml")
    assert ei.value.error_type == "catalog-invalid"
    assert "bad.yaml" in str(ei.value)


def test_empty_name_rejected():
    with pytest.raises(CatalogError):
        parse_manifests({"name": "  "})


def test_malformed_condition_names_module():
    with pytest.raises(MalformedConditionError) as ei:
        parse_manifests(
            {"name": "Broken", "conditions": [{"on_single_candidate": ""}]},
            "broken.yaml",
        )
    assert ei.value.error_type == "malformed-condition"
    assert "Broken" in str(ei.value)
    assert "broken.yaml" in str(ei.value)


def test_property_condition_has_no_shorthand():
    with pytest.raises(MalformedConditionError):
        parse_manifests(
            {"name": "P", "conditions": [{"on_property_equals": "a.b"}]}
        )


def test_duplicate_across_files(tmp_path):
    a = _write(tmp_path / "a.yaml", "modules:\n  - name: Same\n")
    b = _write(tmp_path / "b.yaml", "modules:\n  - name: Same\n")
    with pytest.raises(CatalogError) as ei:
        load_catalog_files([a, b])
    assert ei.value.error_type == "duplicate-module"


def test_invalid_yaml_reported(tmp_path):
    _write(tmp_path / "bad.yaml", "modules: [unclosed\n")
    with pytest.raises(CatalogError) as ei:
        load_catalog(tmp_path)
    assert "bad.yaml" in str(ei.value)


def test_directory_load_order_and_cache(tmp_path):
    _write(tmp_path / "20-second.yaml", "- name: C\n- name: D\n")
    _write(tmp_path / "10-first.yml", "name: A\n")
    _write(tmp_path / "notes.txt", "ignored")
    mods = load_catalog(tmp_path)
    assert [m.name for m in mods] == ["A", "C", "D"]

    _write(tmp_path / "30-third.yaml", "name: E\n")
    assert load_catalog(tmp_path) is mods
    clear_catalog_cache(tmp_path)
    assert [m.name for m in load_catalog(tmp_path)] == ["A", "C", "D", "E"]


def test_missing_directory_is_empty_catalog(tmp_path):
    assert load_catalog(tmp_path / "nope") == ()


def test_sample_catalog_loads():
    mods = load_catalog(SAMPLE_CATALOG)
    names = [m.name for m in mods]
    assert len(names) == len(set(names)) == 10
    assert names[0] == "DataSourceTransactionManagerAutoConfiguration"
    cglib = next(m for m in mods if m.name == "CglibAutoProxyConfiguration")
    assert cglib.conditions[-1] == OnPropertyEquals(
        "spring.aop.proxy-target-class", "true", match_if_missing=True
    )


def test_undecodable_manifest_reported(tmp_path):
    (tmp_path / "latin1.yaml").write_bytes(b"name: caf\xe9\n")
    with pytest.raises(CatalogError) as ei:
        load_catalog(tmp_path)
    assert ei.value.error_type == "catalog-invalid"
    assert "latin1.yaml" in str(ei.value)
