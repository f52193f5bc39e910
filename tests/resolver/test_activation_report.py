import json

import pytest

from activation.conditions import OnCapabilityPresent, OnEnvironmentKind
from activation.context import CapabilityQueryContext
from activation.model import Module
from activation.report import ActivationReport, Verdict, VerdictKind
from activation.resolver import resolve


@pytest.fixture
def report() -> ActivationReport:
    ctx = CapabilityQueryContext(capabilities={"jdbc": 1})
    mods = [
        Module("Jdbc", [OnCapabilityPresent("jdbc")]),
        Module("Web", [OnEnvironmentKind("server")]),
        Module("Off"),
    ]
    return resolve(mods, exclusions=["Off"], context=ctx).report


def test_lookup_and_membership(report):
    assert "Jdbc" in report
    assert "Nope" not in report
    assert report.verdict_for("Web").kind is VerdictKind.CONDITION_FAILED
    with pytest.raises(KeyError):
        report.get("Nope")


def test_by_kind_accepts_strings(report):
    assert [v.module for v in report.by_kind("excluded")] == ["Off"]
    assert report.by_kind(VerdictKind.ACTIVATED) == report.activated()
    with pytest.raises(ValueError):
        report.by_kind("maybe")


def test_json_export_is_stable(report):
    data = json.loads(report.to_json())
    assert data["counts"] == {
        "activated": 1,
        "condition_failed": 1,
        "excluded": 1,
    }
    web = data["verdicts"][1]
    assert web["module"] == "Web"
    assert web["verdict"] == "condition_failed"
    assert web["conditions"] == [
        {
            "condition": "OnEnvironmentKind(server)",
            "matched": False,
            "reason": "environment is 'none', required 'server'",
        }
    ]
    assert data["verdicts"][2]["conditions"] == []


def test_render_text_lists_every_module(report):
    text = report.render_text()
    lines = text.strip().splitlines()
    assert len(lines) == 4
    assert "Jdbc" in lines[0] and "activated" in lines[0]
    assert "excluded by configuration" in lines[2]
    assert lines[-1] == "-- activated=1 excluded=1 condition_failed=1"
    assert ActivationReport([]).render_text() == "(no modules)\n"


def test_report_is_read_only(report):
    with pytest.raises(AttributeError):
        report._extra = 1  # type: ignore[attr-defined]
    v = report.get("Jdbc")
    with pytest.raises(AttributeError):
        v.kind = VerdictKind.EXCLUDED  # type: ignore[misc]


def test_verdict_equality():
    a = Verdict("m", 0, VerdictKind.ACTIVATED, "no conditions")
    b = Verdict("m", 0, VerdictKind.ACTIVATED, "no conditions")
    assert ActivationReport([a]) == ActivationReport([b])
    assert a.activated
