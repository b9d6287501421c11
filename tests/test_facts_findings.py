from __future__ import annotations

import json
from pathlib import Path

import pytest

from ariarole import ElementDescriptor, RecordedFacts, RoleCheckResult, finding_from_result, run_audit
from ariarole.findings import gate


ELEMENTS = {
    "elements": [
        {"key": "logo", "node_name": "img", "role": None, "unallowed_roles": []},
        {"key": "foot", "node_name": "footer", "role": "banner", "unallowed_roles": ["banner"]},
        {"key": "btn", "node_name": "div", "role": "button", "unallowed_roles": ["button"], "visible": True},
        {"key": "hidden-btn", "node_name": "div", "role": "button", "unallowed_roles": ["button"], "visible": False},
        {
            "key": "nav",
            "node_name": "nav",
            "role": "navigation",
            "unallowed_roles": [],
            "unallowed_roles_strict": ["navigation"],
        },
    ]
}


def _write_json(path: Path, payload: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture()
def facts(tmp_path: Path) -> RecordedFacts:
    return RecordedFacts.load(_write_json(tmp_path / "elements.json", ELEMENTS))


def _audit(facts: RecordedFacts, options=None, mode: str = "error") -> dict:
    return run_audit(
        facts.descriptors(),
        options,
        resolver=facts.unallowed_roles,
        visibility=facts.is_visible,
        mode=mode,
    )


def test_recorded_facts_replay_in_file_order(facts: RecordedFacts) -> None:
    keys = [d.key for d in facts.descriptors()]
    assert keys == ["logo", "foot", "btn", "hidden-btn", "nav"]
    nav = next(d for d in facts.descriptors() if d.key == "nav")
    assert facts.unallowed_roles(nav, True) == ()
    assert facts.unallowed_roles(nav, False) == ("navigation",)


def test_recorded_visibility_only_answers_descendant_ignoring_variant(facts: RecordedFacts) -> None:
    btn = next(d for d in facts.descriptors() if d.key == "btn")
    assert facts.is_visible(btn, True) is True
    with pytest.raises(ValueError):
        facts.is_visible(btn, False)


def test_unknown_element_raises_key_error(facts: RecordedFacts) -> None:
    with pytest.raises(KeyError):
        facts.unallowed_roles(ElementDescriptor(key="ghost", node_name="div"), True)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"elements": {}},
        {"elements": [{"key": "x"}]},
        {"elements": [{"node_name": "div", "unallowed_roles": "button"}]},
        {"elements": [{"node_name": "div", "visible": "yes"}]},
        {"elements": [{"key": "a", "node_name": "div"}, {"key": "a", "node_name": "span"}]},
    ],
)
def test_malformed_elements_documents_raise_value_error(payload: object) -> None:
    with pytest.raises(ValueError):
        RecordedFacts.from_dict(payload)


def test_invalid_json_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="broken.json"):
        RecordedFacts.load(path)


def test_finding_carries_evidence_only_when_not_passing() -> None:
    el = ElementDescriptor(key="btn", node_name="div", role="button")
    passed = finding_from_result(el, RoleCheckResult.passed())
    failed = finding_from_result(el, RoleCheckResult.failed(["button"]))
    review = finding_from_result(el, RoleCheckResult.review(["button"]))

    assert passed["verdict"] == "pass"
    assert "evidence" not in passed
    assert failed["verdict"] == "fail"
    assert failed["verification_mode"] == "machine"
    assert review["verdict"] == "manual_needed"
    assert review["verification_mode"] == "manual"
    for row in (failed, review):
        assert row["rule_id"] == "aria-allowed-role"
        assert row["evidence"][0]["values"]["unallowed_roles"] == ["button"]
        assert row["target"] == {"key": "btn", "node_name": "div", "role": "button"}


def test_run_audit_counts_and_gate(facts: RecordedFacts) -> None:
    report = _audit(facts)
    verdicts = {row["target"]["key"]: row["verdict"] for row in report["findings"]}
    assert verdicts == {
        "logo": "pass",
        "foot": "fail",
        "btn": "fail",
        "hidden-btn": "manual_needed",
        "nav": "pass",
    }
    assert report["verdict_counts"] == {"pass": 2, "fail": 2, "manual_needed": 1}
    assert report["gate"]["ok"] is False
    assert report["gate"]["failed_element_keys"] == ["foot", "btn"]
    assert report["review_queue"]["item_count"] == 1
    assert report["review_queue"]["items"][0]["id"] == "manual.aria-allowed-role.hidden-btn"


def test_run_audit_honors_options(facts: RecordedFacts) -> None:
    report = _audit(facts, {"ignoredTags": ["FOOTER", "div"], "allowImplicit": False})
    verdicts = {row["target"]["key"]: row["verdict"] for row in report["findings"]}
    assert verdicts["foot"] == "pass"
    assert verdicts["btn"] == "pass"
    assert verdicts["hidden-btn"] == "pass"
    assert verdicts["nav"] == "fail"
    assert report["options"] == {"allowImplicit": False, "ignoredTags": ["footer", "div"]}


def test_review_findings_never_fail_the_gate(facts: RecordedFacts) -> None:
    report = _audit(facts, {"ignoredTags": ["footer"]})
    keys = [k for k in report["gate"]["failed_element_keys"]]
    assert keys == ["btn"]
    report = run_audit(
        [d for d in facts.descriptors() if d.key == "hidden-btn"],
        resolver=facts.unallowed_roles,
        visibility=facts.is_visible,
    )
    assert report["gate"]["ok"] is True
    assert report["verdict_counts"]["manual_needed"] == 1


def test_gate_modes() -> None:
    rows = [
        {"verdict": "fail", "target": {"key": "a"}},
        {"verdict": "manual_needed", "target": {"key": "b"}},
        {"verdict": "pass", "target": {"key": "c"}},
    ]
    assert gate(rows, "error") == {
        "ok": False,
        "mode": "error",
        "error_count": 1,
        "warn_count": 0,
        "failed_element_keys": ["a"],
    }
    assert gate(rows, "warn")["ok"] is True
    assert gate(rows, "warn")["warn_count"] == 1
    assert gate(rows, "OFF")["warn_count"] == 0
    with pytest.raises(ValueError):
        gate(rows, "strict")


def test_empty_run_warns() -> None:
    report = run_audit([], resolver=lambda d, a: [], visibility=lambda d, i: True)
    assert report["element_count"] == 0
    assert report["gate"]["ok"] is True
    assert report["warnings"] == ["No elements were checked."]


def test_report_validates_against_schema(facts: RecordedFacts) -> None:
    jsonschema = pytest.importorskip("jsonschema")
    from ariarole import validate_report
    from ariarole.findings import load_report_schema

    report = _audit(facts)
    validate_report(report)

    broken = json.loads(json.dumps(report))
    del broken["findings"][1]["evidence"]
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.Draft202012Validator(load_report_schema()).validate(broken)


def test_validate_report_raises_value_error_on_schema_mismatch(facts: RecordedFacts) -> None:
    pytest.importorskip("jsonschema")
    from ariarole import validate_report

    broken = _audit(facts)
    broken["gate"]["mode"] = "strict"
    with pytest.raises(ValueError, match="ariarole.report.v1"):
        validate_report(broken)


def test_validate_report_without_jsonschema_raises_import_error(
    facts: RecordedFacts, monkeypatch: pytest.MonkeyPatch
) -> None:
    import sys

    from ariarole import validate_report

    monkeypatch.setitem(sys.modules, "jsonschema", None)
    with pytest.raises(ImportError, match="ariarole\\[schema\\]"):
        validate_report(_audit(facts))
