from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

from .check import RULE_ID, check_element
from .options import RoleCheckOptions
from .types import (
    ElementDescriptor,
    RoleCheckResult,
    UnallowedRolesResolver,
    Verdict,
    VisibilityProbe,
)

REPORT_SCHEMA = "ariarole.report.v1"
GATE_MODES = ("off", "warn", "error")

_FINDING_VERDICT = {
    Verdict.PASS: "pass",
    Verdict.FAIL: "fail",
    Verdict.REVIEW: "manual_needed",
}


def _schema_path() -> Path:
    return Path(__file__).resolve().parent / "schemas" / f"{REPORT_SCHEMA}.schema.json"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _roles_text(roles: Iterable[str]) -> str:
    return ", ".join(repr(r) for r in roles)


def _message(descriptor: ElementDescriptor, result: RoleCheckResult) -> str:
    role = descriptor.role or ""
    if result.verdict is Verdict.PASS:
        return f"Role {role!r} is allowed on <{descriptor.node_name}>." if role else f"<{descriptor.node_name}> declares no disallowed role."
    roles = _roles_text(result.unallowed_roles)
    if result.verdict is Verdict.REVIEW:
        return (
            f"<{descriptor.node_name}> declares role(s) not allowed on this element ({roles}); "
            "element is not visible, review manually."
        )
    return f"<{descriptor.node_name}> declares role(s) not allowed on this element ({roles})."


def finding_from_result(descriptor: ElementDescriptor, result: RoleCheckResult) -> dict[str, Any]:
    d: dict[str, Any] = {
        "rule_id": RULE_ID,
        "applicability": "applicable",
        "verification_mode": "manual" if result.verdict is Verdict.REVIEW else "machine",
        "verdict": _FINDING_VERDICT[result.verdict],
        "severity": "info" if result.ok else "medium",
        "confidence": "medium" if result.verdict is Verdict.REVIEW else "certain",
        "message": _message(descriptor, result),
        "target": descriptor.to_dict(),
    }
    if result.unallowed_roles:
        d["evidence"] = [
            {
                "diagnostic_ref": f"{RULE_ID}:{descriptor.key}",
                "values": {"unallowed_roles": list(result.unallowed_roles)},
            }
        ]
        d["fix_hint"] = "Remove the role attribute or use an element whose semantics allow this role."
    return d


def audit_elements(
    descriptors: Iterable[ElementDescriptor],
    options: RoleCheckOptions | Mapping[str, Any] | None = None,
    *,
    resolver: UnallowedRolesResolver,
    visibility: VisibilityProbe,
) -> list[dict[str, Any]]:
    opts = RoleCheckOptions.from_mapping(options)
    return [
        finding_from_result(d, check_element(d, opts, resolver=resolver, visibility=visibility))
        for d in descriptors
    ]


def _count_by_key(rows: list[dict[str, Any]], key: str) -> dict[str, int]:
    out: dict[str, int] = {}
    for row in rows:
        val = str(row.get(key) or "")
        if not val:
            continue
        out[val] = out.get(val, 0) + 1
    return out


def gate(findings: list[dict[str, Any]], mode: str = "error") -> dict[str, Any]:
    mode = str(mode or "error").strip().lower()
    if mode not in GATE_MODES:
        raise ValueError(f"Unsupported gate mode {mode!r}")
    ec = 0
    wc = 0
    failed: list[str] = []
    for row in findings:
        if row.get("verdict") != "fail" or mode == "off":
            continue
        if mode == "warn":
            wc += 1
            continue
        ec += 1
        failed.append(str(row.get("target", {}).get("key") or ""))
    return {"ok": ec == 0, "mode": mode, "error_count": ec, "warn_count": wc, "failed_element_keys": failed}


def _review_queue(findings: list[dict[str, Any]]) -> dict[str, Any]:
    items = [
        {
            "id": f"manual.{RULE_ID}.{row['target']['key']}",
            "reason": row["message"],
            "severity": row["severity"],
        }
        for row in findings
        if row.get("verdict") == "manual_needed"
    ]
    return {"item_count": len(items), "items": items}


def run_audit(
    descriptors: Iterable[ElementDescriptor],
    options: RoleCheckOptions | Mapping[str, Any] | None = None,
    *,
    resolver: UnallowedRolesResolver,
    visibility: VisibilityProbe,
    mode: str = "error",
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    opts = RoleCheckOptions.from_mapping(options)
    findings = audit_elements(descriptors, opts, resolver=resolver, visibility=visibility)
    counts = {"pass": 0, "fail": 0, "manual_needed": 0}
    counts.update(_count_by_key(findings, "verdict"))
    report_warnings = list(warnings or [])
    if not findings:
        report_warnings.append("No elements were checked.")
    return {
        "schema": REPORT_SCHEMA,
        "rule_id": RULE_ID,
        "generated_at": _now(),
        "options": opts.to_dict(),
        "element_count": len(findings),
        "verdict_counts": counts,
        "findings": findings,
        "review_queue": _review_queue(findings),
        "gate": gate(findings, mode),
        "warnings": report_warnings,
    }


@lru_cache(maxsize=1)
def load_report_schema() -> dict[str, Any]:
    return json.loads(_schema_path().read_text(encoding="utf-8"))


def validate_report(report: dict[str, Any]) -> None:
    try:
        import jsonschema  # type: ignore
    except ImportError as exc:
        raise ImportError("report validation needs jsonschema (pip install 'ariarole[schema]')") from exc

    try:
        jsonschema.Draft202012Validator(load_report_schema()).validate(report)
    except jsonschema.ValidationError as exc:
        raise ValueError(f"report does not match {REPORT_SCHEMA}: {exc.message}") from exc
