# SPDX-License-Identifier: AGPL-3.0-only
"""aria-allowed-role accessibility check.

Decides whether an element's explicit ARIA role is allowed on it, given the
unallowed-role and visibility answers of caller-supplied collaborators, and
turns the results into audit findings and a gated report.
"""
from __future__ import annotations

from .check import RULE_ID, check_element, evaluate
from .facts import RecordedFacts
from .findings import audit_elements, finding_from_result, run_audit, validate_report
from .options import OptionsWarning, RoleCheckOptions
from .types import (
    ElementDescriptor,
    RoleCheckResult,
    UnallowedRolesResolver,
    Verdict,
    VisibilityProbe,
)

__all__ = [
    "RULE_ID",
    "ElementDescriptor",
    "OptionsWarning",
    "RecordedFacts",
    "RoleCheckOptions",
    "RoleCheckResult",
    "UnallowedRolesResolver",
    "Verdict",
    "VisibilityProbe",
    "audit_elements",
    "check_element",
    "evaluate",
    "finding_from_result",
    "run_audit",
    "validate_report",
]
