"""The aria-allowed-role check.

Decides whether an element's explicit ``role`` is permitted on it. Which roles
are unallowed for a given element, and whether the element is visible, are
answered by collaborators passed in by the caller; this module only consumes
their answers.

See https://www.w3.org/TR/html-aria/#docconformance and
https://www.w3.org/TR/SVG2/struct.html#implicit-aria-semantics for the
allowed-role tables the resolver is expected to implement.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from .options import RoleCheckOptions, normalize_tags
from .types import (
    ElementDescriptor,
    RoleCheckResult,
    UnallowedRolesResolver,
    VisibilityProbe,
)

RULE_ID = "aria-allowed-role"


def evaluate(
    ignored_tags: Iterable[str],
    allow_implicit: bool,
    tag_name: str,
    unallowed_roles_fn: Callable[[bool], Sequence[str]],
    visibility_fn: Callable[[bool], bool],
) -> RoleCheckResult:
    """Return PASS, FAIL or REVIEW for one element.

    ``unallowed_roles_fn(allow_implicit)`` and
    ``visibility_fn(ignore_descendant_styling)`` are only called when needed;
    anything they raise propagates unchanged.
    """
    if isinstance(ignored_tags, str):
        raise ValueError(f"ignored_tags must be a collection of tag names, got the string {ignored_tags!r}")
    if str(tag_name).strip().lower() in normalize_tags(ignored_tags):
        return RoleCheckResult.passed()

    roles = unallowed_roles_fn(allow_implicit)
    if isinstance(roles, str):
        raise ValueError(f"unallowed roles must be a sequence of role names, got the string {roles!r}")
    unallowed_roles = tuple(roles)
    if not unallowed_roles:
        return RoleCheckResult.passed()

    # Visually hidden content still counts as invisible here.
    if not visibility_fn(True):
        return RoleCheckResult.review(unallowed_roles)
    return RoleCheckResult.failed(unallowed_roles)


def check_element(
    descriptor: ElementDescriptor,
    options: RoleCheckOptions | Mapping[str, Any] | None = None,
    *,
    resolver: UnallowedRolesResolver,
    visibility: VisibilityProbe,
) -> RoleCheckResult:
    opts = RoleCheckOptions.from_mapping(options)
    return evaluate(
        opts.ignored_tags,
        opts.allow_implicit,
        descriptor.node_name,
        lambda allow_implicit: resolver(descriptor, allow_implicit),
        lambda ignore_descendant_styling: visibility(descriptor, ignore_descendant_styling),
    )
