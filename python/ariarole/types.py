from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Protocol


@dataclass(frozen=True)
class ElementDescriptor:
    """Read-only view of one element handed to the check by the caller."""

    key: str
    node_name: str
    role: str | None = None
    attrs: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attrs", MappingProxyType(dict(self.attrs)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "node_name": self.node_name,
            "role": self.role,
        }


class UnallowedRolesResolver(Protocol):
    def __call__(self, descriptor: ElementDescriptor, allow_implicit: bool) -> Sequence[str]: ...


class VisibilityProbe(Protocol):
    def __call__(self, descriptor: ElementDescriptor, ignore_descendant_styling: bool) -> bool: ...


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    REVIEW = "review"


@dataclass(frozen=True)
class RoleCheckResult:
    verdict: Verdict
    unallowed_roles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.verdict is Verdict.PASS and self.unallowed_roles:
            raise ValueError("a passing result carries no unallowed roles")
        if self.verdict is not Verdict.PASS and not self.unallowed_roles:
            raise ValueError(f"a {self.verdict.value} result needs its unallowed roles as evidence")

    @classmethod
    def passed(cls) -> "RoleCheckResult":
        return cls(Verdict.PASS)

    @classmethod
    def failed(cls, unallowed_roles: Sequence[str]) -> "RoleCheckResult":
        return cls(Verdict.FAIL, tuple(unallowed_roles))

    @classmethod
    def review(cls, unallowed_roles: Sequence[str]) -> "RoleCheckResult":
        return cls(Verdict.REVIEW, tuple(unallowed_roles))

    @property
    def ok(self) -> bool:
        return self.verdict is Verdict.PASS

    def as_tristate(self) -> bool | None:
        """Engine-facing value: True (pass), False (fail) or None (review)."""
        if self.verdict is Verdict.REVIEW:
            return None
        return self.verdict is Verdict.PASS

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"verdict": self.verdict.value}
        if self.unallowed_roles:
            d["unallowed_roles"] = list(self.unallowed_roles)
        return d
