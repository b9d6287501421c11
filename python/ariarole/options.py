from __future__ import annotations

import warnings
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


class OptionsWarning(UserWarning):
    """Warning emitted for suspicious aria-allowed-role option values."""


_ALLOW_IMPLICIT_KEYS = ("allowImplicit", "allow_implicit")
_IGNORED_TAGS_KEYS = ("ignoredTags", "ignored_tags")


def _warn(msg: str) -> None:
    warnings.warn(msg, OptionsWarning, stacklevel=3)


def _first_present(mapping: Mapping[str, Any], keys: tuple[str, ...]) -> tuple[bool, Any]:
    for key in keys:
        if key in mapping:
            return True, mapping[key]
    return False, None


def normalize_tags(tags: Iterable[Any]) -> tuple[str, ...]:
    out: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        text = str(tag).strip().lower()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return tuple(out)


def _coerce_ignored_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        _warn(f"ignoredTags should be a list of tag names, got the string {value!r}")
        return normalize_tags([value])
    if not isinstance(value, Iterable):
        raise ValueError(f"ignoredTags must be a list of tag names, got {type(value).__name__}")
    return normalize_tags(value)


def _coerce_allow_implicit(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return True
    _warn(f"allowImplicit should be a boolean, got {value!r}")
    if isinstance(value, str):
        return value.strip().lower() not in {"0", "false", "no", "off", ""}
    return bool(value)


@dataclass(frozen=True)
class RoleCheckOptions:
    allow_implicit: bool = True
    ignored_tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "ignored_tags", normalize_tags(self.ignored_tags))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None = None) -> "RoleCheckOptions":
        """Build options from a rule-engine option mapping.

        Recognizes ``allowImplicit`` and ``ignoredTags`` (or their snake_case
        spellings); every other key is ignored.
        """
        if mapping is None:
            return cls()
        if isinstance(mapping, RoleCheckOptions):
            return mapping
        if not isinstance(mapping, Mapping):
            raise ValueError(f"rule options must be a mapping, got {type(mapping).__name__}")
        has_allow, allow = _first_present(mapping, _ALLOW_IMPLICIT_KEYS)
        has_tags, tags = _first_present(mapping, _IGNORED_TAGS_KEYS)
        return cls(
            allow_implicit=_coerce_allow_implicit(allow) if has_allow else True,
            ignored_tags=_coerce_ignored_tags(tags) if has_tags else (),
        )

    def merged(self, *, allow_implicit: bool | None = None, ignored_tags: Iterable[str] | None = None) -> "RoleCheckOptions":
        return RoleCheckOptions(
            allow_implicit=self.allow_implicit if allow_implicit is None else bool(allow_implicit),
            ignored_tags=self.ignored_tags if ignored_tags is None else tuple(ignored_tags),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowImplicit": self.allow_implicit,
            "ignoredTags": list(self.ignored_tags),
        }
