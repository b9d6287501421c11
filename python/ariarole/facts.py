"""Replay resolver and visibility answers recorded by an upstream DOM pass.

The elements file looks like::

    {
      "elements": [
        {
          "key": "nav-1",
          "node_name": "div",
          "role": "button",
          "attrs": {"class": "toggle"},
          "unallowed_roles": ["button"],
          "unallowed_roles_strict": ["button"],
          "visible": true
        }
      ]
    }

``unallowed_roles`` is what the resolver returned with implicit roles allowed,
``unallowed_roles_strict`` what it returned without (defaults to the former).
``visible`` is the descendant-styling-ignoring visibility of the element.
"""
from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .types import ElementDescriptor


def _role_list(value: Any, *, key: str, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, list):
        raise ValueError(f"element {key!r}: {field_name} must be a list of role names")
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class _Record:
    descriptor: ElementDescriptor
    unallowed_roles: tuple[str, ...]
    unallowed_roles_strict: tuple[str, ...]
    visible: bool


def _record(raw: Any, idx: int) -> _Record:
    if not isinstance(raw, Mapping):
        raise ValueError(f"elements[{idx}] must be an object")
    node_name = str(raw.get("node_name") or "").strip()
    if not node_name:
        raise ValueError(f"elements[{idx}] is missing node_name")
    key = str(raw.get("key") or f"{node_name}[{idx}]")
    attrs = raw.get("attrs") or {}
    if not isinstance(attrs, Mapping):
        raise ValueError(f"element {key!r}: attrs must be an object")
    role = raw.get("role")
    loose = _role_list(raw.get("unallowed_roles"), key=key, field_name="unallowed_roles")
    if "unallowed_roles_strict" in raw:
        strict = _role_list(raw.get("unallowed_roles_strict"), key=key, field_name="unallowed_roles_strict")
    else:
        strict = loose
    visible = raw.get("visible", True)
    if not isinstance(visible, bool):
        raise ValueError(f"element {key!r}: visible must be true or false")
    return _Record(
        descriptor=ElementDescriptor(
            key=key,
            node_name=node_name,
            role=None if role is None else str(role),
            attrs={str(k): str(v) for k, v in attrs.items()},
        ),
        unallowed_roles=loose,
        unallowed_roles_strict=strict,
        visible=visible,
    )


class RecordedFacts:
    def __init__(self, records: list[_Record]) -> None:
        self._records: dict[str, _Record] = {}
        for rec in records:
            if rec.descriptor.key in self._records:
                raise ValueError(f"duplicate element key {rec.descriptor.key!r}")
            self._records[rec.descriptor.key] = rec

    @classmethod
    def from_dict(cls, payload: Any) -> "RecordedFacts":
        if not isinstance(payload, Mapping) or not isinstance(payload.get("elements"), list):
            raise ValueError("elements document must be an object with an 'elements' list")
        return cls([_record(raw, idx) for idx, raw in enumerate(payload["elements"])])

    @classmethod
    def load(cls, path: str | Path) -> "RecordedFacts":
        p = Path(path)
        try:
            payload = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to parse {p}: {exc}") from exc
        return cls.from_dict(payload)

    def descriptors(self) -> Iterator[ElementDescriptor]:
        for rec in self._records.values():
            yield rec.descriptor

    def _get(self, descriptor: ElementDescriptor) -> _Record:
        try:
            return self._records[descriptor.key]
        except KeyError:
            raise KeyError(f"no recorded facts for element {descriptor.key!r}") from None

    def unallowed_roles(self, descriptor: ElementDescriptor, allow_implicit: bool) -> tuple[str, ...]:
        rec = self._get(descriptor)
        return rec.unallowed_roles if allow_implicit else rec.unallowed_roles_strict

    def is_visible(self, descriptor: ElementDescriptor, ignore_descendant_styling: bool) -> bool:
        rec = self._get(descriptor)
        if not ignore_descendant_styling:
            raise ValueError("recorded visibility only covers the descendant-styling-ignoring variant")
        return rec.visible
