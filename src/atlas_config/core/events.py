# src/atlas_config/core/events.py
"""
Eventos de mudança de configuração.

Um `ConfigurationChange` é o delta entre dois snapshots: produzido por
`reload()` e entregue aos listeners registrados via `on_change`.

Invariantes:
    - Eventos são imutáveis
    - `added + removed + updated == len(changes)`
    - Um reload sem diferenças produz um evento vazio (`is_empty`)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class PropertyChange:
    key: str
    old_value: Optional[str]
    new_value: Optional[str]
    # distingue "ausente" de "presente porém nulo"
    old_present: bool = True
    new_present: bool = True

    @property
    def kind(self) -> str:
        if not self.old_present:
            return "added"
        if not self.new_present:
            return "removed"
        return "updated"


@dataclass(frozen=True)
class ConfigurationChange:
    changes: Mapping[str, PropertyChange] = field(default_factory=dict)
    version: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    old_generation: Optional[int] = None
    new_generation: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.changes, MappingProxyType):
            object.__setattr__(self, "changes", MappingProxyType(dict(self.changes)))

    @classmethod
    def between(cls, old: Any, new: Any) -> "ConfigurationChange":
        """
        Calcula o delta entre dois snapshots (ou mapas `chave -> valor`).

        Aceita `ConfigurationSnapshot`, qualquer Mapping ou None (vazio).
        """
        old_props = _properties_of(old)
        new_props = _properties_of(new)

        changes: Dict[str, PropertyChange] = {}
        for key in sorted(set(old_props) | set(new_props)):
            in_old = key in old_props
            in_new = key in new_props
            if in_old and in_new and old_props[key] == new_props[key]:
                continue
            changes[key] = PropertyChange(
                key=key,
                old_value=old_props.get(key),
                new_value=new_props.get(key),
                old_present=in_old,
                new_present=in_new,
            )

        return cls(
            changes=changes,
            old_generation=getattr(old, "generation", None),
            new_generation=getattr(new, "generation", None),
        )

    def _count(self, kind: str) -> int:
        return sum(1 for c in self.changes.values() if c.kind == kind)

    @property
    def added(self) -> int:
        return self._count("added")

    @property
    def removed(self) -> int:
        return self._count("removed")

    @property
    def updated(self) -> int:
        return self._count("updated")

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def is_added(self, key: str) -> bool:
        change = self.changes.get(key)
        return change is not None and change.kind == "added"

    def is_removed(self, key: str) -> bool:
        change = self.changes.get(key)
        return change is not None and change.kind == "removed"

    def is_updated(self, key: str) -> bool:
        change = self.changes.get(key)
        return change is not None and change.kind == "updated"

    def is_key_affected(self, key: str) -> bool:
        return key in self.changes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "old_generation": self.old_generation,
            "new_generation": self.new_generation,
            "added": self.added,
            "removed": self.removed,
            "updated": self.updated,
            "changes": {
                key: {"kind": c.kind, "old": c.old_value, "new": c.new_value}
                for key, c in self.changes.items()
            },
        }


def _properties_of(obj: Any) -> Mapping[str, Optional[str]]:
    if obj is None:
        return {}
    props = getattr(obj, "properties", obj)
    if not isinstance(props, Mapping):
        raise TypeError(f"Esperado snapshot ou Mapping, recebido: {type(obj).__name__}")
    return props
