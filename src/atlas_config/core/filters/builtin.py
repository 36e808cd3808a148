# src/atlas_config/core/filters/builtin.py
"""
Filtros embutidos do Atlas Config.

Componentes principais:
    - MetadataFilter      → oculta chaves de metadados (prefixo `_`) apenas em modo bulk
    - RegexPropertyFilter → inclusão/exclusão de chaves por expressões regulares
    - MaskingFilter       → substitui valores de chaves sensíveis
    - TransformFilter     → reescreve valores através de um callable
    - ProgrammableFilter  → lista mutável e thread-safe de sub-filtros

Decisão (metadados):
    Chaves de metadados nunca são ocultadas no acesso direto por chave
    (`single_property_scoped=True`). O acesso direto é explícito e
    intencional; apenas o snapshot voltado ao usuário as omite.
"""

from __future__ import annotations

import re
import threading
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Union

from ..spi.filter import PropertyFilter
from ..spi.types import META_PREFIX, FilterContext, PropertyValue

PatternLike = Union[str, Pattern[str]]


def _compile(patterns: Optional[Iterable[PatternLike]]) -> List[Pattern[str]]:
    return [re.compile(p) if isinstance(p, str) else p for p in (patterns or [])]


class MetadataFilter:
    priority = 1000

    def __init__(self, prefix: str = META_PREFIX):
        if not prefix:
            raise ValueError("prefix must be a non-empty string")
        self.prefix = prefix

    def filter_property(self, value: PropertyValue, context: FilterContext) -> Optional[PropertyValue]:
        if context.single_property_scoped:
            return value
        if value.key.startswith(self.prefix):
            return None
        return value


class RegexPropertyFilter:
    """
    Filtra chaves por padrões (`re.fullmatch`).

    - `includes`: se informado, apenas chaves que casam com algum padrão passam
    - `excludes`: chaves que casam com algum padrão são vetadas
    """

    priority = 0

    def __init__(
        self,
        includes: Optional[Sequence[PatternLike]] = None,
        excludes: Optional[Sequence[PatternLike]] = None,
    ):
        self.includes = _compile(includes) if includes is not None else None
        self.excludes = _compile(excludes)

    def filter_property(self, value: PropertyValue, context: FilterContext) -> Optional[PropertyValue]:
        key = value.key
        if self.includes is not None and not any(p.fullmatch(key) for p in self.includes):
            return None
        if any(p.fullmatch(key) for p in self.excludes):
            return None
        return value


class MaskingFilter:
    """
    Mascara valores de chaves sensíveis.

    Por padrão atua apenas em modo bulk: o snapshot não expõe segredos, mas o
    acesso direto por chave devolve o valor real. Use `mask_single_access=True`
    para mascarar também o acesso direto.
    """

    priority = 100

    def __init__(
        self,
        patterns: Sequence[PatternLike] = (r"(?i).*(password|secret|token).*",),
        *,
        mask: str = "*****",
        mask_single_access: bool = False,
        meta_prefix: str = META_PREFIX,
    ):
        self.patterns = _compile(patterns)
        self.mask = mask
        self.mask_single_access = mask_single_access
        self.meta_prefix = meta_prefix

    def filter_property(self, value: PropertyValue, context: FilterContext) -> Optional[PropertyValue]:
        if context.single_property_scoped and not self.mask_single_access:
            return value
        if value.value is None or value.value == self.mask:
            return value
        if any(p.fullmatch(value.key) for p in self.patterns):
            return value.with_value(self.mask).with_meta(**{f"{self.meta_prefix}{value.key}.masked": "true"})
        return value


class TransformFilter:
    """Reescreve valores não nulos via `func(key, value) -> Optional[str]` (None veta)."""

    def __init__(
        self,
        func: Callable[[str, str], Optional[str]],
        *,
        key_pattern: Optional[PatternLike] = None,
        priority: int = 0,
    ):
        self.func = func
        self.key_pattern = _compile([key_pattern])[0] if key_pattern is not None else None
        self.priority = priority

    def filter_property(self, value: PropertyValue, context: FilterContext) -> Optional[PropertyValue]:
        if self.key_pattern is not None and not self.key_pattern.fullmatch(value.key):
            return value
        if value.value is None:
            return value
        result = self.func(value.key, value.value)
        if result is None:
            return None
        if result == value.value:
            return value
        return value.with_value(result)


class ProgrammableFilter:
    """
    Filtro composto e mutável em runtime.

    Sub-filtros executam na ordem em que foram adicionados. A lista é
    copiada sob lock a cada aplicação, então alterações concorrentes nunca
    afetam uma aplicação já em andamento.
    """

    def __init__(self, filters: Iterable[PropertyFilter] = (), *, priority: int = 0):
        self.priority = priority
        self._lock = threading.Lock()
        self._filters: List[PropertyFilter] = list(filters)

    def add(self, f: PropertyFilter) -> None:
        with self._lock:
            self._filters.append(f)

    def remove(self, f: PropertyFilter) -> bool:
        with self._lock:
            if f in self._filters:
                self._filters.remove(f)
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._filters.clear()

    @property
    def filters(self) -> List[PropertyFilter]:
        with self._lock:
            return list(self._filters)

    def filter_property(self, value: PropertyValue, context: FilterContext) -> Optional[PropertyValue]:
        current: Optional[PropertyValue] = value
        for f in self.filters:
            if current is None:
                return None
            current = f.filter_property(current, context.advance(current))
        return current
