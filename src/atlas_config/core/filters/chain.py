# src/atlas_config/core/filters/chain.py
"""
Cadeia de filtros de propriedades.

Este módulo define a `FilterChain`, responsável por ordenar filtros de
forma determinística no registro e aplicá-los sobre valores já agregados,
tanto no acesso por chave (modo single) quanto na construção do
snapshot (modo bulk).

Política de execução (v1):
    - ordem decrescente de prioridade; empate resolvido pelo nome
      qualificado do tipo do filtro (lexicográfico)
    - cada filtro recebe o valor corrente, possivelmente já reescrito
    - retorno None é veto: a cadeia para e a propriedade fica ausente
    - a cadeia é reaplicada enquanto algum filtro alterar o valor,
      limitada a `max_loops` passagens

Princípios fundamentais:
    - Um filtro defeituoso nunca derruba a configuração inteira
    - Filtros não mutam o estado do merge (`prior_values` é somente leitura)
    - A ordem é calculada uma única vez, no registro

Decisões arquiteturais:
    - Exceção em filtro → FILTER_ERROR registrado, valor mantido (pass-through)
    - Reescrita com chave diferente → FILTER_ERROR, valor mantido
    - Limite de passagens atingido → warning, último valor mantido

Limites explícitos:
    - Não agrega fontes
    - Não resolve expressões
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import filter_error
from ..observability import EventLog
from ..spi.filter import PropertyFilter
from ..spi.types import FilterContext, PropertyValue

COMPONENT = "filters.chain"


def filter_type_name(f: object) -> str:
    cls = type(f)
    return f"{cls.__module__}.{cls.__qualname__}"


@dataclass(frozen=True)
class RegisteredFilter:
    """Filtro registrado com prioridade efetiva e chave de ordenação fixada."""

    filter: PropertyFilter
    priority: int
    name: str

    @property
    def sort_key(self) -> Tuple[int, str]:
        return (-self.priority, self.name)


class FilterChain:
    """Cadeia ordenada e thread-safe de `PropertyFilter`."""

    def __init__(
        self,
        filters: Iterable[PropertyFilter] = (),
        *,
        max_loops: int = 10,
        events: Optional[EventLog] = None,
    ):
        if max_loops < 1:
            raise ValueError("max_loops must be >= 1")
        self._max_loops = max_loops
        self._events = events
        self._lock = threading.Lock()
        self._entries: Tuple[RegisteredFilter, ...] = ()
        for f in filters:
            self.register(f)

    @property
    def filters(self) -> List[PropertyFilter]:
        return [entry.filter for entry in self._entries]

    @property
    def entries(self) -> Tuple[RegisteredFilter, ...]:
        return self._entries

    def register(self, f: PropertyFilter, priority: Optional[int] = None) -> None:
        if not callable(getattr(f, "filter_property", None)):
            raise TypeError(f"{type(f).__name__} não implementa filter_property")
        effective = priority if priority is not None else int(getattr(f, "priority", 0) or 0)
        entry = RegisteredFilter(filter=f, priority=effective, name=filter_type_name(f))
        with self._lock:
            # sorted() é estável: mesma prioridade e tipo mantêm a ordem de registro
            self._entries = tuple(sorted(self._entries + (entry,), key=lambda e: e.sort_key))

    def remove(self, f: PropertyFilter) -> bool:
        with self._lock:
            kept = tuple(e for e in self._entries if e.filter is not f)
            removed = len(kept) != len(self._entries)
            self._entries = kept
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    # -----------------------------
    # Aplicação
    # -----------------------------
    def _record(self, entry: RegisteredFilter, key: str, exc_type: str, exc_message: str) -> None:
        if self._events is None:
            return
        self._events.record_error(
            component=COMPONENT,
            error=filter_error(
                filter_name=entry.name,
                key=key,
                exc_type=exc_type,
                exc_message=exc_message,
            ),
        )

    def _run_once(
        self,
        entries: Tuple[RegisteredFilter, ...],
        value: PropertyValue,
        context: FilterContext,
    ) -> Tuple[Optional[PropertyValue], bool]:
        current = value
        changed = False
        for entry in entries:
            try:
                result = entry.filter.filter_property(current, context.advance(current))
            except Exception as exc:  # noqa: BLE001
                self._record(entry, current.key, exc.__class__.__name__, str(exc))
                continue

            if result is None:
                return None, True
            if not isinstance(result, PropertyValue):
                self._record(
                    entry,
                    current.key,
                    "TypeError",
                    f"filtro devolveu {type(result).__name__}, esperado PropertyValue",
                )
                continue
            if result.key != current.key:
                self._record(
                    entry,
                    current.key,
                    "KeyRewriteError",
                    f"filtro alterou a chave para '{result.key}'",
                )
                continue
            if result.value != current.value or result.meta_entries != current.meta_entries:
                changed = True
            current = result
        return current, changed

    def apply(self, value: PropertyValue, context: FilterContext) -> Optional[PropertyValue]:
        """
        Aplica a cadeia a um valor.

        Returns:
            Optional[PropertyValue]: valor final, ou None quando algum filtro vetou.
        """
        entries = self._entries
        if not entries:
            return value

        current = value
        for _ in range(self._max_loops):
            result, changed = self._run_once(entries, current, context)
            if result is None or not changed:
                return result
            current = result

        if self._events is not None:
            self._events.log(
                component=COMPONENT,
                level="WARNING",
                message="limite de passagens da cadeia de filtros atingido",
                key=value.key,
                max_loops=self._max_loops,
            )
            self._events.add_warning(
                component=COMPONENT,
                message=f"max_filter_loops atingido para '{value.key}'",
            )
        return current

    def apply_single(self, value: PropertyValue) -> Optional[PropertyValue]:
        """Modo single (`get(key)`): `single_property_scoped=True`."""
        return self.apply(value, FilterContext.single(value))

    def apply_bulk(self, merged: Mapping[str, PropertyValue]) -> Dict[str, PropertyValue]:
        """Modo bulk (snapshot): uma aplicação por chave, com visão do merge inteiro."""
        prior = MappingProxyType(dict(merged))
        out: Dict[str, PropertyValue] = {}
        for key, value in prior.items():
            result = self.apply(value, FilterContext.bulk(value, prior))
            if result is not None:
                out[key] = result
        return out
