# src/atlas_config/core/spi/filter.py
"""
Contrato de filtros de propriedade.

Um filtro recebe o valor corrente e o FilterContext e pode:
    - devolver o mesmo valor (pass-through)
    - devolver um novo PropertyValue com a mesma chave (reescrita)
    - devolver None (veto: a propriedade passa a ser ausente)

A prioridade é um atributo numérico opcional (`priority`, default 0);
prioridades maiores executam primeiro. A ordem é calculada uma única vez
no registro (ver `filters.chain.FilterChain`).
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .types import FilterContext, PropertyValue


@runtime_checkable
class PropertyFilter(Protocol):
    """Estágio da cadeia de filtros. Deve ser livre de efeitos colaterais sobre o merge."""

    def filter_property(
        self,
        value: PropertyValue,
        context: FilterContext,
    ) -> Optional[PropertyValue]:
        ...
