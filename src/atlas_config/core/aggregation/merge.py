# src/atlas_config/core/aggregation/merge.py
"""
Motor de agregação: merge por ordinal e lookup por chave.

Este módulo implementa a política oficial de agregação do Atlas Config
sobre fontes já carregadas (`LoadedSource`).

Política de merge (v1):
    - ordenação estável crescente por (ordinal, nome)
    - iteração crescente: chaves de fontes posteriores sobrescrevem as
      anteriores (last-write-wins = maior ordinal vence)
    - empate de ordinal desempatado por nome, independente da ordem de carga
    - fontes não escaneáveis não participam do mapa bulk
    - `None` (presente porém nulo) nunca sobrescreve um valor não nulo

Política de lookup (v1):
    - ordem decrescente por (ordinal, nome), incluindo fontes não escaneáveis
    - o primeiro valor não nulo vence
    - se apenas valores nulos existirem, o de maior precedência é devolvido
    - `get(key)` que levanta exceção equivale a "chave ausente" naquela fonte

Invariantes:
    - `merge_properties` é função pura da lista de entrada
    - Nenhum estado global influencia o resultado
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from ..errors import source_load_error
from ..observability import EventLog
from ..spi.types import META_PREFIX, SOURCE_SUFFIX, PropertyValue, source_meta_key
from .loading import LoadedSource
from .ordinal import source_sort_key

COMPONENT = "aggregation.merge"


def rank_sources(loaded: Sequence[LoadedSource]) -> List[LoadedSource]:
    """Ordena fontes carregadas de forma crescente e determinística."""
    return sorted(loaded, key=lambda ls: source_sort_key(ls.ordinal, ls.name))


def _tagged(
    key: str,
    value: Optional[str],
    ls: LoadedSource,
    *,
    meta_prefix: str,
    source_suffix: str,
    extra: Optional[Mapping[str, str]] = None,
) -> PropertyValue:
    entries: Dict[str, str] = dict(extra or {})
    entries.pop(source_meta_key(key), None)
    entries[source_meta_key(key, prefix=meta_prefix, suffix=source_suffix)] = ls.name
    entries["ordinal"] = str(ls.ordinal)
    return PropertyValue(key=key, value=value, source=ls.name, meta_entries=entries)


def merge_properties(
    loaded: Sequence[LoadedSource],
    *,
    meta_prefix: str = META_PREFIX,
    source_suffix: str = SOURCE_SUFFIX,
) -> Dict[str, PropertyValue]:
    """
    Mescla as fontes escaneáveis em uma visão lógica única.

    Args:
        loaded: fontes carregadas (qualquer ordem).
        meta_prefix: prefixo das chaves de metadados do contexto.
        source_suffix: sufixo da entrada de proveniência do contexto.

    Returns:
        Dict[str, PropertyValue]: chave → valor vencedor, com proveniência
        registrada em `<meta_prefix><key><source_suffix>`.
    """
    result: Dict[str, PropertyValue] = {}
    for ls in rank_sources(loaded):
        if not ls.scannable:
            continue
        for key, value in ls.properties.items():
            current = result.get(key)
            if value is None and current is not None and current.value is not None:
                continue
            result[key] = _tagged(key, value, ls, meta_prefix=meta_prefix, source_suffix=source_suffix)
    return result


def lookup_property(
    loaded: Sequence[LoadedSource],
    key: str,
    *,
    events: Optional[EventLog] = None,
    meta_prefix: str = META_PREFIX,
    source_suffix: str = SOURCE_SUFFIX,
) -> Optional[PropertyValue]:
    """
    Busca uma chave em ordem decrescente de precedência.

    Valores de fontes não escaneáveis são re-etiquetados com as convenções
    do contexto; demais metadados da fonte são preservados.

    Returns:
        Optional[PropertyValue]: valor vencedor; None quando nenhuma fonte conhece a chave.
    """
    first_null: Optional[PropertyValue] = None
    for ls in reversed(rank_sources(loaded)):
        if ls.scannable:
            if key not in ls.properties:
                continue
            found: Optional[PropertyValue] = _tagged(
                key, ls.properties[key], ls, meta_prefix=meta_prefix, source_suffix=source_suffix
            )
        else:
            try:
                found = ls.source.get(key)
            except Exception as exc:  # noqa: BLE001
                if events is not None:
                    events.record_error(
                        component=COMPONENT,
                        error=source_load_error(
                            source=ls.name,
                            exc_type=exc.__class__.__name__,
                            exc_message=str(exc),
                            hint="get(key) com falha tratado como chave ausente nesta fonte.",
                        ),
                        key=key,
                    )
                continue
            if found is not None:
                found = _tagged(
                    key,
                    found.value,
                    ls,
                    meta_prefix=meta_prefix,
                    source_suffix=source_suffix,
                    extra=found.meta_entries if found.key == key else None,
                )

        if found is None:
            continue
        if found.value is not None:
            return found
        if first_null is None:
            first_null = found
    return first_null
