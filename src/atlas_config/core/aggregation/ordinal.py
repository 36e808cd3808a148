# src/atlas_config/core/aggregation/ordinal.py
"""
Resolução de ordinal (precedência) de fontes de propriedades.

Política de ordinal (v1), na ordem:
    1. ordinal explícito informado na construção da fonte
    2. entrada reservada dentro dos próprios dados da fonte (`_ordinal`)
    3. constante default do tipo da fonte

Ordenação de fontes:
    - crescente por ordinal; empates desempatados por nome (lexicográfico)
    - a ordem independe da ordem de carregamento

Invariantes:
    - Um valor inválido em `_ordinal` nunca derruba a fonte: cai para o default
    - A mesma lista de fontes produz sempre a mesma ordem
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from ..spi.types import ORDINAL_KEY, PropertyValue


def resolve_ordinal(
    *,
    explicit: Optional[int],
    lookup: Callable[[str], Optional[PropertyValue]],
    default: int,
    ordinal_key: str = ORDINAL_KEY,
) -> int:
    """
    Determina o ordinal efetivo de uma fonte.

    Args:
        explicit: ordinal explícito (vence sempre quando presente).
        lookup: acesso por chave aos dados da própria fonte.
        default: constante default do tipo da fonte.
        ordinal_key: chave reservada de override.

    Returns:
        int: ordinal efetivo.
    """
    if explicit is not None:
        return int(explicit)

    try:
        entry = lookup(ordinal_key)
    except Exception:  # noqa: BLE001
        # lookup com falha equivale a "chave ausente" (mesma regra do get)
        entry = None

    if entry is not None and entry.value is not None:
        try:
            return int(entry.value.strip())
        except ValueError:
            pass

    return int(default)


def source_sort_key(ordinal: int, name: str) -> Tuple[int, str]:
    """Chave de ordenação crescente: ordinal, depois nome."""
    return (ordinal, name)
