# src/atlas_config/core/functions.py
"""Funções utilitárias sobre mapas de propriedades (seções e metadados)."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .spi.types import META_PREFIX


def is_metadata_key(key: str, prefix: str = META_PREFIX) -> bool:
    return bool(prefix) and key.startswith(prefix)


def section(
    properties: Mapping[str, Optional[str]],
    prefix: str,
    *,
    strip_prefix: bool = False,
) -> Dict[str, Optional[str]]:
    """
    Subconjunto de `properties` sob `prefix`.

    `prefix` é tratado como seção: `db` casa `db.url` mas não `dbx.url`.
    Com `strip_prefix=True` as chaves devolvidas perdem `prefix.`.
    """
    base = prefix.rstrip(".")
    if not base:
        return dict(properties)
    head = base + "."
    out: Dict[str, Optional[str]] = {}
    for key, value in properties.items():
        if key.startswith(head):
            out[key[len(head):] if strip_prefix else key] = value
        elif key == base and not strip_prefix:
            out[key] = value
    return out


def sections(properties: Mapping[str, Optional[str]]) -> List[str]:
    """Nomes de seção de primeiro nível (parte antes do primeiro `.`), ordenados."""
    return sorted({key.split(".", 1)[0] for key in properties if "." in key})
