# src/atlas_config/core/spi/types.py
"""
Tipos canônicos trocados entre fontes, filtros, resolvers e o contexto.

Componentes principais:
    - PropertyValue → valor imutável de uma propriedade com proveniência
    - FilterContext → contexto imutável entregue a cada filtro
    - Convenções de chaves reservadas (ordinal, metadados, proveniência)

Princípios fundamentais:
    - Tipos são imutáveis após construídos
    - `value=None` significa "presente porém nulo", nunca "ausente";
      ausência é sempre representada pela falta de PropertyValue (None)
    - Nenhuma lógica de agregação, filtragem ou resolução vive neste módulo

Invariantes:
    - `key` e `source` são strings não vazias
    - `meta_entries` e `prior_values` são somente leitura

Limites explícitos:
    - Não define formatos de arquivo
    - Não define ordem de fontes ou filtros
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional


ORDINAL_KEY = "_ordinal"
META_PREFIX = "_"
SOURCE_SUFFIX = ".source"


def source_meta_key(key: str, *, prefix: str = META_PREFIX, suffix: str = SOURCE_SUFFIX) -> str:
    """Chave de metadado de proveniência de `key` (ex.: `_db.url.source`)."""
    return f"{prefix}{key}{suffix}"


@dataclass(frozen=True)
class PropertyValue:
    """
    Valor imutável de uma propriedade, com nome da fonte e metadados.

    Campos:
        - key: chave da propriedade
        - value: valor textual, ou None (presente porém nulo)
        - source: nome da fonte que forneceu o valor
        - meta_entries: metadados de proveniência (somente leitura)

    Invariantes:
        - Uma instância nunca é alterada após criada; reescritas produzem
          novas instâncias via `with_value` / `with_meta`
    """

    key: str
    value: Optional[str]
    source: str
    meta_entries: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key:
            raise ValueError("PropertyValue.key must be a non-empty string")
        if not isinstance(self.source, str) or not self.source:
            raise ValueError("PropertyValue.source must be a non-empty string")
        if self.value is not None and not isinstance(self.value, str):
            raise TypeError(
                f"PropertyValue.value must be str or None, got {type(self.value).__name__}"
            )
        object.__setattr__(self, "meta_entries", MappingProxyType(dict(self.meta_entries)))

    @classmethod
    def of(
        cls,
        key: str,
        value: Optional[str],
        source: str,
        *,
        meta_prefix: str = META_PREFIX,
        source_suffix: str = SOURCE_SUFFIX,
        **meta: Any,
    ) -> "PropertyValue":
        """
        Cria um valor com a entrada de proveniência preenchida.

        A chave de proveniência segue as convenções do contexto
        (`meta_prefix` + key + `source_suffix`, por padrão `_<key>.source`).
        """
        entries = {source_meta_key(key, prefix=meta_prefix, suffix=source_suffix): source}
        entries.update({k: str(v) for k, v in meta.items()})
        return cls(key=key, value=value, source=source, meta_entries=entries)

    @property
    def is_null(self) -> bool:
        return self.value is None

    def with_value(self, value: Optional[str]) -> "PropertyValue":
        return replace(self, value=value)

    def with_meta(self, **entries: Any) -> "PropertyValue":
        merged = dict(self.meta_entries)
        merged.update({k: str(v) for k, v in entries.items()})
        return replace(self, meta_entries=merged)

    def __hash__(self) -> int:
        return hash((self.key, self.value, self.source))


@dataclass(frozen=True)
class FilterContext:
    """
    Contexto imutável entregue a um filtro para uma propriedade.

    Campos:
        - key: chave em filtragem
        - current_value: valor corrente (possivelmente já reescrito por filtros anteriores)
        - prior_values: visão somente leitura do merge (modo bulk) ou da
          própria propriedade (modo single)
        - single_property_scoped: True quando o acesso é direto por chave (`get`)

    Decisões arquiteturais:
        - Filtros que ocultam metadados não devem ocultá-los em modo single
        - `prior_values` é um MappingProxyType: filtros não mutam o estado do merge
    """

    key: str
    current_value: PropertyValue
    prior_values: Mapping[str, PropertyValue]
    single_property_scoped: bool

    def __post_init__(self) -> None:
        if not isinstance(self.prior_values, MappingProxyType):
            object.__setattr__(self, "prior_values", MappingProxyType(dict(self.prior_values)))

    @classmethod
    def single(cls, value: PropertyValue) -> "FilterContext":
        return cls(
            key=value.key,
            current_value=value,
            prior_values={value.key: value},
            single_property_scoped=True,
        )

    @classmethod
    def bulk(cls, value: PropertyValue, prior_values: Mapping[str, PropertyValue]) -> "FilterContext":
        return cls(
            key=value.key,
            current_value=value,
            prior_values=prior_values,
            single_property_scoped=False,
        )

    def advance(self, value: PropertyValue) -> "FilterContext":
        """Contexto para o próximo filtro da cadeia, com o valor reescrito."""
        return replace(self, current_value=value)
