# src/atlas_config/core/spi/__init__.py
"""
# SPI — Atlas Config

Este pacote define os **contratos canônicos** consumidos pelo motor de
resolução e os **tipos imutáveis** trocados entre suas camadas.

## Componentes

- **types**
  - `PropertyValue`: valor imutável com proveniência
  - `FilterContext`: contexto imutável de filtragem (single ou bulk)
  - convenções de chaves reservadas (`_ordinal`, prefixo `_`, sufixo `.source`)

- **source**
  - `PropertySource`, `PropertySourceProvider`, `ObservableSource`,
    `MutablePropertySource` (Protocols)

- **filter**
  - `PropertyFilter` (Protocol)

- **resolver**
  - `ExpressionResolver` (Protocol)

## Limites Explícitos

- Não agrega, filtra nem resolve
- Não depende de formatos de arquivo ou transporte
"""

from .filter import PropertyFilter
from .resolver import ExpressionResolver
from .source import (
    MutablePropertySource,
    ObservableSource,
    PropertySource,
    PropertySourceProvider,
)
from .types import (
    META_PREFIX,
    ORDINAL_KEY,
    SOURCE_SUFFIX,
    FilterContext,
    PropertyValue,
    source_meta_key,
)

__all__ = [
    "ExpressionResolver",
    "FilterContext",
    "META_PREFIX",
    "MutablePropertySource",
    "ORDINAL_KEY",
    "ObservableSource",
    "PropertyFilter",
    "PropertySource",
    "PropertySourceProvider",
    "PropertyValue",
    "SOURCE_SUFFIX",
    "source_meta_key",
]
