# src/atlas_config/core/aggregation/__init__.py
"""
Agregação de fontes do Atlas Config.

Componentes principais:
    - ordinal → resolução de precedência e chave de ordenação
    - loading → expansão de providers e enumeração de fontes com prazo
    - merge   → merge bulk por ordinal e lookup por chave

Princípios fundamentais:
    - A ordem de precedência é determinística para a mesma entrada
    - Falhas de fontes individuais são recuperadas localmente
    - O merge opera apenas sobre dados já congelados pelo carregamento
"""

from .loading import LoadedSource, load_sources
from .merge import lookup_property, merge_properties, rank_sources
from .ordinal import resolve_ordinal, source_sort_key

__all__ = [
    "LoadedSource",
    "load_sources",
    "lookup_property",
    "merge_properties",
    "rank_sources",
    "resolve_ordinal",
    "source_sort_key",
]
