# src/atlas_config/core/filters/__init__.py
"""
Pipeline de filtros do Atlas Config.

Componentes principais:
    - chain   → FilterChain (ordem determinística, veto, pass-through em falha)
    - builtin → filtros embutidos (metadados, regex, máscara, transformação, programável)
"""

from .builtin import (
    MaskingFilter,
    MetadataFilter,
    ProgrammableFilter,
    RegexPropertyFilter,
    TransformFilter,
)
from .chain import FilterChain, RegisteredFilter, filter_type_name

__all__ = [
    "FilterChain",
    "MaskingFilter",
    "MetadataFilter",
    "ProgrammableFilter",
    "RegexPropertyFilter",
    "RegisteredFilter",
    "TransformFilter",
    "filter_type_name",
]
