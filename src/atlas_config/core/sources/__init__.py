# src/atlas_config/core/sources/__init__.py
"""
Fontes e providers de referência do Atlas Config.

Ordinais default por tipo (v1):
    - MapPropertySource / LookupPropertySource / MutableMapPropertySource → 0
    - FilePropertySource (YAML/JSON)                                     → 100
    - EnvironmentPropertySource                                          → 300
    - SystemPropertySource                                               → 1000

Limites explícitos:
    - Fontes não conhecem o contexto nem outras fontes
    - Timeout de carregamento é aplicado pelo contexto, não pelas fontes
"""

from .base import (
    BasePropertySource,
    LookupPropertySource,
    MapPropertySource,
    MutableMapPropertySource,
    ObservableMixin,
)
from .environment import EnvironmentPropertySource
from .files import FilePropertySource, PathPatternProvider, flatten
from .system import SystemPropertySource, parse_system_overrides, runtime_properties

__all__ = [
    "BasePropertySource",
    "EnvironmentPropertySource",
    "FilePropertySource",
    "LookupPropertySource",
    "MapPropertySource",
    "MutableMapPropertySource",
    "ObservableMixin",
    "PathPatternProvider",
    "SystemPropertySource",
    "flatten",
    "parse_system_overrides",
    "runtime_properties",
]
