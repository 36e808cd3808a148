# src/atlas_config/__init__.py
"""
Atlas Config — motor de resolução de configuração em camadas.

Agrega pares chave/valor de várias fontes independentes, resolve
conflitos por ordinal, aplica uma cadeia de filtros e resolve expressões
`${resolverId:expression}` embutidas nos valores.

Arquitetura em alto nível:
    - core.sources     → produtores de propriedades
    - core.aggregation → precedência por ordinal e merge
    - core.filters     → veto, reescrita e máscara
    - core.resolver    → substituição de placeholders com detecção de ciclos
    - core.context     → fachada com snapshot, recarga e notificação

Limites explícitos:
    - Não descobre componentes por varredura global
    - Não persiste configuração
"""

from .core.accessor import clear_current, current, set_current
from .core.binding import MISSING, FieldBinding, bind, convert_value
from .core.builder import ConfigurationContextBuilder
from .core.context import ConfigurationContext, ConfigurationSnapshot, ContextState
from .core.events import ConfigurationChange, PropertyChange
from .core.exceptions import (
    AtlasException,
    ConfigurationError,
    CycleError,
    DuplicateSourceNameError,
    FilterError,
    ResolutionError,
    SourceLoadError,
)
from .core.mutable import ConfigChangeRequest, MutableConfiguration
from .core.observability import EventLog
from .core.settings import ContextSettings, load_settings
from .core.spi import FilterContext, PropertyValue

__all__ = [
    "AtlasException",
    "ConfigChangeRequest",
    "ConfigurationChange",
    "ConfigurationContext",
    "ConfigurationContextBuilder",
    "ConfigurationError",
    "ConfigurationSnapshot",
    "ContextSettings",
    "ContextState",
    "CycleError",
    "DuplicateSourceNameError",
    "EventLog",
    "FieldBinding",
    "FilterContext",
    "FilterError",
    "MISSING",
    "MutableConfiguration",
    "PropertyChange",
    "PropertyValue",
    "ResolutionError",
    "SourceLoadError",
    "bind",
    "clear_current",
    "convert_value",
    "current",
    "load_settings",
    "set_current",
]
