# src/atlas_config/core/settings/__init__.py
"""
Camada de settings do Atlas Config.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar, validar estruturalmente e identificar os settings do próprio
motor de resolução (chaves reservadas, prazos, limites e políticas).

Responsabilidades do pacote:
    - Carregamento de arquivos de settings (defaults + overrides locais)
    - Resolução dos settings finais via deep-merge determinístico
    - Validação estrutural contra o schema de `ContextSettings`
    - Geração de hash canônico (também usado para snapshots)

Limites explícitos:
    - Não agrega PropertySources
    - Não resolve expressões
"""

from .errors import (
    ConfigTypeConflictError,
    InvalidSettingsError,
    InvalidSettingsRootTypeError,
    SettingsError,
    SettingsFileNotFoundError,
    UnsupportedSettingsFormatError,
)
from .hashing import compute_config_hash
from .loader import DEFAULT_SETTINGS, ContextSettings, load_settings
from .merge import deep_merge

__all__ = [
    "ConfigTypeConflictError",
    "ContextSettings",
    "DEFAULT_SETTINGS",
    "InvalidSettingsError",
    "InvalidSettingsRootTypeError",
    "SettingsError",
    "SettingsFileNotFoundError",
    "UnsupportedSettingsFormatError",
    "compute_config_hash",
    "deep_merge",
    "load_settings",
]
