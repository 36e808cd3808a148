# src/atlas_config/core/settings/loader.py
"""
Loader canônico dos settings do motor Atlas Config.

Este módulo é responsável por carregar, validar estruturalmente e resolver
os settings efetivos que governam o ConfigurationContext: chaves reservadas,
tempo limite de carregamento de fontes, política de mascaramento de
expressões não resolvidas e limites de laço/recursão.

Os settings são resolvidos a partir de:
    - defaults embutidos (`DEFAULT_SETTINGS`, sempre presentes)
    - um arquivo de defaults (opcional)
    - um arquivo local de overrides (opcional)

Princípios fundamentais:
    - Settings são declarativos e explícitos
    - Erros estruturais são tratados como falhas fatais
    - A mesma entrada sempre produz os mesmos settings finais

Invariantes:
    - O resultado é sempre um `ContextSettings` imutável
    - Overrides nunca mutam os defaults
    - Chaves desconhecidas são rejeitadas (sem heurística implícita)

Limites explícitos:
    - Não carrega PropertySources (settings não são propriedades da aplicação)
    - Não persiste settings ou hash
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml  # PyYAML

from .errors import (
    InvalidSettingsError,
    InvalidSettingsRootTypeError,
    SettingsFileNotFoundError,
    UnsupportedSettingsFormatError,
)
from .hashing import compute_config_hash
from .merge import deep_merge


DEFAULT_SETTINGS: Dict[str, Any] = {
    "keys": {
        "ordinal_key": "_ordinal",
        "metadata_prefix": "_",
        "source_suffix": ".source",
    },
    "loading": {
        "provider_timeout_seconds": 5.0,
    },
    "filters": {
        "hide_metadata": True,
        "max_filter_loops": 10,
    },
    "resolution": {
        "mask_unresolved": True,
        "max_resolution_depth": 25,
    },
    "events": {
        "max_events": 1000,
    },
}

# campo -> (seção, tipo aceito)
_SCHEMA: Dict[str, Tuple[str, Tuple[type, ...]]] = {
    "ordinal_key": ("keys", (str,)),
    "metadata_prefix": ("keys", (str,)),
    "source_suffix": ("keys", (str,)),
    "provider_timeout_seconds": ("loading", (int, float)),
    "hide_metadata": ("filters", (bool,)),
    "max_filter_loops": ("filters", (int,)),
    "mask_unresolved": ("resolution", (bool,)),
    "max_resolution_depth": ("resolution", (int,)),
    "max_events": ("events", (int,)),
}


@dataclass(frozen=True)
class ContextSettings:
    """
    Settings efetivos e imutáveis de um ConfigurationContext.

    Campos:
        - ordinal_key: chave reservada de override de ordinal dentro de uma fonte
        - metadata_prefix: prefixo de chaves de metadados (ocultadas em modo bulk)
        - source_suffix: sufixo da entrada de proveniência por chave (`_<key>.source`)
        - provider_timeout_seconds: prazo compartilhado de carregamento de fontes
        - hide_metadata: registra automaticamente o MetadataFilter
        - max_filter_loops: limite de passagens da cadeia de filtros
        - mask_unresolved: política de saída para expressões não resolvidas
        - max_resolution_depth: limite de profundidade de resolução recursiva
        - max_events: capacidade do EventLog (eventos mais antigos são descartados)
    """

    ordinal_key: str = "_ordinal"
    metadata_prefix: str = "_"
    source_suffix: str = ".source"
    provider_timeout_seconds: float = 5.0
    hide_metadata: bool = True
    max_filter_loops: int = 10
    mask_unresolved: bool = True
    max_resolution_depth: int = 25
    max_events: int = 1000

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContextSettings":
        """Valida um dicionário aninhado por seções e produz `ContextSettings`."""
        known_sections = {section for section, _ in _SCHEMA.values()}
        for section, body in data.items():
            if section not in known_sections:
                raise InvalidSettingsError(f"Seção de settings desconhecida: '{section}'")
            if not isinstance(body, dict):
                raise InvalidSettingsError(
                    f"Seção '{section}' deve ser dict, recebido: {type(body).__name__}"
                )
            for name in body:
                if name not in _SCHEMA or _SCHEMA[name][0] != section:
                    raise InvalidSettingsError(f"Setting desconhecido: '{section}.{name}'")

        values: Dict[str, Any] = {}
        for name, (section, accepted) in _SCHEMA.items():
            section_body = data.get(section, {})
            if name not in section_body:
                continue
            value = section_body[name]
            # bool é subclasse de int: rejeitar True onde se espera número
            if isinstance(value, bool) and bool not in accepted:
                raise InvalidSettingsError(f"Tipo inválido para '{section}.{name}': bool")
            if not isinstance(value, accepted):
                raise InvalidSettingsError(
                    f"Tipo inválido para '{section}.{name}': {type(value).__name__}"
                )
            values[name] = value

        settings = cls(**values)
        settings._validate_ranges()
        return settings

    def _validate_ranges(self) -> None:
        if self.provider_timeout_seconds <= 0:
            raise InvalidSettingsError("loading.provider_timeout_seconds deve ser > 0")
        if self.max_filter_loops < 1:
            raise InvalidSettingsError("filters.max_filter_loops deve ser >= 1")
        if self.max_resolution_depth < 1:
            raise InvalidSettingsError("resolution.max_resolution_depth deve ser >= 1")
        if self.max_events < 1:
            raise InvalidSettingsError("events.max_events deve ser >= 1")
        if not self.ordinal_key.strip():
            raise InvalidSettingsError("keys.ordinal_key deve ser string não vazia")

    def to_dict(self) -> Dict[str, Any]:
        nested: Dict[str, Any] = {}
        for name, value in asdict(self).items():
            section = _SCHEMA[name][0]
            nested.setdefault(section, {})[name] = value
        return nested

    @property
    def settings_hash(self) -> str:
        return compute_config_hash(self.to_dict())


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de settings e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        SettingsFileNotFoundError: Se o arquivo não existir.
        UnsupportedSettingsFormatError: Se o formato do arquivo não for suportado.
        InvalidSettingsRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise SettingsFileNotFoundError(f"Arquivo de settings não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedSettingsFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidSettingsRootTypeError(
            f"Settings root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_settings(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> ContextSettings:
    """
    Carrega e resolve os settings efetivos do motor.

    Política de resolução:
        - `DEFAULT_SETTINGS` é sempre a base
        - o arquivo de defaults, quando informado, sobrescreve a base
        - o arquivo local, quando informado, sobrescreve ambos
        - a resolução utiliza `deep_merge` com política determinística

    Args:
        defaults_path (Optional[str]): Caminho opcional para defaults do projeto.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        ContextSettings: Settings finais validados.

    Raises:
        SettingsFileNotFoundError: Se um caminho informado não existir.
        UnsupportedSettingsFormatError: Se o formato do arquivo não for suportado.
        InvalidSettingsRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
        InvalidSettingsError: Se o resultado violar o schema de settings.
    """

    resolved: Dict[str, Any] = dict(DEFAULT_SETTINGS)

    if defaults_path is not None:
        resolved = deep_merge(resolved, _load_file(Path(defaults_path)), origin=str(defaults_path))

    if local_path is not None:
        resolved = deep_merge(resolved, _load_file(Path(local_path)), origin=str(local_path))

    return ContextSettings.from_dict(resolved)
