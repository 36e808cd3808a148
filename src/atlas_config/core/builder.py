# src/atlas_config/core/builder.py
"""
Builder fluente de ConfigurationContext.

Todo componente é registrado explicitamente; nada é descoberto por
varredura global. `with_defaults()` apenas registra, de forma explícita,
as fontes de ambiente e de system properties e os resolvers embutidos
(`sys`, `env`, `file`, `resource`).
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from .context import ConfigurationContext
from .observability import EventLog
from .resolver.builtin import EnvironmentResolver, FileResolver, ResourceResolver, SystemResolver
from .settings.loader import ContextSettings, load_settings
from .sources.environment import EnvironmentPropertySource
from .sources.files import FilePropertySource, PathPatternProvider
from .sources.system import SystemPropertySource
from .spi.filter import PropertyFilter
from .spi.resolver import ExpressionResolver
from .spi.source import PropertySource, PropertySourceProvider


class ConfigurationContextBuilder:
    """
    Montagem explícita de um ConfigurationContext.

    Decisões arquiteturais:
        - Cada método registra componentes e devolve o próprio builder
          (encadeamento fluente)
        - Settings devem ser definidos antes de fontes de arquivo e de
          `with_defaults()`: a chave de ordinal (`ordinal_key`) é capturada
          no momento do registro
        - `build()` não guarda o contexto criado: chamadas sucessivas criam
          contextos independentes sobre os mesmos componentes

    Invariantes:
        - Ordem de registro preservada (fontes, providers, filtros e resolvers)
        - Nenhuma fonte é carregada antes de `build()`

    Limites explícitos:
        - Não registra o contexto no acessor de processo (ver `accessor.set_current`)
        - Não descobre plugins, entry points ou arquivos por convenção
    """

    def __init__(self, settings: Optional[ContextSettings] = None):
        self._settings = settings or ContextSettings()
        self._events: Optional[EventLog] = None
        self._sources: List[PropertySource] = []
        self._providers: List[PropertySourceProvider] = []
        self._filters: List[PropertyFilter] = []
        self._resolvers: List[ExpressionResolver] = []

    # -----------------------------
    # Settings / observabilidade
    # -----------------------------
    def with_settings(self, settings: ContextSettings) -> "ConfigurationContextBuilder":
        self._settings = settings
        return self

    def with_settings_files(
        self,
        *,
        defaults_path: Optional[str] = None,
        local_path: Optional[str] = None,
    ) -> "ConfigurationContextBuilder":
        """
        Resolve os settings a partir dos arquivos informados (ver `load_settings`).

        Raises:
            SettingsError: Arquivo ausente, formato inválido, conflito de tipo
                entre camadas ou violação do schema.
        """
        self._settings = load_settings(defaults_path=defaults_path, local_path=local_path)
        return self

    def with_events(self, events: EventLog) -> "ConfigurationContextBuilder":
        self._events = events
        return self

    # -----------------------------
    # Componentes
    # -----------------------------
    def add_sources(self, *sources: PropertySource) -> "ConfigurationContextBuilder":
        self._sources.extend(sources)
        return self

    def add_providers(self, *providers: PropertySourceProvider) -> "ConfigurationContextBuilder":
        self._providers.extend(providers)
        return self

    def add_filters(self, *filters: PropertyFilter) -> "ConfigurationContextBuilder":
        self._filters.extend(filters)
        return self

    def add_resolvers(self, *resolvers: ExpressionResolver) -> "ConfigurationContextBuilder":
        self._resolvers.extend(resolvers)
        return self

    def add_file(self, path: Path, *, ordinal: Optional[int] = None) -> "ConfigurationContextBuilder":
        """
        Registra um arquivo YAML/JSON como fonte (ordinal default 100 ou `_ordinal` do arquivo).

        O arquivo só é lido quando o contexto carrega: arquivo ausente ou
        inválido falha apenas esta fonte (SOURCE_LOAD_ERROR), e cada
        `reload()` relê o conteúdo atual.
        """
        return self.add_sources(
            FilePropertySource(path, ordinal=ordinal, ordinal_key=self._settings.ordinal_key)
        )

    def add_files(self, base_dir: Path, pattern: str, *, ordinal: Optional[int] = None) -> "ConfigurationContextBuilder":
        """Registra um provider com uma fonte por arquivo casado pelo glob (nomes `file:<relativo>`)."""
        return self.add_providers(
            PathPatternProvider(base_dir, pattern, ordinal=ordinal, ordinal_key=self._settings.ordinal_key)
        )

    def with_defaults(
        self,
        *,
        environ: Optional[Mapping[str, str]] = None,
        argv: Sequence[str] = (),
        base_dir: Optional[Path] = None,
    ) -> "ConfigurationContextBuilder":
        """
        Registra as fontes e resolvers padrão do processo.

        Componentes registrados:
            - EnvironmentPropertySource (`environment`, ordinal 300)
            - SystemPropertySource (`system`, ordinal 1000), com overrides `-Dchave=valor` de `argv`
            - resolvers `sys`, `env`, `file` (relativo a `base_dir`) e `resource`

        Decisões arquiteturais:
            - O resolver `sys` consulta a mesma instância da fonte `system`
            - `environ` informado é copiado para a fonte; sem ele fonte e resolver
              `env` acompanham `os.environ`

        Limites explícitos:
            - Não registra arquivos: use `add_file` / `add_files`
            - Resolvers com o mesmo id registrados antes fazem `build()` falhar
              (ValueError); não há substituição silenciosa
        """
        system = SystemPropertySource.from_args(argv, ordinal_key=self._settings.ordinal_key)
        self.add_sources(
            EnvironmentPropertySource(
                environ=dict(environ) if environ is not None else None,
                ordinal_key=self._settings.ordinal_key,
            ),
            system,
        )
        self.add_resolvers(
            SystemResolver(system),
            EnvironmentResolver(environ),
            FileResolver(base_dir),
            ResourceResolver(),
        )
        return self

    def build(self) -> ConfigurationContext:
        """
        Cria o contexto e executa a carga inicial.

        Raises:
            ConfigurationError: Se todas as fontes falharem ou houver nomes duplicados.
        """
        return ConfigurationContext(
            sources=self._sources,
            providers=self._providers,
            filters=self._filters,
            resolvers=self._resolvers,
            settings=self._settings,
            events=self._events,
        )
