# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas Config.

Este módulo define fixtures reutilizáveis que fornecem:
- settings mínimos e determinísticos em YAML
- EventLog isolado por teste
- fábricas de fontes em memória e de contextos

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas
    - Fontes de ambiente/sistema nunca são registradas implicitamente

Invariantes:
    - Nenhuma fixture depende de variáveis de ambiente reais
    - Nenhuma fixture compartilha estado entre testes
"""

import pytest


# =====================================================
# Settings fixtures
# =====================================================

@pytest.fixture
def settings_defaults_yaml() -> str:
    """
    YAML de settings de projeto (defaults) sobre o qual overrides locais são aplicados.

    Returns:
        str: Conteúdo YAML com seções `loading` e `resolution`.
    """
    return """\
loading:
  provider_timeout_seconds: 2
resolution:
  mask_unresolved: true
  max_resolution_depth: 10
"""


@pytest.fixture
def settings_local_yaml() -> str:
    """YAML de overrides locais (apenas as chaves sobrescritas)."""
    return """\
loading:
  provider_timeout_seconds: 0.5
resolution:
  mask_unresolved: false
"""


# =====================================================
# Core fixtures
# =====================================================

@pytest.fixture
def events():
    from atlas_config.core.observability import EventLog

    return EventLog(context_id="ctx-test-001")


@pytest.fixture
def map_source():
    """
    Fábrica de MapPropertySource.

    Uso:
        map_source("a", {"k": "v"}, ordinal=10)
    """
    from atlas_config.core.sources.base import MapPropertySource

    def _make(name, data, **kwargs):
        return MapPropertySource(name, data, **kwargs)

    return _make


@pytest.fixture
def make_context(events):
    """
    Fábrica de ConfigurationContext com EventLog do teste.

    Uso:
        ctx = make_context(sources=[...], filters=[...])
    """
    from atlas_config.core.context import ConfigurationContext

    def _make(sources=(), **kwargs):
        kwargs.setdefault("events", events)
        return ConfigurationContext(sources=sources, **kwargs)

    return _make
