# src/atlas_config/core/spi/source.py
"""
Contratos de produtores de dados de configuração.

Este módulo define os protocolos mínimos que qualquer fonte de propriedades
(PropertySource), provider de fontes (PropertySourceProvider) e fonte
gravável (MutablePropertySource) deve satisfazer para ser agregada pelo
ConfigurationContext.

Decisões arquiteturais:
    - Protocolos (`@runtime_checkable`) em vez de herança obrigatória
    - Fontes são injetadas explicitamente no contexto (sem descoberta global)
    - Formatos de arquivo e transporte pertencem às implementações, não ao core

Invariantes:
    - `name` é único dentro de um contexto
    - `ordinal` já é o ordinal efetivo (explícito → `_ordinal` → default do tipo)
    - Fontes não escaneáveis contribuem apenas para `get(key)`

Limites explícitos:
    - Não define política de merge
    - Não define política de timeout (responsabilidade da camada de carregamento)
"""

from __future__ import annotations

from typing import Callable, Collection, Mapping, Optional, Protocol, runtime_checkable

from .types import PropertyValue


@runtime_checkable
class PropertySource(Protocol):
    """
    Contrato canônico de uma fonte de propriedades.

    Atributos obrigatórios:
        - name: identificador único e estável da fonte
        - ordinal: precedência efetiva (maior vence em colisão de chave)
        - scannable: True se a fonte suporta enumeração completa

    Limites explícitos:
        - Não conhece outras fontes nem o contexto
        - Não aplica filtros nem resolve expressões
    """

    name: str
    ordinal: int
    scannable: bool

    def get(self, key: str) -> Optional[PropertyValue]:
        """Valor da chave, ou None quando a fonte não a conhece."""
        ...

    def get_properties(self) -> Mapping[str, Optional[str]]:
        """Enumeração completa (vazia para fontes não escaneáveis)."""
        ...


@runtime_checkable
class PropertySourceProvider(Protocol):
    """Fornece uma coleção de fontes (ex.: vários arquivos casados por um padrão)."""

    def get_property_sources(self) -> Collection[PropertySource]:
        ...


@runtime_checkable
class ObservableSource(Protocol):
    """Fonte capaz de sinalizar que seus dados mudaram (ex.: arquivo observado)."""

    def subscribe(self, callback: Callable[[PropertySource], None]) -> None:
        ...

    def unsubscribe(self, callback: Callable[[PropertySource], None]) -> None:
        ...


@runtime_checkable
class MutablePropertySource(PropertySource, Protocol):
    """Fonte designada como destino do caminho de escrita (mutable config)."""

    def is_writable(self, key: str) -> bool:
        ...

    def apply_changes(
        self,
        puts: Mapping[str, Optional[str]],
        removes: Collection[str],
    ) -> None:
        ...
