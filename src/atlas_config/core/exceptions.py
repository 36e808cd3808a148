"""
Atlas Config — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do Atlas Config.

Objetivo:
- Permitir que fontes, filtros e resolvers sinalizem falhas semânticas tipadas
- Facilitar o mapeamento determinístico para AtlasErrorPayload
- Separar falhas recuperáveis localmente da falha terminal (ConfigurationError)

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Apenas ConfigurationError é propagada ao chamador; as demais são
  recuperadas no ponto de origem e registradas no EventLog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import AtlasErrorPayload, RESOLUTION_ERROR


@dataclass(eq=False)
class AtlasException(Exception):
    """Base class para exceções internas do Atlas Config.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    decision_required: bool = False

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Falhas recuperáveis localmente
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class SourceLoadError(AtlasException):
    """Fonte ou provider falhou (ou expirou) durante carregamento/enumeração."""


@dataclass(eq=False)
class FilterError(AtlasException):
    """Filtro levantou exceção ou violou o contrato de reescrita."""


@dataclass(eq=False)
class ResolutionError(AtlasException):
    """Resolver falhou ou nenhuma resolução foi possível para a expressão."""


@dataclass(eq=False)
class CycleError(ResolutionError):
    """Resolução re-entrante da mesma expressão detectada."""


# ---------------------------------------------------------------------------
# Falha terminal (voltada ao usuário)
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ConfigurationError(AtlasException):
    """Configuração exigida não pode ser produzida.

    `details` carrega a chave (`key`) e/ou a expressão (`expression`) que
    falhou; a causa original é encadeada via `raise ... from ...`.
    """

    decision_required: bool = True

    @property
    def key(self) -> Optional[str]:
        return self.details.get("key")

    @property
    def expression(self) -> Optional[str]:
        return self.details.get("expression")


@dataclass(eq=False)
class DuplicateSourceNameError(ConfigurationError):
    """Duas fontes com o mesmo nome registradas no mesmo contexto."""


def exception_to_error(exc: BaseException) -> AtlasErrorPayload:
    """Converte exceções em AtlasErrorPayload (serializável, acionável).

    Regras:
    - AtlasException: já vem com message/details/hint/decision_required.
    - Outras exceções: encapsuladas como RESOLUTION_ERROR genérico, sem stack trace.
    """
    if isinstance(exc, AtlasException):
        return AtlasErrorPayload(
            type=exc.__class__.__name__,
            message=str(exc) or "Erro de configuração",
            details=dict(exc.details or {}),
            hint=exc.hint,
            decision_required=bool(exc.decision_required),
        )

    return AtlasErrorPayload(
        type=RESOLUTION_ERROR,
        message=str(exc) or "Erro inesperado durante resolução de configuração",
        details={
            "exception_class": exc.__class__.__name__,
        },
        hint="Verifique o EventLog do contexto para diagnosticar a falha",
        decision_required=False,
    )
