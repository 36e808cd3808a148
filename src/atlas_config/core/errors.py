"""
Atlas Config — Canonical Error Payload (v1)

Este módulo define o formato padrão de erro do Atlas Config e o catálogo
estável de códigos utilizados pelo motor de resolução de configuração.

Objetivo:
- Padronizar falhas recuperadas localmente (fonte, filtro, resolução)
- Tornar cada recuperação rastreável no EventLog do contexto
- Permitir mapeamento determinístico de exceções para payloads

Campos:
- type: código estável do erro (não é texto livre)
- message: mensagem curta, humana e objetiva
- details: dados estruturados relevantes para diagnóstico
- hint: ação sugerida ao operador (onde corrigir)
- decision_required: indica que a configuração não pode ser produzida
  sem intervenção explícita (sem fallback silencioso)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class AtlasErrorPayload:
    """Payload canônico e serializável de erro."""

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Fontes
SOURCE_LOAD_ERROR = "SOURCE_LOAD_ERROR"
SOURCE_TIMEOUT = "SOURCE_TIMEOUT"

# Filtros
FILTER_ERROR = "FILTER_ERROR"

# Expressões
RESOLUTION_ERROR = "RESOLUTION_ERROR"
UNRESOLVED_EXPRESSION = "UNRESOLVED_EXPRESSION"
INVALID_EXPRESSION = "INVALID_EXPRESSION"
CYCLE_ERROR = "CYCLE_ERROR"

# Contexto
LISTENER_ERROR = "LISTENER_ERROR"
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def source_load_error(
    *,
    source: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique a disponibilidade da fonte. A agregação continua sem ela.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=SOURCE_LOAD_ERROR,
        message="Falha ao carregar fonte de propriedades",
        details={
            "source": source,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def source_timeout(
    *,
    source: str,
    timeout_seconds: float,
    hint: str = "Aumente provider_timeout_seconds ou corrija a fonte lenta. A agregação continua sem ela.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=SOURCE_TIMEOUT,
        message="Fonte de propriedades excedeu o tempo limite de carregamento",
        details={
            "source": source,
            "timeout_seconds": timeout_seconds,
        },
        hint=hint,
        decision_required=False,
    )


def filter_error(
    *,
    filter_name: str,
    key: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Corrija o filtro. O valor foi mantido inalterado (pass-through).",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=FILTER_ERROR,
        message="Filtro de propriedade falhou",
        details={
            "filter": filter_name,
            "key": key,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def resolution_error(
    *,
    resolver_id: str,
    expression: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Corrija o resolver. O próximo resolver da cadeia foi consultado.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=RESOLUTION_ERROR,
        message="Resolver de expressão falhou",
        details={
            "resolver_id": resolver_id,
            "expression": expression,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def unresolved_expression(
    *,
    expression: str,
    masked: bool,
    hint: str = "Declare o valor referenciado ou registre um resolver capaz de resolvê-lo.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=UNRESOLVED_EXPRESSION,
        message="Expressão não resolvida",
        details={
            "expression": expression,
            "masked": masked,
        },
        hint=hint,
        decision_required=False,
    )


def invalid_expression(
    *,
    value: str,
    reason: str,
    hint: str = "Feche a expressão com '}' ou escape o '$' com '\\'.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=INVALID_EXPRESSION,
        message="Sintaxe de expressão inválida",
        details={
            "value": value,
            "reason": reason,
        },
        hint=hint,
        decision_required=False,
    )


def cycle_error(
    *,
    expression: str,
    stack: List[str],
    hint: str = "Remova a referência circular entre as propriedades envolvidas.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=CYCLE_ERROR,
        message="Referência circular detectada durante resolução de expressão",
        details={
            "expression": expression,
            "stack": list(stack),
        },
        hint=hint,
        decision_required=False,
    )


def listener_error(
    *,
    listener: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Corrija o listener. Os demais listeners foram notificados normalmente.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=LISTENER_ERROR,
        message="Listener de mudança de configuração falhou",
        details={
            "listener": listener,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def configuration_error(
    *,
    message: str = "Configuração não pode ser produzida",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Declare explicitamente a propriedade exigida em alguma fonte antes de prosseguir.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
        decision_required=True,
    )
