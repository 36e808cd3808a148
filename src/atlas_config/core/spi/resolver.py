# src/atlas_config/core/spi/resolver.py
"""Contrato de resolvers nomeados de expressões `${resolverId:expression}`."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ExpressionResolver(Protocol):
    """
    Resolver nomeado de expressões.

    Atributos obrigatórios:
        - resolver_id: prefixo que seleciona o resolver (ex.: `env`, `sys`, `conf`)

    `evaluate` devolve o valor resolvido ou None quando não conhece a
    expressão. O valor devolvido pode conter novas expressões, que serão
    resolvidas recursivamente pelo avaliador. Prioridade opcional via
    atributo `priority` (maior é consultado primeiro na cadeia default).
    """

    resolver_id: str

    def evaluate(self, expression: str) -> Optional[str]:
        ...
