# src/atlas_config/core/resolver/evaluator.py
"""
Avaliador de expressões `${resolverId:expression}`.

Este módulo substitui placeholders embutidos em valores textuais pelos
valores devolvidos por resolvers nomeados, de forma recursiva e segura.

Gramática (v1):
    - `${expr}`            → cadeia default (todos os resolvers, maior prioridade primeiro)
    - `${id:expr}`         → resolver nomeado, quando `id` é um resolver registrado
    - `\\${...}`           → literal: emitido como `${...}` e nunca resolvido
    - `\\}` no corpo       → `}` literal dentro da expressão
    - corpos aninhados     → resolvidos de dentro para fora (`${conf:${env:P}.url}`)

Princípios fundamentais:
    - Texto fora de expressões é preservado literalmente
    - Ausência de resolução nunca produz silenciosamente um valor errado
    - Nenhuma resolução entra em loop infinito

Decisões arquiteturais:
    - Valores devolvidos por resolvers são reavaliados recursivamente
    - Uma pilha por chamada registra as expressões em voo; reentrada
      da mesma expressão é ciclo (CYCLE_ERROR) e mascara apenas aquele trecho
    - A profundidade recursiva também é limitada por `max_depth`
    - Resolver que levanta exceção equivale a None (RESOLUTION_ERROR, próximo resolver)
    - `${` sem fechamento é mantido literalmente (INVALID_EXPRESSION)

Política de saída para não resolvidos:
    - `mask_unresolved=True`  → `?{<corpo>}`
    - `mask_unresolved=False` → string vazia

Limites explícitos:
    - Não agrega fontes nem aplica filtros
    - Não converte tipos
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import cycle_error, invalid_expression, resolution_error, unresolved_expression
from ..exceptions import CycleError
from ..observability import EventLog
from ..spi.resolver import ExpressionResolver

COMPONENT = "resolver.evaluator"

DEFAULT_CHAIN = "*"


@dataclass(frozen=True)
class ResolutionResult:
    """Valor resolvido e expressões que não puderam ser resolvidas."""

    value: Optional[str]
    unresolved: Tuple[str, ...] = ()

    @property
    def is_resolved(self) -> bool:
        return not self.unresolved


@dataclass
class _ResolutionState:
    mask: bool
    stack: List[Tuple[str, str]] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)


def masked(expression: str) -> str:
    return "?{" + expression + "}"


def _find_body_end(text: str, start: int) -> Optional[int]:
    """Índice do `}` que fecha o corpo iniciado em `start`, ou None."""
    level = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\" and (text.startswith("${", i + 1) or text.startswith("}", i + 1)):
            i += 2
            continue
        if ch == "$" and text.startswith("{", i + 1):
            level += 1
            i += 2
            continue
        if ch == "}":
            if level == 0:
                return i
            level -= 1
        i += 1
    return None


class ExpressionEvaluator:
    """Avaliador thread-safe; o estado de cada resolução vive na própria chamada."""

    def __init__(
        self,
        resolvers: Iterable[ExpressionResolver] = (),
        *,
        mask_unresolved: bool = True,
        max_depth: int = 25,
        events: Optional[EventLog] = None,
    ):
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        self.mask_unresolved = mask_unresolved
        self.max_depth = max_depth
        self._events = events
        self._lock = threading.Lock()
        self._chain: Tuple[Tuple[int, ExpressionResolver], ...] = ()
        self._by_id: Dict[str, ExpressionResolver] = {}
        for resolver in resolvers:
            self.register(resolver)

    # -----------------------------
    # Registro
    # -----------------------------
    def register(self, resolver: ExpressionResolver, priority: Optional[int] = None) -> None:
        resolver_id = getattr(resolver, "resolver_id", None)
        if not isinstance(resolver_id, str) or not resolver_id.strip():
            raise ValueError("resolver.resolver_id must be a non-empty string")
        if ":" in resolver_id:
            raise ValueError(f"resolver_id não pode conter ':' ({resolver_id!r})")
        effective = priority if priority is not None else int(getattr(resolver, "priority", 0) or 0)
        with self._lock:
            if resolver_id in self._by_id:
                raise ValueError(f"Resolver duplicado: {resolver_id}")
            by_id = dict(self._by_id)
            by_id[resolver_id] = resolver
            chain = sorted(
                self._chain + ((effective, resolver),),
                key=lambda item: (-item[0], item[1].resolver_id),
            )
            self._by_id = by_id
            self._chain = tuple(chain)

    @property
    def resolvers(self) -> List[ExpressionResolver]:
        return [resolver for _, resolver in self._chain]

    def get_resolver(self, resolver_id: str) -> Optional[ExpressionResolver]:
        return self._by_id.get(resolver_id)

    # -----------------------------
    # API pública
    # -----------------------------
    def resolve(self, value: Optional[str], mask_unresolved: Optional[bool] = None) -> Optional[str]:
        return self.evaluate(value, mask_unresolved=mask_unresolved).value

    def evaluate(
        self,
        value: Optional[str],
        *,
        key: Optional[str] = None,
        mask_unresolved: Optional[bool] = None,
    ) -> ResolutionResult:
        """
        Resolve todas as expressões de `value`.

        Args:
            value: texto a resolver (None é devolvido como está).
            key: chave de origem do valor; entra na pilha de resolução para
                que autorreferências (`a -> ${a}`) sejam detectadas de imediato.
            mask_unresolved: sobrescreve a política default do avaliador.

        Returns:
            ResolutionResult: valor final e expressões não resolvidas.
        """
        if value is None:
            return ResolutionResult(value=None)
        if "${" not in value:
            return ResolutionResult(value=value)

        mask = self.mask_unresolved if mask_unresolved is None else mask_unresolved
        state = _ResolutionState(mask=mask)
        if key:
            state.stack.append(("conf", key))
            state.stack.append((DEFAULT_CHAIN, key))

        resolved = self._expand(value, state, depth=0, in_body=False)
        return ResolutionResult(value=resolved, unresolved=tuple(state.unresolved))

    # -----------------------------
    # Varredura
    # -----------------------------
    def _expand(self, text: str, state: _ResolutionState, *, depth: int, in_body: bool) -> str:
        out: List[str] = []
        i = 0
        n = len(text)
        while i < n:
            ch = text[i]
            if ch == "\\" and text.startswith("${", i + 1):
                end = _find_body_end(text, i + 3)
                if end is None:
                    out.append(text[i + 1:])
                    break
                out.append(text[i + 1:end + 1])
                i = end + 1
                continue
            if in_body and ch == "\\" and text.startswith("}", i + 1):
                out.append("}")
                i += 2
                continue
            if ch == "$" and text.startswith("{", i + 1):
                end = _find_body_end(text, i + 2)
                if end is None:
                    self._log_invalid(text, "expressão sem '}' de fechamento")
                    out.append(text[i:])
                    break
                out.append(self._resolve_span(text[i + 2:end], state, depth=depth))
                i = end + 1
                continue
            out.append(ch)
            i += 1
        return "".join(out)

    def _split(self, expression: str) -> Tuple[str, str, List[ExpressionResolver]]:
        prefix, sep, rest = expression.partition(":")
        if sep:
            resolver = self._by_id.get(prefix)
            if resolver is not None:
                return prefix, rest, [resolver]
        return DEFAULT_CHAIN, expression, self.resolvers

    def _enter(self, identity: Tuple[str, str], state: _ResolutionState, depth: int) -> None:
        if identity in state.stack or depth >= self.max_depth:
            raise CycleError(
                message="Referência circular detectada",
                details={
                    "expression": identity[1],
                    "stack": [f"{rid}:{expr}" for rid, expr in state.stack],
                    "depth": depth,
                },
            )

    def _resolve_span(self, raw_body: str, state: _ResolutionState, *, depth: int) -> str:
        expression = self._expand(raw_body, state, depth=depth, in_body=True)
        resolver_id, body, candidates = self._split(expression)
        identity = (resolver_id, body)

        try:
            self._enter(identity, state, depth)
        except CycleError as exc:
            self._log_cycle(expression, exc)
            return self._unresolved(expression, state, log=False)

        for resolver in candidates:
            try:
                result = resolver.evaluate(body)
            except Exception as exc:  # noqa: BLE001
                if self._events is not None:
                    self._events.record_error(
                        component=COMPONENT,
                        error=resolution_error(
                            resolver_id=resolver.resolver_id,
                            expression=expression,
                            exc_type=exc.__class__.__name__,
                            exc_message=str(exc),
                        ),
                    )
                continue
            if result is None:
                continue

            state.stack.append(identity)
            try:
                return self._expand(result, state, depth=depth + 1, in_body=False)
            finally:
                state.stack.pop()

        return self._unresolved(expression, state, log=True)

    def _unresolved(self, expression: str, state: _ResolutionState, *, log: bool) -> str:
        state.unresolved.append(expression)
        if log and self._events is not None:
            self._events.record_error(
                component=COMPONENT,
                error=unresolved_expression(expression=expression, masked=state.mask),
                level="INFO",
            )
        return masked(expression) if state.mask else ""

    def _log_cycle(self, expression: str, exc: CycleError) -> None:
        if self._events is None:
            return
        self._events.record_error(
            component=COMPONENT,
            error=cycle_error(expression=expression, stack=exc.details.get("stack", [])),
            depth=exc.details.get("depth"),
        )

    def _log_invalid(self, value: str, reason: str) -> None:
        if self._events is None:
            return
        self._events.record_error(
            component=COMPONENT,
            error=invalid_expression(value=value, reason=reason),
        )
