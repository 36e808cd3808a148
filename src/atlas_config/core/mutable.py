# src/atlas_config/core/mutable.py
"""
Caminho de escrita (write-back) do Atlas Config.

Mudanças são preparadas em um `ConfigChangeRequest` e aplicadas pela
`MutableConfiguration` sobre uma única fonte gravável designada; em
seguida o contexto é recarregado sob o lock de escritor único e o delta
resultante é devolvido (e entregue aos listeners).

Invariantes:
    - O estado agregado nunca é mutado diretamente, apenas a fonte designada
    - Uma requisição é aplicada no máximo uma vez
    - Fonte ausente, não gravável ou chave negada → ConfigurationError

Limites explícitos:
    - Não persiste a fonte (responsabilidade da implementação da fonte)
    - Não coordena transações entre várias fontes
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .context import ConfigurationContext
from .errors import configuration_error
from .events import ConfigurationChange
from .exceptions import ConfigurationError

COMPONENT = "mutable"


@dataclass
class ConfigChangeRequest:
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    puts: Dict[str, Optional[str]] = field(default_factory=dict)
    removes: Set[str] = field(default_factory=set)
    applied: bool = False

    def put(self, key: str, value: Optional[str]) -> "ConfigChangeRequest":
        if value is not None and not isinstance(value, str):
            raise TypeError(f"valor de '{key}' deve ser str ou None")
        self.removes.discard(key)
        self.puts[key] = value
        return self

    def put_all(self, values: Dict[str, Optional[str]]) -> "ConfigChangeRequest":
        for key, value in values.items():
            self.put(key, value)
        return self

    def remove(self, *keys: str) -> "ConfigChangeRequest":
        for key in keys:
            self.puts.pop(key, None)
            self.removes.add(key)
        return self

    @property
    def keys(self) -> List[str]:
        return sorted(set(self.puts) | self.removes)

    @property
    def is_empty(self) -> bool:
        return not self.puts and not self.removes


class MutableConfiguration:
    """Aplica `ConfigChangeRequest`s na fonte gravável `target` de um contexto."""

    def __init__(self, context: ConfigurationContext, *, target: str):
        self.context = context
        self.target = target

    def _fail(self, message: str, **details) -> ConfigurationError:
        payload = configuration_error(
            message=message,
            details={"target": self.target, **details},
            hint="Registre no contexto uma fonte gravável (MutableMapPropertySource) com o nome informado.",
        )
        self.context.events.record_error(component=COMPONENT, error=payload, level="ERROR")
        return ConfigurationError(message=payload.message, details=payload.details, hint=payload.hint)

    def _target_source(self):
        for source in self.context.sources:
            if getattr(source, "name", None) == self.target:
                if not callable(getattr(source, "apply_changes", None)):
                    raise self._fail(f"Fonte não gravável: {self.target}")
                return source
        raise self._fail(f"Fonte gravável não encontrada: {self.target}")

    def is_writable(self, key: str) -> bool:
        try:
            source = self._target_source()
        except ConfigurationError:
            return False
        return bool(source.is_writable(key))

    def start_transaction(self) -> ConfigChangeRequest:
        return ConfigChangeRequest()

    def apply(self, request: ConfigChangeRequest) -> ConfigurationChange:
        """
        Aplica a requisição e recarrega o contexto.

        Raises:
            ConfigurationError: fonte ausente/não gravável, chave negada ou
                requisição já aplicada.
        """
        if request.applied:
            raise self._fail("Requisição de mudança já aplicada", request_id=request.request_id)

        source = self._target_source()
        denied = [key for key in request.keys if not source.is_writable(key)]
        if denied:
            raise self._fail("Chaves não graváveis na fonte de destino", keys=denied, key=denied[0])

        def mutate() -> None:
            source.apply_changes(dict(request.puts), set(request.removes))

        change = self.context.apply_update(mutate)
        request.applied = True
        self.context.events.log(
            component=COMPONENT,
            level="INFO",
            message="requisição de mudança aplicada",
            request_id=request.request_id,
            target=self.target,
            keys=request.keys,
        )
        return change

    def put(self, key: str, value: Optional[str]) -> ConfigurationChange:
        return self.apply(ConfigChangeRequest().put(key, value))

    def remove(self, *keys: str) -> ConfigurationChange:
        return self.apply(ConfigChangeRequest().remove(*keys))
