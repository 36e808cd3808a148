# src/atlas_config/core/observability.py
"""
Registro estruturado de eventos do motor de configuração.

Este módulo define o `EventLog`, a estrutura canônica utilizada para
registrar, de forma estruturada e rastreável, todas as recuperações locais
realizadas pelo Atlas Config (fonte ignorada, filtro com falha, expressão
não resolvida, ciclo detectado, listener com falha).

Princípios fundamentais:
    - Logs são eventos estruturados, não texto livre
    - Nenhuma recuperação local acontece sem evento correspondente
    - Isolamento por contexto (cada ConfigurationContext possui seu EventLog)

Invariantes:
    - Eventos sempre incluem `context_id`, `component`, `level` e `timestamp`
    - Warnings são agrupados por componente
    - O log é limitado (`max_events`): os eventos mais antigos são descartados
    - Escrita segura sob acesso concorrente de múltiplas threads

Limites explícitos:
    - Não persiste eventos automaticamente
    - Não decide políticas de recuperação
    - Não formata saída para terminal

Este módulo existe para garantir observabilidade clara,
estruturada e rastreável da resolução de configuração.
"""

from __future__ import annotations

import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from .errors import AtlasErrorPayload


@dataclass
class EventLog:
    """
    Log estruturado e thread-safe de um ConfigurationContext.

    Decisões arquiteturais:
        - Eventos são dicionários simples, prontos para serialização
        - Erros recuperados carregam `error` como AtlasErrorPayload serializado
        - A coleção é limitada por `max_events` (deque)

    Limites explícitos:
        - Não substitui exceções terminais (ConfigurationError)
        - Não executa callbacks
    """

    context_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    max_events: int = 1000

    _events: Deque[Dict[str, Any]] = field(default_factory=deque, init=False, repr=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self._events = deque(maxlen=self.max_events)

    @property
    def events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._events)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, component: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "context_id": self.context_id,
            "component": component,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self._events.append(event)

    def add_warning(self, *, component: str, message: str) -> None:
        with self._lock:
            if component not in self.warnings:
                self.warnings[component] = []
            self.warnings[component].append(message)

    def record_error(
        self,
        *,
        component: str,
        error: AtlasErrorPayload,
        level: str = "WARNING",
        **extra: Any,
    ) -> None:
        """Registra uma recuperação local: evento com payload + warning do componente."""
        self.log(
            component=component,
            level=level,
            message=error.message,
            error=error.to_dict(),
            **extra,
        )
        self.add_warning(component=component, message=f"{error.type}: {error.message}")

    # -----------------------------
    # Consulta
    # -----------------------------
    def errors(self, error_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Eventos com payload de erro, opcionalmente filtrados pelo código estável."""
        out: List[Dict[str, Any]] = []
        for event in self.events:
            err = event.get("error")
            if not isinstance(err, dict):
                continue
            if error_type is None or err.get("type") == error_type:
                out.append(event)
        return out

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self.warnings.clear()
