# src/atlas_config/core/accessor.py
"""
Acessor de processo para o contexto corrente.

Um único ConfigurationContext é registrado no startup e substituído por
inteiro em reconfigurações. Não há overrides por thread: todos os
consumidores enxergam a mesma referência.
"""

from __future__ import annotations

import threading
from typing import Optional

from .context import ConfigurationContext
from .errors import configuration_error
from .exceptions import ConfigurationError

_lock = threading.Lock()
_current: Optional[ConfigurationContext] = None


def set_current(context: ConfigurationContext) -> Optional[ConfigurationContext]:
    """Registra `context` como corrente e devolve o anterior (se houver)."""
    global _current
    if not isinstance(context, ConfigurationContext):
        raise TypeError("context must be a ConfigurationContext")
    with _lock:
        previous, _current = _current, context
    return previous


def current() -> ConfigurationContext:
    with _lock:
        context = _current
    if context is None:
        payload = configuration_error(
            message="Nenhum ConfigurationContext registrado",
            hint="Chame set_current(context) durante o startup da aplicação.",
        )
        raise ConfigurationError(message=payload.message, details=payload.details, hint=payload.hint)
    return context


def clear_current() -> Optional[ConfigurationContext]:
    global _current
    with _lock:
        previous, _current = _current, None
    return previous
