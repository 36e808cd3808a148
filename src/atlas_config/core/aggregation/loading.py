# src/atlas_config/core/aggregation/loading.py
"""
Carregamento limitado por prazo de fontes e providers.

Este módulo é a fronteira de I/O do motor: é aqui que providers expandem
suas coleções de fontes e que fontes escaneáveis são enumeradas. Cada
unidade de trabalho roda em uma thread daemon própria e o chamador espera
apenas até um prazo compartilhado (`timeout_seconds`), de modo que uma
fonte lenta ou travada nunca bloqueia a agregação nem o encerramento do
processo.

Política de falha (v1):
    - provider/fonte que levanta exceção → SOURCE_LOAD_ERROR, ignorada
    - provider/fonte que excede o prazo  → SOURCE_TIMEOUT, ignorada
    - todas as fontes configuradas falharam → ConfigurationError (terminal)
    - nomes de fonte duplicados → DuplicateSourceNameError (terminal)

Invariantes:
    - O resultado preserva a ordem de declaração (fontes explícitas primeiro,
      depois as fontes de cada provider, na ordem dos providers)
    - Dados enumerados são copiados para mapas somente leitura: o merge
      posterior é uma função pura desses dados
    - No máximo uma carga em andamento por fonte/provider: uma nova carga
      aguarda a anterior em vez de iniciar outra thread

Limites explícitos:
    - Não ordena por ordinal nem mescla (ver `merge`)
    - Não interrompe threads travadas: apenas deixa de esperá-las
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import configuration_error, source_load_error, source_timeout
from ..exceptions import ConfigurationError, DuplicateSourceNameError, SourceLoadError
from ..observability import EventLog
from ..spi.source import PropertySource, PropertySourceProvider

COMPONENT = "aggregation.loading"


@dataclass(frozen=True)
class LoadedSource:
    """
    Fonte carregada com ordinal resolvido e dados congelados.

    Campos:
        - source: a fonte original (usada para `get(key)`)
        - name: nome único da fonte
        - ordinal: ordinal efetivo no momento do carregamento
        - scannable: se participa do snapshot bulk
        - properties: enumeração congelada (vazia se não escaneável)
    """

    source: PropertySource = field(compare=False, repr=False)
    name: str
    ordinal: int
    scannable: bool
    properties: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


def source_name(source: object) -> str:
    name = getattr(source, "name", None)
    if isinstance(name, str) and name:
        return name
    return f"{type(source).__name__}@{id(source):x}"


def _load_one(source: PropertySource) -> LoadedSource:
    name = source_name(source)
    scannable = bool(getattr(source, "scannable", True))

    # enumeração antes do ordinal: fontes que leem sob demanda resolvem o
    # `_ordinal` a partir da mesma leitura
    properties: Dict[str, Optional[str]] = {}
    if scannable:
        raw = source.get_properties() or {}
        for key, value in raw.items():
            if not isinstance(key, str) or not key:
                raise SourceLoadError(
                    message="Chave inválida retornada pela fonte",
                    details={"source": name, "key": repr(key)},
                )
            if value is not None and not isinstance(value, str):
                raise SourceLoadError(
                    message="Valor não textual retornado pela fonte",
                    details={"source": name, "key": key, "type": type(value).__name__},
                )
            properties[key] = value

    return LoadedSource(
        source=source,
        name=name,
        ordinal=int(source.ordinal),
        scannable=scannable,
        properties=properties,
    )


# -----------------------------
# Execução em threads daemon
# -----------------------------
class _Pending(Exception):
    """A tarefa não terminou dentro do prazo."""


class _LoadTask:
    """Executa `fn()` em uma thread daemon; o resultado é consultado com prazo."""

    def __init__(self, target: object, name: str, fn: Callable[[], Any]):
        self.target = target
        self.name = name
        self._fn = fn
        self._done = threading.Event()
        self._result: Any = None
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(
            target=self._run,
            name=f"atlas-config-loader:{name}",
            daemon=True,
        )

    def start(self) -> "_LoadTask":
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            self._result = self._fn()
        except Exception as exc:  # noqa: BLE001
            self._error = exc
        finally:
            self._done.set()
            _release(self)

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def result(self, timeout: float) -> Any:
        if not self._done.wait(timeout):
            raise _Pending(self.name)
        if self._error is not None:
            raise self._error
        return self._result


_in_flight: Dict[int, _LoadTask] = {}
_in_flight_lock = threading.Lock()


def _release(task: _LoadTask) -> None:
    with _in_flight_lock:
        if _in_flight.get(id(task.target)) is task:
            del _in_flight[id(task.target)]


def _submit(target: object, name: str, fn: Callable[[], Any], events: EventLog) -> _LoadTask:
    """Inicia a carga de `target`, ou reaproveita a carga ainda em andamento."""
    with _in_flight_lock:
        running = _in_flight.get(id(target))
        if running is not None and running.target is target and not running.done:
            reused = running
        else:
            reused = None
            task = _LoadTask(target, name, fn)
            _in_flight[id(target)] = task
    if reused is not None:
        events.log(
            component=COMPONENT,
            level="DEBUG",
            message="carga anterior ainda em andamento; aguardando a mesma execução",
            source=name,
        )
        return reused
    return task.start()


def in_flight_count() -> int:
    """Cargas ainda em execução (inclui threads de cargas já abandonadas por prazo)."""
    with _in_flight_lock:
        return len(_in_flight)


def _collect(
    tasks: Sequence[_LoadTask],
    *,
    deadline: float,
    timeout_seconds: float,
    events: EventLog,
) -> Tuple[List[Any], int]:
    """Aguarda tarefas em ordem de submissão até o prazo compartilhado."""
    results: List[Any] = []
    failures = 0
    for task in tasks:
        remaining = max(0.0, deadline - time.monotonic())
        try:
            results.append(task.result(timeout=remaining))
        except _Pending:
            failures += 1
            events.record_error(
                component=COMPONENT,
                error=source_timeout(source=task.name, timeout_seconds=timeout_seconds),
            )
        except Exception as exc:  # noqa: BLE001
            failures += 1
            events.record_error(
                component=COMPONENT,
                error=source_load_error(
                    source=task.name,
                    exc_type=exc.__class__.__name__,
                    exc_message=str(exc),
                ),
            )
    return results, failures


def load_sources(
    sources: Sequence[PropertySource],
    providers: Sequence[PropertySourceProvider] = (),
    *,
    timeout_seconds: float,
    events: EventLog,
) -> List[LoadedSource]:
    """
    Expande providers e carrega todas as fontes dentro do prazo.

    Args:
        sources: fontes explícitas, na ordem de declaração.
        providers: providers de fontes, na ordem de declaração.
        timeout_seconds: prazo compartilhado para cada fase (providers, fontes).
        events: EventLog do contexto.

    Returns:
        List[LoadedSource]: fontes carregadas com sucesso, em ordem de declaração.

    Raises:
        DuplicateSourceNameError: Se duas fontes tiverem o mesmo nome.
        ConfigurationError: Se todas as fontes configuradas falharem.
    """
    all_sources: List[PropertySource] = list(sources)
    failures = 0
    attempted = len(all_sources)

    if providers:
        deadline = time.monotonic() + timeout_seconds
        provider_tasks = [
            _submit(p, type(p).__name__, p.get_property_sources, events) for p in providers
        ]
        expanded, provider_failures = _collect(
            provider_tasks,
            deadline=deadline,
            timeout_seconds=timeout_seconds,
            events=events,
        )
        failures += provider_failures
        attempted += provider_failures
        for collection in expanded:
            collected = list(collection or [])
            attempted += len(collected)
            all_sources.extend(collected)

    seen: Dict[str, int] = {}
    for index, source in enumerate(all_sources):
        name = source_name(source)
        if name in seen:
            raise DuplicateSourceNameError(
                message=f"Nome de fonte duplicado: {name}",
                details={"source": name, "positions": [seen[name], index]},
                hint="Cada PropertySource deve ter um nome único dentro do contexto.",
            )
        seen[name] = index

    deadline = time.monotonic() + timeout_seconds
    source_tasks = [
        _submit(s, source_name(s), lambda s=s: _load_one(s), events) for s in all_sources
    ]
    results, source_failures = _collect(
        source_tasks,
        deadline=deadline,
        timeout_seconds=timeout_seconds,
        events=events,
    )
    failures += source_failures
    loaded = [ls for ls in results if isinstance(ls, LoadedSource)]

    if attempted > 0 and failures >= attempted and not loaded:
        payload = configuration_error(
            message="Todas as fontes de configuração falharam ao carregar",
            details={"attempted": attempted, "failures": failures},
            hint="Verifique o EventLog do contexto (SOURCE_LOAD_ERROR / SOURCE_TIMEOUT).",
        )
        events.record_error(component=COMPONENT, error=payload, level="ERROR")
        raise ConfigurationError(
            message=payload.message,
            details=payload.details,
            hint=payload.hint,
        )

    events.log(
        component=COMPONENT,
        level="DEBUG",
        message="fontes carregadas",
        loaded=[ls.name for ls in loaded],
        failures=failures,
    )
    return loaded
