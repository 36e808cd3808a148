# src/atlas_config/core/context.py
"""
ConfigurationContext: fachada do pipeline de resolução do Atlas Config.

Este módulo combina agregação, filtros e resolução de expressões em uma
única API de leitura, com snapshot em cache, recarga explícita ou
disparada por fontes observáveis e notificação de mudanças.

Fluxo (v1):
    providers → fontes → agregação (ordinal) → filtros → expressões → snapshot

Estados:
    UNINITIALIZED → LOADED → (reload) → LOADED

Princípios fundamentais:
    - Leituras não tomam lock: o estado carregado e o snapshot são
      publicados por troca atômica de referência
    - Um leitor vê sempre um snapshot inteiro, antigo ou novo, nunca parcial
    - Recarga e escrita seguem disciplina de escritor único (RLock)
    - Ausente (`None`) é sempre distinguível de presente porém nulo

Decisões arquiteturais:
    - O snapshot é construído sob demanda e fica válido até `reload()`/`refresh()`
    - O resolver `conf` enxerga exatamente o estado usado pela leitura em curso
      e, no snapshot, a visão já filtrada em modo bulk (máscaras valem em `${...}`)
    - Falhas de listeners são registradas (LISTENER_ERROR) e não interrompem os demais
    - Apenas ConfigurationError é propagada ao chamador

Limites explícitos:
    - Não persiste configuração
    - Não descobre fontes implicitamente (tudo é registrado explicitamente)
"""

from __future__ import annotations

import threading
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .aggregation.loading import LoadedSource, load_sources
from .aggregation.merge import lookup_property, merge_properties
from .binding import ConversionError, convert_value
from .errors import configuration_error, listener_error
from .events import ConfigurationChange
from .exceptions import ConfigurationError
from .filters.builtin import MetadataFilter
from .filters.chain import FilterChain
from .functions import section as _section
from .observability import EventLog
from .resolver.builtin import ConfigResolver
from .resolver.evaluator import ExpressionEvaluator, ResolutionResult
from .settings.hashing import compute_config_hash
from .settings.loader import ContextSettings
from .spi.filter import PropertyFilter
from .spi.resolver import ExpressionResolver
from .spi.source import PropertySource, PropertySourceProvider
from .spi.types import PropertyValue

COMPONENT = "context"

ChangeListener = Callable[[ConfigurationChange], None]


class ContextState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"


@dataclass(frozen=True)
class ConfigurationSnapshot:
    """
    Visão agregada, filtrada e resolvida em um ponto no tempo.

    Campos:
        - properties: chave → valor resolvido (somente leitura)
        - values: chave → PropertyValue resolvido, com proveniência
        - generation: geração do estado carregado que originou o snapshot
        - unresolved: chave → expressões não resolvidas naquele valor
        - created_at: instante de construção (UTC, ISO-8601)
        - config_hash: SHA-256 canônico de `properties`
    """

    properties: Mapping[str, Optional[str]]
    values: Mapping[str, PropertyValue]
    generation: int
    unresolved: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    config_hash: str = ""

    def __post_init__(self) -> None:
        props = dict(self.properties)
        object.__setattr__(self, "properties", MappingProxyType(props))
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))
        object.__setattr__(self, "unresolved", MappingProxyType(dict(self.unresolved)))
        if not self.config_hash:
            object.__setattr__(self, "config_hash", compute_config_hash(props))

    def __len__(self) -> int:
        return len(self.properties)

    def __contains__(self, key: object) -> bool:
        return key in self.properties

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.properties.get(key, default)

    def section(self, prefix: str, *, strip_prefix: bool = False) -> Dict[str, Optional[str]]:
        return _section(self.properties, prefix, strip_prefix=strip_prefix)


@dataclass(frozen=True)
class _LoadedState:
    loaded: Tuple[LoadedSource, ...]
    generation: int


@dataclass(frozen=True)
class _ActiveRead:
    """Estado da leitura em curso; `bulk` é a visão filtrada do snapshot em construção."""

    state: _LoadedState
    bulk: Optional[Mapping[str, PropertyValue]] = None


class ConfigurationContext:
    """
    Contexto de configuração com sources/providers/filters/resolvers explícitos.

    O carregamento acontece na construção; uma falha terminal
    (ConfigurationError) é propagada ao chamador.
    """

    def __init__(
        self,
        sources: Sequence[PropertySource] = (),
        providers: Sequence[PropertySourceProvider] = (),
        filters: Iterable[PropertyFilter] = (),
        resolvers: Iterable[ExpressionResolver] = (),
        *,
        settings: Optional[ContextSettings] = None,
        events: Optional[EventLog] = None,
    ):
        self.settings: ContextSettings = settings or ContextSettings()
        self.events: EventLog = events or EventLog(max_events=self.settings.max_events)

        self._sources: Tuple[PropertySource, ...] = tuple(sources)
        self._providers: Tuple[PropertySourceProvider, ...] = tuple(providers)

        self._filters = FilterChain(
            filters,
            max_loops=self.settings.max_filter_loops,
            events=self.events,
        )
        if self.settings.hide_metadata:
            self._filters.register(MetadataFilter(prefix=self.settings.metadata_prefix))

        self._evaluator = ExpressionEvaluator(
            mask_unresolved=self.settings.mask_unresolved,
            max_depth=self.settings.max_resolution_depth,
            events=self.events,
        )
        resolvers = list(resolvers)
        if not any(getattr(r, "resolver_id", None) == ConfigResolver.resolver_id for r in resolvers):
            resolvers.insert(0, ConfigResolver(self._raw_lookup))
        for resolver in resolvers:
            self._evaluator.register(resolver)

        self._write_lock = threading.RLock()
        self._listeners_lock = threading.Lock()
        self._listeners: List[ChangeListener] = []
        self._subscribed: List[Any] = []
        self._updating = False
        self._active: ContextVar[Optional[_ActiveRead]] = ContextVar(
            f"atlas_config_active_{self.events.context_id}", default=None
        )

        self._state: _LoadedState = _LoadedState(loaded=(), generation=0)
        self._cache: Optional[Tuple[_LoadedState, ConfigurationSnapshot]] = None
        self.state = ContextState.UNINITIALIZED

        with self._write_lock:
            self._swap_in(self._load())
        self.state = ContextState.LOADED
        self.events.log(
            component=COMPONENT,
            level="INFO",
            message="contexto carregado",
            generation=self._state.generation,
            sources=[ls.name for ls in self._state.loaded],
            settings_hash=self.settings.settings_hash,
        )

    # -----------------------------
    # Introspecção
    # -----------------------------
    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def loaded_sources(self) -> List[LoadedSource]:
        return list(self._state.loaded)

    @property
    def sources(self) -> List[PropertySource]:
        return [ls.source for ls in self._state.loaded]

    @property
    def filters(self) -> FilterChain:
        return self._filters

    @property
    def evaluator(self) -> ExpressionEvaluator:
        return self._evaluator

    # -----------------------------
    # Carregamento (escritor único)
    # -----------------------------
    def _load(self) -> _LoadedState:
        loaded = load_sources(
            self._sources,
            self._providers,
            timeout_seconds=self.settings.provider_timeout_seconds,
            events=self.events,
        )
        return _LoadedState(loaded=tuple(loaded), generation=self._state.generation + 1)

    def _swap_in(self, new_state: _LoadedState) -> None:
        self._state = new_state
        self._cache = None
        self._resubscribe(new_state)

    def _resubscribe(self, new_state: _LoadedState) -> None:
        current = [ls.source for ls in new_state.loaded if callable(getattr(ls.source, "subscribe", None))]
        for source in self._subscribed:
            if not any(source is s for s in current):
                source.unsubscribe(self._on_source_changed)
        for source in current:
            source.subscribe(self._on_source_changed)
        self._subscribed = current

    def _on_source_changed(self, source: object) -> None:
        with self._write_lock:
            if self._updating:
                return
        self.events.log(
            component=COMPONENT,
            level="INFO",
            message="fonte sinalizou mudança",
            source=getattr(source, "name", type(source).__name__),
        )
        self.reload()

    def reload(self) -> ConfigurationChange:
        """
        Recarrega todas as fontes e publica um novo snapshot.

        Returns:
            ConfigurationChange: delta entre o snapshot anterior e o novo.

        Raises:
            ConfigurationError: Se todas as fontes falharem (estado anterior é mantido).
        """
        with self._write_lock:
            change = self._reload_locked()
        self._notify(change)
        return change

    def _reload_locked(self) -> ConfigurationChange:
        old_snapshot = self.snapshot()
        new_state = self._load()
        self._swap_in(new_state)
        new_snapshot = self._build_snapshot(new_state)
        self._cache = (new_state, new_snapshot)
        change = ConfigurationChange.between(old_snapshot, new_snapshot)
        self.events.log(
            component=COMPONENT,
            level="INFO",
            message="contexto recarregado",
            generation=new_state.generation,
            added=change.added,
            removed=change.removed,
            updated=change.updated,
        )
        return change

    def apply_update(self, mutate: Callable[[], None]) -> ConfigurationChange:
        """
        Executa `mutate` e recarrega sob o lock de escritor único.

        Notificações de fontes disparadas pelo próprio `mutate` são absorvidas:
        o delta resultante é entregue uma única vez aos listeners.
        """
        with self._write_lock:
            self._updating = True
            try:
                mutate()
            finally:
                self._updating = False
            change = self._reload_locked()
        self._notify(change)
        return change

    def refresh(self) -> None:
        """Invalida o snapshot em cache sem recarregar as fontes."""
        with self._write_lock:
            self._state = replace(self._state)
            self._cache = None

    def close(self) -> None:
        with self._write_lock:
            for source in self._subscribed:
                source.unsubscribe(self._on_source_changed)
            self._subscribed = []
        with self._listeners_lock:
            self._listeners.clear()

    # -----------------------------
    # Listeners
    # -----------------------------
    def on_change(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> bool:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                return True
            return False

    def _notify(self, change: ConfigurationChange) -> None:
        if change.is_empty:
            return
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change)
            except Exception as exc:  # noqa: BLE001
                self.events.record_error(
                    component=COMPONENT,
                    error=listener_error(
                        listener=getattr(listener, "__qualname__", repr(listener)),
                        exc_type=exc.__class__.__name__,
                        exc_message=str(exc),
                    ),
                )

    # -----------------------------
    # Leitura por chave
    # -----------------------------
    def _lookup_filtered(self, state: _LoadedState, key: str) -> Optional[PropertyValue]:
        found = lookup_property(
            state.loaded,
            key,
            events=self.events,
            meta_prefix=self.settings.metadata_prefix,
            source_suffix=self.settings.source_suffix,
        )
        if found is None:
            return None
        return self._filters.apply_single(found)

    def _raw_lookup(self, key: str) -> Optional[str]:
        """
        Valor bruto (filtrado, não resolvido) consultado pelo resolver `conf`.

        Durante a construção do snapshot a visão bulk tem precedência: um
        valor mascarado em bulk continua mascarado quando referenciado por
        `${chave}`. Chaves fora da visão bulk (fontes não escaneáveis,
        metadados) caem no lookup em modo single.
        """
        active = self._active.get()
        if active is None:
            active = _ActiveRead(self._state)
        if active.bulk is not None and key in active.bulk:
            return active.bulk[key].value
        found = self._lookup_filtered(active.state, key)
        return None if found is None else found.value

    def _evaluate(
        self,
        state: _LoadedState,
        key: str,
        value: Optional[str],
        bulk: Optional[Mapping[str, PropertyValue]] = None,
    ) -> ResolutionResult:
        token = self._active.set(_ActiveRead(state, bulk))
        try:
            return self._evaluator.evaluate(value, key=key)
        finally:
            self._active.reset(token)

    def _resolve_key(self, key: str) -> Tuple[Optional[PropertyValue], Tuple[str, ...]]:
        state = self._state
        filtered = self._lookup_filtered(state, key)
        if filtered is None:
            return None, ()
        result = self._evaluate(state, key, filtered.value)
        if result.value == filtered.value:
            return filtered, result.unresolved
        return filtered.with_value(result.value), result.unresolved

    def get_value(self, key: str) -> Optional[PropertyValue]:
        """
        Valor resolvido de `key` com proveniência.

        Returns:
            Optional[PropertyValue]: None quando ausente (ou vetado por filtro);
            PropertyValue com `value=None` quando presente porém nulo.
        """
        return self._resolve_key(key)[0]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        found = self.get_value(key)
        if found is None:
            return default
        return found.value

    def contains(self, key: str) -> bool:
        return self.get_value(key) is not None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def require(self, key: str) -> str:
        """
        Valor obrigatório de `key`.

        Raises:
            ConfigurationError: Se a chave estiver ausente, nula ou com
                expressões não resolvidas.
        """
        found, unresolved = self._resolve_key(key)
        if found is None:
            self._raise_required(key, reason="ausente")
        if found.value is None:
            self._raise_required(key, reason="nula")
        if unresolved:
            self._raise_required(key, reason="não resolvida", expression=unresolved[0])
        return found.value

    def _raise_required(self, key: str, *, reason: str, expression: Optional[str] = None) -> None:
        details: Dict[str, Any] = {"key": key, "reason": reason}
        if expression is not None:
            details["expression"] = expression
        payload = configuration_error(
            message=f"Propriedade obrigatória {reason}: {key}",
            details=details,
        )
        self.events.record_error(component=COMPONENT, error=payload, level="ERROR")
        raise ConfigurationError(
            message=payload.message,
            details=payload.details,
            hint=payload.hint,
        )

    def get_as(self, key: str, target_type: Any, default: Any = None) -> Any:
        """
        Valor de `key` convertido para `target_type`.

        Ausente ou nulo devolve `default`. Falha de conversão é terminal.
        """
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return convert_value(raw, target_type)
        except ConversionError as exc:
            payload = configuration_error(
                message=f"Valor de '{key}' não pode ser convertido para {exc.target}",
                details={"key": key, "target_type": exc.target, "value": raw},
                hint="Corrija o valor na fonte de maior precedência ou o tipo esperado.",
            )
            self.events.record_error(component=COMPONENT, error=payload, level="ERROR")
            raise ConfigurationError(
                message=payload.message,
                details=payload.details,
                hint=payload.hint,
            ) from exc

    # -----------------------------
    # Snapshot
    # -----------------------------
    def _build_snapshot(self, state: _LoadedState) -> ConfigurationSnapshot:
        merged = merge_properties(
            state.loaded,
            meta_prefix=self.settings.metadata_prefix,
            source_suffix=self.settings.source_suffix,
        )
        filtered = self._filters.apply_bulk(merged)

        properties: Dict[str, Optional[str]] = {}
        values: Dict[str, PropertyValue] = {}
        unresolved: Dict[str, Tuple[str, ...]] = {}
        for key in sorted(filtered):
            pv = filtered[key]
            result = self._evaluate(state, key, pv.value, filtered)
            properties[key] = result.value
            values[key] = pv if result.value == pv.value else pv.with_value(result.value)
            if result.unresolved:
                unresolved[key] = result.unresolved

        return ConfigurationSnapshot(
            properties=properties,
            values=values,
            generation=state.generation,
            unresolved=unresolved,
        )

    def snapshot(self) -> ConfigurationSnapshot:
        state = self._state
        cache = self._cache
        if cache is not None and cache[0] is state:
            return cache[1]
        snap = self._build_snapshot(state)
        # publica apenas se o estado ainda é o mesmo; caso contrário o próximo leitor reconstrói
        if self._state is state:
            self._cache = (state, snap)
        return snap

    def get_properties(self) -> Mapping[str, Optional[str]]:
        return self.snapshot().properties

    def __repr__(self) -> str:
        return (
            f"ConfigurationContext(state={self.state.value!r}, generation={self.generation}, "
            f"sources={[ls.name for ls in self._state.loaded]!r})"
        )


__all__ = [
    "ChangeListener",
    "ConfigurationContext",
    "ConfigurationSnapshot",
    "ContextState",
]
