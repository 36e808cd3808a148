# tests/core/aggregation/test_loading.py
"""
Testes do carregamento de fontes com prazo compartilhado.

Os testes asseguram que:
- providers são expandidos e suas fontes carregadas
- fonte com falha é ignorada e registrada (SOURCE_LOAD_ERROR)
- fonte lenta é ignorada após o prazo (SOURCE_TIMEOUT), sem bloquear o resto
- fonte travada ocupa uma única thread daemon entre recargas
- falha de todas as fontes é terminal (ConfigurationError)
- nomes duplicados são terminais (DuplicateSourceNameError)
"""

import threading

import pytest

try:
    from atlas_config.core.aggregation.loading import load_sources
    from atlas_config.core.exceptions import ConfigurationError, DuplicateSourceNameError
    from atlas_config.core.sources.base import BasePropertySource, MapPropertySource
except Exception as e:  # noqa: BLE001
    load_sources = None
    ConfigurationError = None
    DuplicateSourceNameError = None
    BasePropertySource = object
    MapPropertySource = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar o carregamento de fontes. Erro original: {_IMPORT_ERR!r}")


class _BrokenSource(BasePropertySource):
    def get_properties(self):
        raise IOError("disk on fire")


class _SlowSource(BasePropertySource):
    def __init__(self, name, release):
        super().__init__(name, ordinal=1)
        self._release = release

    def get_properties(self):
        self._release.wait(5)
        return {"slow": "1"}


class _Provider:
    def __init__(self, sources):
        self._sources = sources

    def get_property_sources(self):
        return list(self._sources)


def test_provider_sources_are_loaded(events):
    _require_imports()
    provider = _Provider([MapPropertySource("p1", {"a": "1"}), MapPropertySource("p2", {"b": "2"})])

    loaded = load_sources([MapPropertySource("s", {"c": "3"})], [provider], timeout_seconds=2, events=events)

    assert sorted(ls.name for ls in loaded) == ["p1", "p2", "s"]


def test_failing_source_is_skipped_and_logged(events):
    _require_imports()
    loaded = load_sources(
        [MapPropertySource("ok", {"a": "1"}), _BrokenSource("broken", ordinal=5)],
        timeout_seconds=2,
        events=events,
    )

    assert [ls.name for ls in loaded] == ["ok"]
    errors = events.errors("SOURCE_LOAD_ERROR")
    assert errors and errors[0]["error"]["details"]["source"] == "broken"


def test_slow_source_times_out_without_blocking(events):
    """
    Uma fonte lenta perde apenas a própria contribuição.

    Invariantes:
        - O prazo é compartilhado: o carregamento retorna perto de `timeout_seconds`
        - A fonte rápida é entregue; a lenta gera SOURCE_TIMEOUT
    """
    _require_imports()
    release = threading.Event()
    try:
        loaded = load_sources(
            [MapPropertySource("fast", {"a": "1"}), _SlowSource("slow", release)],
            timeout_seconds=0.2,
            events=events,
        )
    finally:
        release.set()

    assert [ls.name for ls in loaded] == ["fast"]
    assert events.errors("SOURCE_TIMEOUT")


def test_non_string_values_fail_the_source(events):
    """Valor não textual (ex.: int) invalida a fonte inteira, não apenas a chave."""
    _require_imports()
    loaded = load_sources(
        [MapPropertySource("ok", {"a": "1"}), MapPropertySource("bad", {"n": 1})],
        timeout_seconds=2,
        events=events,
    )

    assert [ls.name for ls in loaded] == ["ok"]


def test_all_sources_failing_is_terminal(events):
    _require_imports()
    with pytest.raises(ConfigurationError):
        load_sources([_BrokenSource("b1"), _BrokenSource("b2")], timeout_seconds=2, events=events)


def test_duplicate_names_are_terminal(events):
    _require_imports()
    with pytest.raises(DuplicateSourceNameError) as info:
        load_sources(
            [MapPropertySource("same", {}), MapPropertySource("same", {"x": "1"})],
            timeout_seconds=2,
            events=events,
        )
    assert info.value.details["source"] == "same"


def test_no_sources_is_an_empty_configuration(events):
    _require_imports()
    assert load_sources([], timeout_seconds=1, events=events) == []


class _HangingSource(BasePropertySource):
    """Fonte que conta chamadas a `get_properties()` e bloqueia até `release`."""

    def __init__(self, name, release):
        super().__init__(name, ordinal=1)
        self._release = release
        self._calls_lock = threading.Lock()
        self.calls = 0

    def get_properties(self):
        with self._calls_lock:
            self.calls += 1
        self._release.wait(5)
        return {"late": "1"}


def test_hanging_source_is_not_resubmitted_and_runs_on_daemon_thread(events):
    """
    Uma fonte travada ocupa no máximo uma thread, e essa thread é daemon.

    Invariantes:
        - Recargas sucessivas aguardam a mesma execução em vez de iniciar outra
        - A thread travada não segura o encerramento do processo (daemon)
        - As demais fontes continuam sendo carregadas a cada recarga
    """
    _require_imports()
    release = threading.Event()
    hanging = _HangingSource("hanging", release)
    try:
        for _ in range(3):
            loaded = load_sources(
                [MapPropertySource("fast", {"a": "1"}), hanging],
                timeout_seconds=0.1,
                events=events,
            )
            assert [ls.name for ls in loaded] == ["fast"]

        workers = [t for t in threading.enumerate() if t.name == "atlas-config-loader:hanging"]
        assert len(workers) == 1
        assert workers[0].daemon is True
        assert hanging.calls == 1
        assert len(events.errors("SOURCE_TIMEOUT")) == 3
    finally:
        release.set()


def test_load_in_flight_is_delivered_to_next_load(events):
    """Uma carga que termina depois do prazo fica disponível na recarga seguinte."""
    _require_imports()
    release = threading.Event()
    late = _HangingSource("late", release)
    try:
        first = load_sources([MapPropertySource("fast", {}), late], timeout_seconds=0.05, events=events)
        assert [ls.name for ls in first] == ["fast"]
    finally:
        release.set()

    second = load_sources([MapPropertySource("fast", {}), late], timeout_seconds=2, events=events)

    assert [ls.name for ls in second] == ["fast", "late"]
    assert dict(second[1].properties) == {"late": "1"}
