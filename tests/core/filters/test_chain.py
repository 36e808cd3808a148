# tests/core/filters/test_chain.py
"""
Testes da FilterChain.

Os testes asseguram que:
- filtros executam em ordem decrescente de prioridade
- empate de prioridade é resolvido pelo nome qualificado do tipo
- veto (None) interrompe a cadeia
- filtro que levanta exceção é pass-through e registra FILTER_ERROR
- reescrita que altera a chave é rejeitada (pass-through)
- a cadeia é reaplicada até estabilizar, limitada por `max_loops`
"""

import pytest

try:
    from atlas_config.core.filters.chain import FilterChain
    from atlas_config.core.spi.types import FilterContext, PropertyValue
except Exception as e:  # noqa: BLE001
    FilterChain = None
    FilterContext = None
    PropertyValue = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar FilterChain. Erro original: {_IMPORT_ERR!r}")


class _Append:
    def __init__(self, suffix, priority=0):
        self.suffix = suffix
        self.priority = priority

    def filter_property(self, value, context):
        if self.suffix in value.value:
            return value
        return value.with_value(value.value + self.suffix)


class _Veto:
    priority = 50

    def __init__(self, key):
        self.key = key

    def filter_property(self, value, context):
        return None if value.key == self.key else value


class _Boom:
    def filter_property(self, value, context):
        raise RuntimeError("bad filter")


class _RenameKey:
    def filter_property(self, value, context):
        return PropertyValue.of("other", value.value, value.source)


class _Counter:
    """Sempre altera o valor: nunca estabiliza."""

    def filter_property(self, value, context):
        return value.with_value(str(int(value.value) + 1))


class AaaFilter:
    def filter_property(self, value, context):
        return value.with_value(value.value + "A") if "A" not in value.value else value


class ZzzFilter:
    def filter_property(self, value, context):
        return value.with_value(value.value + "Z") if "Z" not in value.value else value


def _pv(key="k", value="v"):
    return PropertyValue.of(key, value, "test")


def test_descending_priority_order():
    _require_imports()
    chain = FilterChain([_Append("-low", priority=1), _Append("-high", priority=10)])

    assert chain.apply_single(_pv()).value == "v-high-low"


def test_equal_priority_breaks_tie_by_type_name():
    _require_imports()
    chain = FilterChain([ZzzFilter(), AaaFilter()])

    assert [type(f).__name__ for f in chain.filters] == ["AaaFilter", "ZzzFilter"]
    assert chain.apply_single(_pv()).value == "vAZ"


def test_explicit_registration_priority_overrides_attribute():
    _require_imports()
    chain = FilterChain()
    chain.register(_Append("-a", priority=100))
    chain.register(_Append("-b", priority=0), priority=1000)

    assert chain.apply_single(_pv()).value == "v-b-a"


def test_veto_stops_the_chain():
    _require_imports()
    chain = FilterChain([_Veto("secret"), _Append("-x", priority=0)])

    assert chain.apply_single(_pv("secret")) is None
    assert chain.apply_single(_pv("public")).value == "v-x"


def test_throwing_filter_is_pass_through(events):
    _require_imports()
    chain = FilterChain([_Boom(), _Append("-ok")], events=events)

    assert chain.apply_single(_pv()).value == "v-ok"
    errors = events.errors("FILTER_ERROR")
    assert errors and errors[0]["error"]["details"]["key"] == "k"


def test_key_rewrite_is_rejected(events):
    _require_imports()
    chain = FilterChain([_RenameKey()], events=events)

    result = chain.apply_single(_pv())

    assert result.key == "k"
    assert events.errors("FILTER_ERROR")


def test_loop_limit_is_enforced(events):
    _require_imports()
    chain = FilterChain([_Counter()], max_loops=3, events=events)

    assert chain.apply_single(_pv(value="0")).value == "3"
    assert "filters.chain" in events.warnings


def test_bulk_mode_sees_prior_values_and_drops_vetoed():
    _require_imports()
    seen = {}

    class _Spy:
        def filter_property(self, value, context):
            seen[value.key] = (context.single_property_scoped, sorted(context.prior_values))
            return value

    chain = FilterChain([_Spy(), _Veto("b")])
    merged = {"a": _pv("a"), "b": _pv("b")}

    out = chain.apply_bulk(merged)

    assert set(out) == {"a"}
    assert seen["a"] == (False, ["a", "b"])


def test_empty_chain_is_identity():
    _require_imports()
    pv = _pv()
    assert FilterChain().apply(pv, FilterContext.single(pv)) is pv
