# tests/core/resolver/test_evaluator.py
"""
Testes do ExpressionEvaluator.

Os testes asseguram que:
- texto literal é preservado e expressões são substituídas
- valores resolvidos são reavaliados recursivamente
- autorreferência direta e indireta termina com saída mascarada
- `\\${...}` é literal
- expressões não resolvidas seguem a política de máscara
- resolver que levanta exceção equivale a None (próximo resolver)
"""

import pytest

try:
    from atlas_config.core.resolver.evaluator import ExpressionEvaluator
except Exception as e:  # noqa: BLE001
    ExpressionEvaluator = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar ExpressionEvaluator. Erro original: {_IMPORT_ERR!r}")


class _MapResolver:
    def __init__(self, resolver_id, data, priority=0):
        self.resolver_id = resolver_id
        self.data = data
        self.priority = priority

    def evaluate(self, expression):
        return self.data.get(expression)


class _BoomResolver:
    resolver_id = "boom"
    priority = 1000

    def evaluate(self, expression):
        raise RuntimeError("resolver down")


def _evaluator(data=None, **kwargs):
    return ExpressionEvaluator([_MapResolver("conf", data or {}, priority=400)], **kwargs)


def test_hello_world():
    _require_imports()
    assert _evaluator({"name": "World"}).resolve("Hello ${name}") == "Hello World"


def test_nested_values_are_resolved_recursively():
    _require_imports()
    ev = _evaluator({"a": "${b}", "b": "X"})
    assert ev.resolve("${a}") == "X"


def test_named_prefix_selects_resolver():
    _require_imports()
    ev = ExpressionEvaluator(
        [
            _MapResolver("conf", {"HOME": "from-conf"}, priority=400),
            _MapResolver("env", {"HOME": "/home/atlas"}, priority=200),
        ]
    )

    assert ev.resolve("${env:HOME}") == "/home/atlas"
    assert ev.resolve("${HOME}") == "from-conf"


def test_unknown_prefix_uses_default_chain_with_whole_expression():
    _require_imports()
    ev = _evaluator({"http://host": "ok"})
    assert ev.resolve("${http://host}") == "ok"


def test_default_chain_tries_next_resolver():
    _require_imports()
    ev = ExpressionEvaluator(
        [
            _MapResolver("conf", {}, priority=400),
            _MapResolver("env", {"USER": "atlas"}, priority=200),
        ]
    )
    assert ev.resolve("${USER}") == "atlas"


def test_direct_self_reference_is_masked(events):
    _require_imports()
    ev = _evaluator({"a": "${a}"}, events=events)

    result = ev.evaluate("${a}", key="a")

    assert result.value == "?{a}"
    assert result.unresolved == ("a",)
    assert events.errors("CYCLE_ERROR")


def test_self_reference_without_key_terminates():
    _require_imports()
    assert _evaluator({"a": "${a}"}).resolve("${a}") == "?{a}"


def test_indirect_cycle_terminates():
    _require_imports()
    ev = _evaluator({"a": "x${b}", "b": "y${a}"})

    result = ev.evaluate("x${b}", key="a")

    assert result.value == "xy?{a}"
    assert not result.is_resolved


def test_escaped_expression_is_literal():
    _require_imports()
    ev = _evaluator({"literal": "nope"})
    assert ev.resolve("\\${literal}") == "${literal}"
    assert ev.resolve("a \\${x} b ${literal}") == "a ${x} b nope"


def test_unresolved_masking_policy():
    _require_imports()
    ev = _evaluator()

    assert ev.resolve("pre-${missing}-post") == "pre-?{missing}-post"
    assert ev.resolve("pre-${missing}-post", mask_unresolved=False) == "pre--post"


def test_nested_expression_in_body_is_resolved_inside_out():
    _require_imports()
    ev = ExpressionEvaluator(
        [
            _MapResolver("conf", {"dev.url": "jdbc:dev"}, priority=400),
            _MapResolver("env", {"PROFILE": "dev"}, priority=200),
        ]
    )
    assert ev.resolve("${conf:${env:PROFILE}.url}") == "jdbc:dev"


def test_escaped_brace_inside_body():
    _require_imports()
    ev = _evaluator({"a}b": "ok"})
    assert ev.resolve("${a\\}b}") == "ok"


def test_unterminated_expression_is_kept_verbatim(events):
    _require_imports()
    ev = _evaluator({"a": "x"}, events=events)

    assert ev.resolve("value ${a") == "value ${a"
    assert events.errors("INVALID_EXPRESSION")


def test_throwing_resolver_falls_through(events):
    _require_imports()
    ev = ExpressionEvaluator([_BoomResolver(), _MapResolver("conf", {"k": "v"}, priority=1)], events=events)

    assert ev.resolve("${k}") == "v"
    assert events.errors("RESOLUTION_ERROR")


def test_depth_limit_stops_runaway_recursion():
    _require_imports()
    data = {f"k{i}": f"${{k{i + 1}}}" for i in range(50)}
    ev = _evaluator(data, max_depth=5)

    result = ev.evaluate("${k0}")

    assert result.value.startswith("?{")
    assert not result.is_resolved


def test_values_without_expressions_are_untouched():
    _require_imports()
    ev = _evaluator()
    assert ev.resolve("plain $ text {}") == "plain $ text {}"
    assert ev.resolve(None) is None


def test_duplicate_resolver_id_is_rejected():
    _require_imports()
    ev = _evaluator()
    with pytest.raises(ValueError):
        ev.register(_MapResolver("conf", {}))
