# tests/core/settings/test_settings_merge.py
"""
Testes da política de deep-merge de settings.

Os testes asseguram que:
- valores escalares são sobrescritos corretamente
- dicionários são mesclados de forma recursiva
- listas são sobrescritas integralmente
- conflitos de tipo são rejeitados explicitamente (com promoção int -> float permitida)
- o conflito informa o caminho pontuado e a origem da camada
- objetos de entrada não são mutados durante o merge

Limites explícitos:
    - Não valida carregamento de arquivos
    - Não valida hashing
"""

import pytest

try:
    from atlas_config.core.settings.merge import deep_merge
    from atlas_config.core.settings.errors import ConfigTypeConflictError
except Exception as e:  # noqa: BLE001
    deep_merge = None
    ConfigTypeConflictError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Falha ao importar deep_merge/ConfigTypeConflictError. "
            f"Erro original: {_IMPORT_ERR!r}"
        )


def test_merge_simple_override():
    """
    Override de escalar substitui o valor base sem mutar as entradas.

    Invariantes:
        - O valor sobrescrito reflete exatamente o override
        - `base` e `override` não sofrem mutação
    """
    _require_imports()
    base = {"a": 1, "b": 2}
    override = {"b": 99}

    result = deep_merge(base, override)

    assert result == {"a": 1, "b": 99}
    assert base == {"a": 1, "b": 2}
    assert override == {"b": 99}


def test_merge_nested_sections():
    _require_imports()
    base = {"loading": {"provider_timeout_seconds": 5.0}, "filters": {"hide_metadata": True}}
    override = {"loading": {"provider_timeout_seconds": 1.5}}

    result = deep_merge(base, override)

    assert result["loading"]["provider_timeout_seconds"] == 1.5
    assert result["filters"]["hide_metadata"] is True


def test_merge_list_is_replaced():
    _require_imports()
    result = deep_merge({"x": [1, 2, 3]}, {"x": [9]})
    assert result["x"] == [9]


def test_merge_int_to_float_is_allowed():
    """Promoção numérica é legítima (ex.: timeout 5 -> 2.5)."""
    _require_imports()
    assert deep_merge({"t": 5}, {"t": 2.5}) == {"t": 2.5}


def test_merge_bool_vs_int_conflict_raises():
    """bool é subclasse de int, mas não é aceito como número (e vice-versa)."""
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"flag": True}, {"flag": 1})


def test_merge_type_conflict_raises():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"section": {"a": 1}}, {"section": "oops"})


def test_merge_conflict_reports_dotted_path_and_origin():
    """
    O erro de conflito identifica onde o setting divergiu e qual camada o trouxe.

    Invariantes:
        - A mensagem contém o caminho pontuado completo (seção.chave)
        - A origem informada aparece na mensagem
    """
    _require_imports()
    base = {"resolution": {"mask_unresolved": True}}
    override = {"resolution": {"mask_unresolved": "sim"}}

    with pytest.raises(ConfigTypeConflictError) as exc_info:
        deep_merge(base, override, origin="local.yaml")

    message = str(exc_info.value)
    assert "'resolution.mask_unresolved'" in message
    assert "bool vs str" in message
    assert "local.yaml" in message


def test_merge_new_keys_and_none_are_accepted():
    _require_imports()
    result = deep_merge({"a": {"x": None}}, {"a": {"x": 3, "y": [1]}, "b": 2})
    assert result == {"a": {"x": 3, "y": [1]}, "b": 2}


def test_merge_non_dict_root_raises():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"a": 1}, ["a"])
