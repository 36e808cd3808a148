# tests/core/settings/test_loader.py
"""
Testes do loader de settings do motor (load_settings / ContextSettings).

Os testes asseguram que:
- sem arquivos, os defaults embutidos são usados
- o arquivo de defaults e o local são aplicados nessa ordem
- formatos e estruturas inválidas são rejeitados precocemente
- conflitos de tipo no arquivo local apontam o arquivo e o setting
- seções e chaves desconhecidas são rejeitadas (sem heurística)

Limites explícitos:
    - Não carrega PropertySources
"""

from pathlib import Path

import pytest

try:
    from atlas_config.core.settings.loader import ContextSettings, load_settings
    from atlas_config.core.settings.errors import (
        ConfigTypeConflictError,
        InvalidSettingsError,
        InvalidSettingsRootTypeError,
        SettingsFileNotFoundError,
        UnsupportedSettingsFormatError,
    )
except Exception as e:  # noqa: BLE001
    ContextSettings = None
    load_settings = None
    ConfigTypeConflictError = None
    InvalidSettingsError = None
    InvalidSettingsRootTypeError = None
    SettingsFileNotFoundError = None
    UnsupportedSettingsFormatError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o loader de settings e suas exceções tipadas estejam disponíveis.

    Falhas de import são convertidas em `pytest.fail` com a causa original,
    em vez de erros de coleta difíceis de diagnosticar.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar o loader de settings. Erro original: {_IMPORT_ERR!r}")


def test_defaults_without_files():
    _require_imports()
    settings = load_settings()

    assert settings == ContextSettings()
    assert settings.ordinal_key == "_ordinal"
    assert settings.max_filter_loops == 10
    assert settings.mask_unresolved is True


def test_defaults_then_local_override(tmp_path: Path, settings_defaults_yaml, settings_local_yaml):
    """
    O arquivo local sobrescreve o de defaults, que sobrescreve os embutidos.

    Invariantes:
        - Chaves não sobrescritas preservam o valor anterior
    """
    _require_imports()
    defaults = tmp_path / "atlas-config.defaults.yaml"
    local = tmp_path / "atlas-config.local.yaml"
    defaults.write_text(settings_defaults_yaml, encoding="utf-8")
    local.write_text(settings_local_yaml, encoding="utf-8")

    settings = load_settings(defaults_path=str(defaults), local_path=str(local))

    assert settings.provider_timeout_seconds == 0.5
    assert settings.mask_unresolved is False
    assert settings.max_resolution_depth == 10
    assert settings.hide_metadata is True


def test_json_settings_file(tmp_path: Path):
    _require_imports()
    path = tmp_path / "settings.json"
    path.write_text('{"filters": {"max_filter_loops": 3}}', encoding="utf-8")

    settings = load_settings(local_path=str(path))

    assert settings.max_filter_loops == 3


def test_local_type_conflict_names_file_and_setting(tmp_path: Path):
    """
    Conflito de tipo no arquivo local aponta o arquivo e o setting.

    Invariantes:
        - ConfigTypeConflictError é levantado antes da validação de schema
        - A mensagem permite localizar o erro sem abrir o código
    """
    _require_imports()
    local = tmp_path / "atlas-config.local.yaml"
    local.write_text("filters:\n  hide_metadata: nope\n", encoding="utf-8")

    with pytest.raises(ConfigTypeConflictError) as exc_info:
        load_settings(local_path=str(local))

    message = str(exc_info.value)
    assert "filters.hide_metadata" in message
    assert str(local) in message


def test_missing_file_raises(tmp_path: Path):
    _require_imports()
    with pytest.raises(SettingsFileNotFoundError):
        load_settings(defaults_path=str(tmp_path / "nope.yaml"))


def test_unsupported_format_raises(tmp_path: Path):
    _require_imports()
    path = tmp_path / "settings.toml"
    path.write_text("x = 1", encoding="utf-8")
    with pytest.raises(UnsupportedSettingsFormatError):
        load_settings(local_path=str(path))


def test_root_must_be_mapping(tmp_path: Path):
    _require_imports()
    path = tmp_path / "settings.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(InvalidSettingsRootTypeError):
        load_settings(local_path=str(path))


def test_unknown_key_is_rejected():
    _require_imports()
    with pytest.raises(InvalidSettingsError):
        ContextSettings.from_dict({"filters": {"max_loops": 3}})


def test_unknown_section_is_rejected():
    _require_imports()
    with pytest.raises(InvalidSettingsError):
        ContextSettings.from_dict({"network": {}})


def test_bool_is_not_a_number():
    _require_imports()
    with pytest.raises(InvalidSettingsError):
        ContextSettings.from_dict({"filters": {"max_filter_loops": True}})


def test_range_validation():
    _require_imports()
    with pytest.raises(InvalidSettingsError):
        ContextSettings.from_dict({"loading": {"provider_timeout_seconds": 0}})


def test_settings_hash_is_stable_and_sensitive():
    _require_imports()
    a = ContextSettings()
    b = ContextSettings()
    c = ContextSettings(max_filter_loops=3)

    assert a.settings_hash == b.settings_hash
    assert a.settings_hash != c.settings_hash
