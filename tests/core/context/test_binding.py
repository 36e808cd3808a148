# tests/core/context/test_binding.py
"""Testes do binding declarativo de configuração em dataclasses."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import pytest

try:
    from atlas_config.core.binding import FieldBinding, bind, convert_value
    from atlas_config.core.exceptions import ConfigurationError
except Exception as e:  # noqa: BLE001
    FieldBinding = None
    bind = None
    convert_value = None
    ConfigurationError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar binding. Erro original: {_IMPORT_ERR!r}")


@dataclass
class DbSettings:
    url: str
    port: int = 5432
    ssl: bool = False
    data_dir: Path = Path(".")
    replicas: List[str] = field(default_factory=list)


def _bindings():
    return [
        FieldBinding("url", "db.url", required=True),
        FieldBinding("port", "db.port", int),
        FieldBinding("ssl", "db.ssl", bool, default=True),
        FieldBinding("data_dir", "db.dir", Path),
        FieldBinding("replicas", "db.replicas", list),
    ]


def test_bind_populates_typed_fields(make_context, map_source):
    _require_imports()
    ctx = make_context(
        [map_source("A", {"db.url": "jdbc:x", "db.port": "6543", "db.dir": "/var/db", "db.replicas": "r1,r2"})]
    )

    settings = bind(ctx, DbSettings, _bindings())

    assert settings == DbSettings(
        url="jdbc:x",
        port=6543,
        ssl=True,
        data_dir=Path("/var/db"),
        replicas=["r1", "r2"],
    )


def test_optional_without_default_uses_target_default(make_context, map_source):
    _require_imports()
    settings = bind(make_context([map_source("A", {"db.url": "u"})]), DbSettings, _bindings())

    assert settings.port == 5432
    assert settings.replicas == []


def test_missing_required_is_configuration_error(make_context, map_source):
    _require_imports()
    with pytest.raises(ConfigurationError) as info:
        bind(make_context([map_source("A", {})]), DbSettings, _bindings())
    assert info.value.key == "db.url"


def test_bad_value_is_configuration_error(make_context, map_source):
    _require_imports()
    ctx = make_context([map_source("A", {"db.url": "u", "db.port": "not-a-port"})])
    with pytest.raises(ConfigurationError):
        bind(ctx, DbSettings, _bindings())


@pytest.mark.parametrize(
    "raw, target, expected",
    [
        ("42", int, 42),
        ("2.5", float, 2.5),
        ("OFF", bool, False),
        ("", list, []),
        ("x", str, "x"),
    ],
)
def test_converters(raw, target, expected):
    _require_imports()
    assert convert_value(raw, target) == expected


def test_unsupported_type_is_rejected_at_declaration():
    _require_imports()
    with pytest.raises(TypeError):
        FieldBinding("x", "k", dict)
