# tests/core/sources/test_files.py
"""
Testes das fontes de arquivo (YAML/JSON) e do provider por padrão glob.

Os testes asseguram que:
- documentos aninhados são achatados em chaves pontuadas
- escalares são convertidos para texto (bool → true/false, null → None)
- `_ordinal` no arquivo define o ordinal da fonte
- a leitura acontece em `get_properties()` (nunca na construção) e é refeita a cada carga
- mudanças detectadas por `check_for_changes` notificam assinantes
- o provider devolve fontes em ordem determinística e não lê arquivos
"""

import os
from pathlib import Path

import pytest

try:
    from atlas_config.core.sources.files import FilePropertySource, PathPatternProvider, flatten
except Exception as e:  # noqa: BLE001
    FilePropertySource = None
    PathPatternProvider = None
    flatten = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar fontes de arquivo. Erro original: {_IMPORT_ERR!r}")


def test_flatten_policy():
    """Dicts viram chaves pontuadas; listas, booleanos e números viram texto; null é preservado."""
    _require_imports()
    doc = {"db": {"url": "x", "port": 5432, "ssl": True}, "hosts": ["a", "b"], "empty": None}

    assert flatten(doc) == {
        "db.url": "x",
        "db.port": "5432",
        "db.ssl": "true",
        "hosts": "a,b",
        "empty": None,
    }


def test_yaml_source(tmp_path: Path):
    _require_imports()
    path = tmp_path / "app.yaml"
    path.write_text("_ordinal: 150\napp:\n  name: atlas\n", encoding="utf-8")

    src = FilePropertySource(path)

    assert src.name == str(path)
    assert src.ordinal == 150
    assert src.get("app.name").value == "atlas"


def test_json_source_default_ordinal(tmp_path: Path):
    _require_imports()
    path = tmp_path / "app.json"
    path.write_text('{"app": {"name": "atlas"}}', encoding="utf-8")

    src = FilePropertySource(path, name="json")

    assert src.ordinal == 100
    assert src.get_properties() == {"app.name": "atlas"}


def test_construction_does_not_read_file(tmp_path: Path):
    """
    Construir a fonte não toca o disco; a leitura acontece em `get_properties()`.

    Invariantes:
        - Caminho inexistente não falha na construção
        - A falha aparece na leitura, onde o carregamento do contexto a isola
    """
    _require_imports()
    missing = tmp_path / "later.yaml"

    src = FilePropertySource(missing)

    with pytest.raises(FileNotFoundError):
        src.get_properties()


def test_invalid_root_raises_on_read(tmp_path: Path):
    _require_imports()
    path = tmp_path / "list.yaml"
    path.write_text("- a\n", encoding="utf-8")
    src = FilePropertySource(path)
    with pytest.raises(ValueError):
        src.get_properties()


def test_get_properties_rereads_file(tmp_path: Path):
    """Cada enumeração devolve o conteúdo atual do arquivo, sem cache entre cargas."""
    _require_imports()
    path = tmp_path / "app.yaml"
    path.write_text("k: old\n", encoding="utf-8")
    src = FilePropertySource(path)
    assert src.get_properties() == {"k": "old"}

    path.write_text("k: new-value\n", encoding="utf-8")

    assert src.get_properties() == {"k": "new-value"}
    assert src.get("k").value == "new-value"


def test_check_for_changes_notifies(tmp_path: Path):
    """
    Detecção de mudança por mtime/tamanho.

    Invariantes:
        - A primeira verificação só estabelece a linha de base (sem notificar)
        - Arquivo alterado é relido e os assinantes recebem a própria fonte
    """
    _require_imports()
    path = tmp_path / "app.yaml"
    path.write_text("k: one\n", encoding="utf-8")
    src = FilePropertySource(path)
    calls = []
    src.subscribe(calls.append)

    assert src.check_for_changes() is False

    path.write_text("k: two-two\n", encoding="utf-8")
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 5))

    assert src.check_for_changes() is True
    assert src.get("k").value == "two-two"
    assert calls == [src]


def test_pattern_provider_is_deterministic(tmp_path: Path):
    _require_imports()
    conf = tmp_path / "conf.d"
    conf.mkdir()
    (conf / "b.yaml").write_text("k: b\n", encoding="utf-8")
    (conf / "a.yaml").write_text("k: a\n", encoding="utf-8")
    (conf / "notes.txt").write_text("ignored", encoding="utf-8")

    sources = PathPatternProvider(tmp_path, "conf.d/*.yaml", ordinal=120).get_property_sources()

    assert [s.name for s in sources] == ["file:conf.d/a.yaml", "file:conf.d/b.yaml"]
    assert all(s.ordinal == 120 for s in sources)


def test_pattern_provider_isolates_invalid_file(tmp_path: Path):
    """
    O provider só enumera caminhos: um arquivo inválido não impede a criação das fontes.

    Invariantes:
        - Todas as fontes casadas são devolvidas
        - A fonte válida lê normalmente; a inválida falha apenas na própria leitura
    """
    _require_imports()
    (tmp_path / "a.yaml").write_text("good: yes\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("- not a mapping\n", encoding="utf-8")

    good, bad = PathPatternProvider(tmp_path, "*.yaml").get_property_sources()

    assert good.get_properties() == {"good": "true"}
    with pytest.raises(ValueError):
        bad.get_properties()
