# src/atlas_config/core/sources/files.py
"""
Fontes baseadas em arquivos YAML/JSON.

Este módulo fornece a fonte de referência para dados persistidos em
arquivos e o provider que expande um padrão glob em várias fontes.

Formatos suportados (v1):
    - YAML (.yaml, .yml) via PyYAML (`yaml.safe_load`)
    - JSON (.json)

Política de achatamento (v1):
    - dicts aninhados → chaves pontuadas (`db: {url: x}` → `db.url`)
    - listas → valores unidos por vírgula (`[a, b]` → `"a,b"`)
    - booleanos → `"true"` / `"false"`
    - null → None (presente porém nulo)
    - demais escalares → `str(valor)`

Decisões arquiteturais:
    - O arquivo é lido em `get_properties()` (a cada carga do contexto) e em
      `check_for_changes()`; nunca na construção
    - Mudança detectada por mtime/tamanho notifica os assinantes
    - Erros de leitura propagam como exceção: a camada de carregamento do
      contexto os registra e ignora a fonte

Limites explícitos:
    - Não define formatos próprios (usa YAML/JSON padrão)
    - Não observa o sistema de arquivos em background
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml  # PyYAML

from ..spi.types import ORDINAL_KEY, PropertyValue
from .base import BasePropertySource, ObservableMixin


def _scalar_to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join("" if v is None else (_scalar_to_str(v) or "") for v in value)
    return str(value)


def flatten(data: Mapping[str, Any], *, parent: str = "") -> Dict[str, Optional[str]]:
    """Achata um documento aninhado em chaves pontuadas com valores textuais."""
    out: Dict[str, Optional[str]] = {}
    for key, value in data.items():
        full_key = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, dict):
            out.update(flatten(value, parent=full_key))
        else:
            out[full_key] = _scalar_to_str(value)
    return out


def read_document(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise ValueError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ValueError(f"Raiz do arquivo deve ser dict, recebido: {type(data).__name__}")

    return data


class FilePropertySource(ObservableMixin, BasePropertySource):
    """
    Fonte sobre um arquivo YAML/JSON achatado em chaves pontuadas.

    Decisões arquiteturais:
        - A construção não lê o arquivo: a leitura acontece em
          `get_properties()`, chamada pela camada de carregamento do contexto
          dentro do prazo `provider_timeout_seconds`
        - Cada `get_properties()` relê o arquivo, de modo que `reload()` do
          contexto sempre enxerga o conteúdo atual
        - `get(key)` responde pela última leitura (lê uma vez se nunca leu)

    Invariantes:
        - Arquivo ausente, formato não suportado ou raiz não-dict levantam na
          leitura; no contexto a falha fica restrita a esta fonte
        - `check_for_changes()` só notifica quando mtime/tamanho mudaram
          desde a última leitura
    """

    DEFAULT_ORDINAL = 100

    def __init__(
        self,
        path: Path,
        *,
        name: Optional[str] = None,
        ordinal: Optional[int] = None,
        ordinal_key: str = ORDINAL_KEY,
    ):
        self._path = Path(path)
        super().__init__(name or str(self._path), ordinal=ordinal, ordinal_key=ordinal_key)
        self._init_observable()
        self._lock = threading.Lock()
        self._data: Dict[str, Optional[str]] = {}
        self._stamp: Optional[Tuple[float, int]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _current_stamp(self) -> Tuple[float, int]:
        stat = self._path.stat()
        return (stat.st_mtime, stat.st_size)

    def reload(self) -> Dict[str, Optional[str]]:
        """Lê o arquivo agora e guarda o resultado como última leitura."""
        stamp = self._current_stamp()
        data = flatten(read_document(self._path))
        with self._lock:
            self._data = data
            self._stamp = stamp
        return dict(data)

    def check_for_changes(self) -> bool:
        """
        Relê o arquivo se mtime/tamanho mudaram; notifica assinantes quando houve mudança.

        Sem leitura anterior, apenas estabelece a linha de base (sem notificar).
        """
        stamp = self._current_stamp()
        with self._lock:
            baseline = self._stamp
        if baseline is None:
            self.reload()
            return False
        if stamp == baseline:
            return False
        self.reload()
        self._notify_listeners()
        return True

    def get_properties(self) -> Mapping[str, Optional[str]]:
        return self.reload()

    def get(self, key: str) -> Optional[PropertyValue]:
        with self._lock:
            loaded = self._stamp is not None
        if not loaded:
            self.reload()
        with self._lock:
            if key not in self._data:
                return None
            value = self._data[key]
        return PropertyValue.of(key, value, self.name)


class PathPatternProvider:
    """
    Provider que cria uma FilePropertySource por arquivo casado por um padrão glob.

    A ordem das fontes é determinística (caminhos ordenados). O nome de cada
    fonte é o caminho relativo ao diretório base, prefixado por `name_prefix`.
    Nenhum arquivo é lido aqui: um arquivo inválido falha apenas a própria
    fonte, durante o carregamento, sem descartar as irmãs.
    """

    def __init__(
        self,
        base_dir: Path,
        pattern: str,
        *,
        ordinal: Optional[int] = None,
        name_prefix: str = "file:",
        ordinal_key: str = ORDINAL_KEY,
    ):
        self._base_dir = Path(base_dir)
        self._pattern = pattern
        self._ordinal = ordinal
        self._name_prefix = name_prefix
        self._ordinal_key = ordinal_key

    def get_property_sources(self) -> List[FilePropertySource]:
        paths = sorted(p for p in self._base_dir.glob(self._pattern) if p.is_file())
        return [
            FilePropertySource(
                path,
                name=f"{self._name_prefix}{path.relative_to(self._base_dir).as_posix()}",
                ordinal=self._ordinal,
                ordinal_key=self._ordinal_key,
            )
            for path in paths
        ]
