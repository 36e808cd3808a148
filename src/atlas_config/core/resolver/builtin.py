# src/atlas_config/core/resolver/builtin.py
"""
Resolvers embutidos.

Prioridades default (cadeia sem prefixo, maior primeiro):
    - conf → 400  valores filtrados (não resolvidos) do próprio contexto
    - sys  → 300  system properties do processo
    - env  → 200  variáveis de ambiente
    - file → 100  conteúdo textual de arquivo relativo a um diretório base
    - resource → 50  conteúdo de recurso empacotado (`importlib.resources`)
"""

from __future__ import annotations

import os
from importlib import resources
from pathlib import Path
from typing import Callable, Mapping, Optional, Tuple

from ..sources.system import SystemPropertySource


class ConfigResolver:
    """
    Resolve chaves do próprio contexto.

    `lookup` devolve o valor bruto (agregado e filtrado em modo single, sem
    resolução de expressões); o avaliador cuida da recursão e dos ciclos.
    """

    resolver_id = "conf"

    def __init__(self, lookup: Callable[[str], Optional[str]], *, priority: int = 400):
        self._lookup = lookup
        self.priority = priority

    def evaluate(self, expression: str) -> Optional[str]:
        return self._lookup(expression.strip())


class SystemResolver:
    resolver_id = "sys"

    def __init__(self, source: Optional[SystemPropertySource] = None, *, priority: int = 300):
        self._source = source or SystemPropertySource()
        self.priority = priority

    def evaluate(self, expression: str) -> Optional[str]:
        found = self._source.get(expression.strip())
        return None if found is None else found.value


class EnvironmentResolver:
    resolver_id = "env"

    def __init__(self, environ: Optional[Mapping[str, str]] = None, *, priority: int = 200):
        self._environ = environ if environ is not None else os.environ
        self.priority = priority

    def evaluate(self, expression: str) -> Optional[str]:
        return self._environ.get(expression.strip())


class FileResolver:
    """Conteúdo de um arquivo texto (sem a quebra de linha final); None se não existir."""

    resolver_id = "file"

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        *,
        encoding: str = "utf-8",
        priority: int = 100,
    ):
        self._base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._encoding = encoding
        self.priority = priority

    def evaluate(self, expression: str) -> Optional[str]:
        name = expression.strip()
        if not name:
            return None
        path = self._base_dir / name
        if not path.is_file():
            return None
        return path.read_text(encoding=self._encoding).rstrip("\r\n")


class ResourceResolver:
    """
    Conteúdo de um recurso empacotado, via `importlib.resources`.

    Formato da expressão:
        - `<pacote>/<caminho>` (ex.: `${resource:meu_app/defaults/VERSION}`)
        - apenas `<caminho>` quando o resolver é criado com `package=...`

    Pacote inexistente, módulo que não é pacote ou recurso ausente → None (a
    expressão segue para o próximo resolver ou é mascarada). O pacote é
    importado na consulta. A quebra de linha final é removida.
    """

    resolver_id = "resource"

    def __init__(
        self,
        package: Optional[str] = None,
        *,
        encoding: str = "utf-8",
        priority: int = 50,
    ):
        self._package = package
        self._encoding = encoding
        self.priority = priority

    def _split(self, expression: str) -> Tuple[str, str]:
        if self._package is not None:
            return self._package, expression
        package, _, relative = expression.partition("/")
        return package, relative

    def evaluate(self, expression: str) -> Optional[str]:
        package, relative = self._split(expression.strip().lstrip("/"))
        parts = [p for p in relative.split("/") if p]
        if not package or not parts or ".." in parts:
            return None
        try:
            resource = resources.files(package)
        except (ModuleNotFoundError, TypeError, ValueError):
            return None
        for part in parts:
            resource = resource.joinpath(part)
        if not resource.is_file():
            return None
        return resource.read_text(encoding=self._encoding).rstrip("\r\n")
