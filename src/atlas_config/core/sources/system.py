# src/atlas_config/core/sources/system.py
"""
Fonte de "system properties" do processo Python.

Expõe fatos do runtime com nomes estáveis (`python.version`, `os.name`,
`user.home`, `user.dir`, `file.separator`, `path.separator`,
`line.separator`, `python.executable`) e overrides explícitos do processo,
tipicamente recebidos como argumentos `-Dchave=valor`.

Overrides sempre vencem os fatos do runtime dentro desta fonte.
"""

from __future__ import annotations

import os
import platform
import sys
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from ..spi.types import ORDINAL_KEY
from .base import BasePropertySource


def runtime_properties() -> Dict[str, str]:
    return {
        "python.version": platform.python_version(),
        "python.implementation": platform.python_implementation(),
        "python.executable": sys.executable or "",
        "os.name": platform.system(),
        "os.version": platform.release(),
        "user.home": str(Path.home()),
        "user.dir": os.getcwd(),
        "file.separator": os.sep,
        "path.separator": os.pathsep,
        "line.separator": os.linesep,
    }


def parse_system_overrides(argv: Iterable[str]) -> Dict[str, str]:
    """Extrai `-Dchave=valor` (ou `-Dchave`, valor vazio) de uma lista de argumentos."""
    out: Dict[str, str] = {}
    for arg in argv:
        if not arg.startswith("-D") or len(arg) <= 2:
            continue
        body = arg[2:]
        key, sep, value = body.partition("=")
        key = key.strip()
        if not key:
            continue
        out[key] = value if sep else ""
    return out


class SystemPropertySource(BasePropertySource):
    """
    System properties do processo: fatos do runtime mais overrides `-D`.

    Decisões arquiteturais:
        - Fatos do runtime são recalculados a cada carga (`user.dir`
          acompanha `os.chdir`)
        - Overrides são fixados na construção; não há escrita posterior

    Invariantes:
        - Dentro da fonte, override vence o fato de runtime de mesmo nome
        - Ordinal default 1000: vence ambiente (300) e arquivos (100)
    """

    DEFAULT_ORDINAL = 1000

    def __init__(
        self,
        name: str = "system",
        *,
        overrides: Optional[Mapping[str, str]] = None,
        ordinal: Optional[int] = None,
        ordinal_key: str = ORDINAL_KEY,
    ):
        super().__init__(name, ordinal=ordinal, ordinal_key=ordinal_key)
        self._overrides = dict(overrides or {})

    @classmethod
    def from_args(cls, argv: Iterable[str], **kwargs) -> "SystemPropertySource":
        """Cria a fonte a partir de argumentos de linha de comando (`-Dchave=valor`)."""
        return cls(overrides=parse_system_overrides(argv), **kwargs)

    def get_properties(self) -> Mapping[str, Optional[str]]:
        props: Dict[str, Optional[str]] = dict(runtime_properties())
        props.update(self._overrides)
        return props
