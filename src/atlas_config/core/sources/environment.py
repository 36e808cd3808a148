# src/atlas_config/core/sources/environment.py
"""Fonte sobre variáveis de ambiente do processo (visão viva de `os.environ`)."""

from __future__ import annotations

import os
from typing import Mapping, MutableMapping, Optional

from ..spi.types import ORDINAL_KEY, PropertyValue
from .base import BasePropertySource


class EnvironmentPropertySource(BasePropertySource):
    """
    Variáveis de ambiente como propriedades.

    - `prefix`: considera apenas variáveis iniciadas pelo prefixo
    - `strip_prefix`: remove o prefixo das chaves expostas
    - `environ`: mapeamento alternativo (testes); default `os.environ`

    Decisões arquiteturais:
        - Nenhuma cópia é feita na construção: cada carga do contexto
          enumera o ambiente corrente
        - Chaves são expostas como estão (sem conversão `DB_URL` → `db.url`)

    Invariantes:
        - `get(key)` e `get_properties()` aplicam o mesmo filtro de prefixo
        - Com `strip_prefix`, a variável cujo nome é exatamente o prefixo é ignorada
    """

    DEFAULT_ORDINAL = 300

    def __init__(
        self,
        name: str = "environment",
        *,
        prefix: Optional[str] = None,
        strip_prefix: bool = False,
        environ: Optional[MutableMapping[str, str]] = None,
        ordinal: Optional[int] = None,
        ordinal_key: str = ORDINAL_KEY,
    ):
        super().__init__(name, ordinal=ordinal, ordinal_key=ordinal_key)
        self._prefix = prefix or ""
        self._strip_prefix = strip_prefix
        self._environ = environ if environ is not None else os.environ

    def _external_key(self, key: str) -> str:
        if self._strip_prefix:
            return f"{self._prefix}{key}"
        return key

    def get_properties(self) -> Mapping[str, Optional[str]]:
        out = {}
        for env_key, value in list(self._environ.items()):
            if not env_key.startswith(self._prefix):
                continue
            key = env_key[len(self._prefix):] if self._strip_prefix else env_key
            if key:
                out[key] = value
        return out

    def get(self, key: str) -> Optional[PropertyValue]:
        env_key = self._external_key(key)
        if not env_key.startswith(self._prefix):
            return None
        value = self._environ.get(env_key)
        if value is None:
            return None
        return PropertyValue.of(key, value, self.name)
