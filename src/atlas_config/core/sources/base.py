# src/atlas_config/core/sources/base.py
"""
Implementações base de PropertySource.

Componentes principais:
    - BasePropertySource       → nome, ordinal (explícito → `_ordinal` → default), scannable
    - ObservableMixin          → assinatura de callbacks de mudança
    - MapPropertySource        → dados em memória, escaneável
    - LookupPropertySource     → somente lookup (não escaneável), via callable
    - MutableMapPropertySource → destino gravável do caminho de escrita

Invariantes:
    - `get_properties()` devolve sempre uma cópia (nunca o estado interno)
    - Callbacks de mudança são chamados fora do lock da fonte
"""

from __future__ import annotations

import threading
from typing import Callable, Collection, Dict, List, Mapping, Optional

from ..aggregation.ordinal import resolve_ordinal
from ..spi.types import ORDINAL_KEY, PropertyValue


class BasePropertySource:
    """
    Base de fontes: subclasses implementam `get_properties()`.

    Decisões arquiteturais:
        - `get(key)` padrão deriva de `get_properties()`; fontes com acesso
          direto mais barato (ambiente, memória, arquivos) sobrescrevem
        - O ordinal é resolvido a cada consulta: explícito, depois a chave
          `ordinal_key` da própria fonte, depois `DEFAULT_ORDINAL`

    Invariantes:
        - `name` é texto não vazio (validado na construção)
        - Fontes não escaneáveis ficam fora do snapshot bulk
    """

    DEFAULT_ORDINAL = 0

    def __init__(
        self,
        name: str,
        *,
        ordinal: Optional[int] = None,
        scannable: bool = True,
        ordinal_key: str = ORDINAL_KEY,
    ):
        if not isinstance(name, str) or not name.strip():
            raise ValueError("source name must be a non-empty string")
        self._name = name
        self._explicit_ordinal = ordinal
        self._scannable = scannable
        self._ordinal_key = ordinal_key

    @property
    def name(self) -> str:
        return self._name

    @property
    def scannable(self) -> bool:
        return self._scannable

    @property
    def ordinal(self) -> int:
        return resolve_ordinal(
            explicit=self._explicit_ordinal,
            lookup=self.get,
            default=self.DEFAULT_ORDINAL,
            ordinal_key=self._ordinal_key,
        )

    def get_properties(self) -> Mapping[str, Optional[str]]:
        raise NotImplementedError

    def get(self, key: str) -> Optional[PropertyValue]:
        props = self.get_properties()
        if key not in props:
            return None
        return PropertyValue.of(key, props[key], self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


class ObservableMixin:
    """Assinatura de callbacks `callback(source)` disparados quando os dados mudam."""

    def _init_observable(self) -> None:
        self._listeners: List[Callable[[object], None]] = []
        self._listeners_lock = threading.Lock()

    def subscribe(self, callback: Callable[[object], None]) -> None:
        with self._listeners_lock:
            if callback not in self._listeners:
                self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[object], None]) -> None:
        with self._listeners_lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify_listeners(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for callback in listeners:
            callback(self)


class MapPropertySource(BasePropertySource):
    """Fonte em memória sobre uma cópia do mapa informado."""

    DEFAULT_ORDINAL = 0

    def __init__(
        self,
        name: str,
        data: Mapping[str, Optional[str]],
        *,
        ordinal: Optional[int] = None,
        scannable: bool = True,
        ordinal_key: str = ORDINAL_KEY,
    ):
        super().__init__(name, ordinal=ordinal, scannable=scannable, ordinal_key=ordinal_key)
        self._data: Dict[str, Optional[str]] = dict(data)

    def get_properties(self) -> Mapping[str, Optional[str]]:
        if not self.scannable:
            return {}
        return dict(self._data)

    def get(self, key: str) -> Optional[PropertyValue]:
        if key not in self._data:
            return None
        return PropertyValue.of(key, self._data[key], self.name)


class LookupPropertySource(BasePropertySource):
    """
    Fonte somente lookup (não escaneável).

    Representa stores preguiçosos ou remotos que não suportam enumeração:
    contribuem para `get(key)` mas nunca para o snapshot bulk.
    """

    DEFAULT_ORDINAL = 0

    def __init__(
        self,
        name: str,
        loader: Callable[[str], Optional[str]],
        *,
        ordinal: Optional[int] = None,
        ordinal_key: str = ORDINAL_KEY,
    ):
        super().__init__(name, ordinal=ordinal, scannable=False, ordinal_key=ordinal_key)
        self._loader = loader

    def get_properties(self) -> Mapping[str, Optional[str]]:
        return {}

    def get(self, key: str) -> Optional[PropertyValue]:
        value = self._loader(key)
        if value is None:
            return None
        return PropertyValue.of(key, value, self.name)


class MutableMapPropertySource(ObservableMixin, MapPropertySource):
    """
    Fonte em memória gravável, destino do caminho de escrita.

    `apply_changes` aplica puts/removes atomicamente sob o lock da fonte e
    então notifica os assinantes (o contexto recarrega em seguida).
    """

    DEFAULT_ORDINAL = 0

    def __init__(
        self,
        name: str,
        data: Optional[Mapping[str, Optional[str]]] = None,
        *,
        ordinal: Optional[int] = None,
        writable_prefixes: Optional[Collection[str]] = None,
        ordinal_key: str = ORDINAL_KEY,
    ):
        super().__init__(name, data or {}, ordinal=ordinal, ordinal_key=ordinal_key)
        self._init_observable()
        self._lock = threading.Lock()
        self._writable_prefixes = tuple(writable_prefixes) if writable_prefixes else None

    def get_properties(self) -> Mapping[str, Optional[str]]:
        with self._lock:
            return dict(self._data)

    def get(self, key: str) -> Optional[PropertyValue]:
        with self._lock:
            if key not in self._data:
                return None
            value = self._data[key]
        return PropertyValue.of(key, value, self.name)

    def is_writable(self, key: str) -> bool:
        if self._writable_prefixes is None:
            return True
        return any(key.startswith(prefix) for prefix in self._writable_prefixes)

    def apply_changes(
        self,
        puts: Mapping[str, Optional[str]],
        removes: Collection[str],
    ) -> None:
        """
        Aplica puts e removes de uma vez e notifica os assinantes.

        Invariantes:
            - Com alguma chave fora de `writable_prefixes`, nada é aplicado
            - Removes são aplicados antes dos puts (put e remove da mesma
              chave resultam no put)
            - Callbacks rodam fora do lock da fonte

        Raises:
            PermissionError: Se alguma chave não for gravável nesta fonte.
        """
        denied = [k for k in list(puts) + list(removes) if not self.is_writable(k)]
        if denied:
            raise PermissionError(f"Chaves não graváveis em '{self.name}': {sorted(denied)}")
        with self._lock:
            for key in removes:
                self._data.pop(key, None)
            self._data.update(puts)
        self._notify_listeners()
