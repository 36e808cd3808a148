# src/atlas_config/core/binding.py
"""
Binding explícito de configuração em objetos tipados.

Substitui injeção por reflexão/anotações por uma tabela declarativa:
cada `FieldBinding` diz qual chave alimenta qual atributo, com tipo,
default e obrigatoriedade. O alvo é construído por `bind()` chamando o
construtor com keyword arguments (dataclasses são o caso típico).

Conversores suportados (v1):
    - str, int, float
    - bool  (`true/false`, `yes/no`, `on/off`, `1/0`, sem diferenciar maiúsculas)
    - pathlib.Path
    - list  (valores separados por vírgula, sem espaços nas pontas)

Invariantes:
    - Nenhum valor convertido silenciosamente para algo diferente do declarado
    - Ausência de chave obrigatória é ConfigurationError com a chave em `details`
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence, Type, TypeVar

from .errors import configuration_error
from .exceptions import ConfigurationError

T = TypeVar("T")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class ConversionError(ValueError):
    def __init__(self, value: str, target: str, reason: str = ""):
        self.value = value
        self.target = target
        super().__init__(f"não foi possível converter {value!r} para {target}" + (f": {reason}" if reason else ""))


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _to_bool(raw: str) -> bool:
    norm = raw.strip().lower()
    if norm in _TRUE:
        return True
    if norm in _FALSE:
        return False
    raise ConversionError(raw, "bool")


def _to_list(raw: str) -> List[str]:
    if not raw.strip():
        return []
    return [item.strip() for item in raw.split(",")]


CONVERTERS: Dict[Any, Callable[[str], Any]] = {
    str: str,
    int: lambda raw: int(raw.strip()),
    float: lambda raw: float(raw.strip()),
    bool: _to_bool,
    Path: lambda raw: Path(raw.strip()),
    list: _to_list,
}


def _type_name(target_type: Any) -> str:
    return getattr(target_type, "__name__", repr(target_type))


def convert_value(raw: str, target_type: Any) -> Any:
    """Converte um valor textual; tipo sem conversor registrado é erro de uso."""
    converter = CONVERTERS.get(target_type)
    if converter is None:
        raise TypeError(f"Tipo sem conversor registrado: {_type_name(target_type)}")
    try:
        return converter(raw)
    except ConversionError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConversionError(raw, _type_name(target_type), str(exc)) from exc


@dataclass(frozen=True)
class FieldBinding:
    attribute: str
    key: str
    target_type: Any = str
    default: Any = MISSING
    required: bool = False

    def __post_init__(self) -> None:
        if self.target_type not in CONVERTERS:
            raise TypeError(f"Tipo sem conversor registrado: {_type_name(self.target_type)}")


def bind(context: Any, target_cls: Type[T], bindings: Sequence[FieldBinding]) -> T:
    """
    Constrói `target_cls(**kwargs)` com valores lidos de `context.get_as`.

    Regras:
        - chave presente → valor convertido para `target_type`
        - ausente e `default` informado → default
        - ausente, sem default e `required=True` → ConfigurationError
        - ausente, sem default e opcional → atributo omitido (default do alvo)

    Raises:
        ConfigurationError: chave obrigatória ausente ou valor inconversível.
    """
    kwargs: Dict[str, Any] = {}
    missing: List[str] = []
    for binding in bindings:
        value = context.get_as(binding.key, binding.target_type, MISSING)
        if value is MISSING:
            if binding.default is not MISSING:
                kwargs[binding.attribute] = binding.default
            elif binding.required:
                missing.append(binding.key)
            continue
        kwargs[binding.attribute] = value

    if missing:
        payload = configuration_error(
            message=f"Propriedades obrigatórias ausentes para {target_cls.__name__}",
            details={"key": missing[0], "keys": missing, "target": target_cls.__name__},
        )
        raise ConfigurationError(
            message=payload.message,
            details=payload.details,
            hint=payload.hint,
        )
    return target_cls(**kwargs)
