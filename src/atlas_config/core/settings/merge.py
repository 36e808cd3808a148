# src/atlas_config/core/settings/merge.py
"""
Utilitário canônico de deep-merge dos settings do motor.

Este módulo implementa a política oficial de deep-merge utilizada pelo
Atlas Config para resolver os settings efetivos a partir dos defaults
embutidos, de um arquivo de defaults opcional e de overrides locais.

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (sem merge elemento a elemento)
    - escalar → sobrescrita direta
    - conflito de tipos → erro estrutural explícito

Invariantes:
    - A mesma entrada sempre produz a mesma saída
    - Nenhum input é mutado durante o processo
    - Conflitos estruturais interrompem o merge

Limites explícitos:
    - Não carrega arquivos
    - Não é usado para agregar PropertySources (ver `aggregation.merge`,
      que opera sobre mapas planos ordenados por ordinal)
"""

from copy import deepcopy
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigTypeConflictError

_ABSENT = object()


def _compatible(base_value: Any, override_value: Any) -> bool:
    # int -> float é promoção legítima (ex.: timeout 5 -> 2.5)
    if isinstance(base_value, bool) or isinstance(override_value, bool):
        return type(base_value) is type(override_value)
    if isinstance(base_value, (int, float)) and isinstance(override_value, (int, float)):
        return True
    if base_value is None or override_value is None:
        return True
    return type(base_value) is type(override_value)


def _conflict(path: Tuple[str, ...], base_value: Any, override_value: Any, origin: Optional[str]) -> str:
    where = ".".join(path)
    message = (
        f"Conflito de tipo em '{where}': "
        f"{type(base_value).__name__} vs {type(override_value).__name__}"
    )
    if origin:
        message += f" (override de {origin})"
    return message


def _merge_level(
    base: Dict[str, Any],
    override: Dict[str, Any],
    *,
    path: Tuple[str, ...],
    origin: Optional[str],
) -> Dict[str, Any]:
    merged: Dict[str, Any] = {key: deepcopy(value) for key, value in base.items()}
    for key, incoming in override.items():
        here = path + (str(key),)
        current = merged.get(key, _ABSENT)

        if current is _ABSENT or isinstance(incoming, list):
            merged[key] = deepcopy(incoming)
        elif isinstance(current, dict) and isinstance(incoming, dict):
            merged[key] = _merge_level(current, incoming, path=here, origin=origin)
        elif _compatible(current, incoming):
            merged[key] = deepcopy(incoming)
        else:
            raise ConfigTypeConflictError(_conflict(here, current, incoming, origin))
    return merged


def deep_merge(
    base: Dict[str, Any],
    override: Dict[str, Any],
    *,
    origin: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Aplica uma camada de settings (`override`) sobre a camada anterior (`base`).

    Decisões arquiteturais:
        - Seções (dicts) são mescladas chave a chave; listas e escalares
          da camada nova substituem os anteriores
        - Promoção int → float e valores nulos são aceitos; bool nunca se
          mistura com números
        - O conflito informa o caminho pontuado do setting
          (ex.: `resolution.mask_unresolved`) e, quando informado, a origem
          da camada (`origin`, tipicamente o caminho do arquivo)

    Invariantes:
        - Sempre devolve um novo dicionário; `base` e `override` não são mutados
        - Chaves ausentes no override são preservadas da base

    Args:
        base (Dict[str, Any]): Camada anterior (ex.: defaults embutidos).
        override (Dict[str, Any]): Camada nova (ex.: arquivo local).
        origin (Optional[str]): Identificação da camada nova nas mensagens de erro.

    Returns:
        Dict[str, Any]: Settings resultantes das duas camadas.

    Raises:
        ConfigTypeConflictError: Se um setting mudar de tipo entre as camadas.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Camadas de settings devem ser dicts, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )
    return _merge_level(base, override, path=(), origin=origin)
