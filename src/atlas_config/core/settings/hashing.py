# src/atlas_config/core/settings/hashing.py
"""
Hashing canônico de mapas de configuração do Atlas Config.

Este módulo implementa a geração de hash determinístico utilizada tanto
para identificar os settings efetivos do motor quanto para identificar
cada snapshot resolvido publicado pelo ConfigurationContext.

O hash gerado representa a **identidade estrutural** do mapa e é
utilizado para:
    - detectar se um reload produziu de fato uma nova configuração
    - correlacionar eventos do EventLog com o snapshot vigente
    - auditoria de mudanças (ConfigurationChange)

Princípios fundamentais:
    - Hashing determinístico e reprodutível
    - Independente da ordem original das chaves
    - Baseado em serialização JSON canônica
    - Algoritmo criptográfico estável (SHA-256)

Invariantes:
    - Mapas estruturalmente equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres

Limites explícitos:
    - Não carrega nem resolve configuração
    - Não persiste o hash
"""

import hashlib
import json
from typing import Any, Mapping


def compute_config_hash(config: Mapping[str, Any]) -> str:
    """
    Gera um hash determinístico de um mapa de configuração.

    Política de hashing (v1):
        - Serialização JSON canônica
        - Ordenação estável de chaves
        - Separadores compactos (sem espaços supérfluos)
        - Codificação UTF-8
        - Algoritmo SHA-256

    Valores `None` (propriedades presentes porém nulas) participam do hash
    como `null`, de modo que "ausente" e "nulo" produzem identidades distintas.

    Args:
        config (Mapping[str, Any]): Mapa de configuração (settings ou snapshot).

    Returns:
        str: Hash SHA-256 hexadecimal do mapa.

    Raises:
        TypeError: Se o objeto fornecido não for um mapeamento.
    """

    if not isinstance(config, Mapping):
        raise TypeError(
            f"Config para hashing deve ser mapeamento, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        dict(config),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
