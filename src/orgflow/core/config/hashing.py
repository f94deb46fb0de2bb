# src/orgflow/core/config/hashing.py
"""
Hashing canônico do orgflow.

Este módulo implementa o hash determinístico utilizado para:
    - detectar mudança de uma task entre runs (content hash)
    - identificar a configuração efetiva de uma run

Política de hashing (v1):
    - Serialização JSON canônica (sort_keys, separadores compactos)
    - Codificação UTF-8
    - SHA-256, resultado hexadecimal de 64 caracteres

Invariantes:
    - Estruturas equivalentes produzem o mesmo hash
    - O hash independe da ordem original das chaves
    - Nenhuma informação de runtime participa do hash
"""

import hashlib
import json
from typing import Any, Dict


def _canonical(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva da run.

    Args:
        config (Dict[str, Any]): Configuração efetiva.

    Returns:
        str: Hash SHA-256 hexadecimal da configuração.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"config to hash must be a dict, got: {type(config).__name__}"
        )
    return hashlib.sha256(_canonical(config).encode("utf-8")).hexdigest()


def compute_task_hash(values_for_equality: Dict[str, Any]) -> str:
    """
    Gera o content hash de uma task a partir dos seus valores de igualdade.

    Os valores de igualdade são escolhidos pelo plugin e excluem campos
    puramente operacionais (limites de concorrência, tolerância, binding de
    organização). Dois hashes iguais significam que reaplicar a task em um
    target não mudaria nada.

    Valores não serializáveis em JSON são convertidos via `str` para que o
    hash seja sempre computável.

    Args:
        values_for_equality (Dict[str, Any]): Valores relevantes da task.

    Returns:
        str: Hash SHA-256 hexadecimal (64 caracteres).
    """
    if not isinstance(values_for_equality, dict):
        raise TypeError(
            f"task values to hash must be a dict, got: {type(values_for_equality).__name__}"
        )
    raw = json.dumps(
        values_for_equality,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
