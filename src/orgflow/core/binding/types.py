# src/orgflow/core/binding/types.py
"""
Tipos canônicos de binding do orgflow.

Componentes principais:
    - BindingAction → decisão por target (CreateOrUpdate / Remove / None)
    - Target        → unidade de execução (task × conta × região)
    - PluginBinding → tripla imutável (action, target, task) consumida por
                      exatamente uma invocação de plugin

Invariantes:
    - `Target.key` identifica unicamente um target dentro de uma run
    - Bindings nunca são alterados depois de criados
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class BindingAction(str, Enum):
    """
    Ação decidida pelo Binding Builder para um target.

    Os valores são strings para facilitar serialização no resumo da run.

    Ações definidas:
        - CREATE_OR_UPDATE: hash diferente do último commit (ou ausente)
        - REMOVE: target presente no estado mas não mais selecionado
        - NONE: hash inalterado; filtrado antes da execução
    """
    CREATE_OR_UPDATE = "CreateOrUpdate"
    REMOVE = "Remove"
    NONE = "None"


def target_key(target_type: str, logical_name: str, account_id: str, region: str) -> str:
    """Chave estável de um target no estado persistido."""
    return f"{target_type}/{logical_name}/{account_id}/{region}"


@dataclass(frozen=True)
class Target:
    """
    Unidade de execução: uma task aplicada a uma conta em uma região.

    `last_committed_hash` vem do estado persistido (None quando o target
    nunca foi aplicado) e `definition` guarda a task associada; nenhum dos
    dois participa da identidade do target.
    """
    target_type: str
    logical_account_id: str
    account_id: str
    region: str
    logical_name: str
    last_committed_hash: Optional[str] = field(default=None, compare=False)
    definition: Any = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> str:
        return target_key(self.target_type, self.logical_name, self.account_id, self.region)


@dataclass(frozen=True)
class PluginBinding:
    """Binding imutável produzido pelo Binding Builder para uma run."""
    action: BindingAction
    target: Target
    task: Any
