# src/orgflow/core/plugins/plugin.py
"""
Contrato canônico de plugin de task do orgflow.

Cada tipo de task (cdk, serverless.com, ...) é um plugin que satisfaz o
protocolo `TaskPlugin`. O conjunto de plugins é fechado e explícito:
novos tipos entram estendendo o registry montado no início da run, nunca
por descoberta dinâmica.

Responsabilidades de um plugin:
    - converter a configuração declarativa em argumentos tipados
    - produzir a task imutável (com content hash) a partir dos argumentos
    - executar create/update ou remove de um binding resolvido

Invariantes:
    - Exatamente uma invocação de processo por `perform_*`
    - O plugin nunca escreve no estado persistido
    - O plugin não faz retry

Decisões arquiteturais:
    - Conformidade por duck typing (`@runtime_checkable`), sem herança obrigatória
    - Falhas são exceções tipadas (`ResolutionError`, `PluginInvocationError`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from orgflow.core.binding.types import PluginBinding
from orgflow.core.process.runner import ProcessResult
from orgflow.core.state.persisted_state import PersistedState
from orgflow.core.template.model import TemplateRoot


@dataclass(frozen=True)
class CommandContext:
    """Valores da run repassados à conversão de configuração de tasks."""

    organization_file: Optional[str] = None
    default_max_concurrent_tasks: int = 1
    default_failed_task_tolerance: int = 0


@dataclass(frozen=True)
class InvocationResult:
    """Linha de comando efetivamente executada e o resultado do processo."""

    command_line: str
    result: ProcessResult


@runtime_checkable
class TaskPlugin(Protocol):
    """
    Protocolo de um plugin de task.

    Atributos obrigatórios:
        - type: discriminador igual ao `Type` da configuração (ex.: `cdk`)
        - type_for_task: palavra-chave usada em relatórios (ex.: `update-cdk`)
        - apply_globally: True quando a task roda uma única vez, não por target
    """
    type: str
    type_for_task: str
    apply_globally: bool

    def convert_to_command_args(self, config: Mapping[str, Any], context: CommandContext) -> Any:
        ...

    def convert_to_task(self, command_args: Any) -> Any:
        ...

    def task_from_dict(self, data: Mapping[str, Any]) -> Any:
        ...

    def task_to_dict(self, task: Any) -> Dict[str, Any]:
        ...

    def perform_create_or_update(
        self, binding: PluginBinding, template: TemplateRoot, state: PersistedState
    ) -> InvocationResult:
        ...

    def perform_remove(
        self, binding: PluginBinding, template: TemplateRoot, state: PersistedState
    ) -> InvocationResult:
        ...
