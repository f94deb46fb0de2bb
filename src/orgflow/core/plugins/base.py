# src/orgflow/core/plugins/base.py
"""
Base compartilhada dos plugins de build baseados em npm.

CDK e Serverless Framework seguem o mesmo ciclo:

    config declarativa → NpmTaskCommandArgs → NpmTask (com content hash)
    binding → ResolutionContext → parâmetros resolvidos → comando resolvido
            → uma invocação do ProcessRunner na conta/região do target

Os plugins concretos definem apenas o discriminador, o prefixo usado para
achatar parâmetros e os comandos padrão de deploy/remove.

Defaults explícitos (resolvidos uma única vez em `convert_to_command_args`):
    - RunNpmBuild = False
    - RunNpmInstall = False
    - CustomDeployCommand / CustomRemoveCommand = None (usa o comando padrão)
    - Parameters = None (achata para nenhum token)
    - MaxConcurrentTasks / FailedTaskTolerance = defaults da run
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

from orgflow.core.binding.types import PluginBinding
from orgflow.core.config.hashing import compute_task_hash
from orgflow.core.exceptions import PluginInvocationError, TaskConfigurationError
from orgflow.core.expressions.resolver import (
    ResolutionContext,
    resolve_parameters,
    resolve_value,
    to_text,
)
from orgflow.core.process.runner import AccountContext, ProcessRunner, SubprocessRunner
from orgflow.core.state.persisted_state import PersistedState
from orgflow.core.template.model import OrganizationBinding, TemplateRoot

from .plugin import CommandContext, InvocationResult

# limite de saída anexada ao erro (o restante fica no log de eventos)
_OUTPUT_TAIL = 4000


@dataclass(frozen=True)
class NpmTaskCommandArgs:
    name: str
    path: str
    organization_binding: OrganizationBinding
    organization_file: Optional[str] = None
    file_path: Optional[str] = None
    max_concurrent: int = 1
    failed_tolerance: int = 0
    task_role_name: Optional[str] = None
    run_npm_build: bool = False
    run_npm_install: bool = False
    custom_deploy_command: Any = None
    custom_remove_command: Any = None
    parameters: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class NpmTask:
    """Task imutável pronta para binding; `hash` identifica seu conteúdo."""

    name: str
    type: str
    path: str
    hash: str
    run_npm_build: bool = False
    run_npm_install: bool = False
    parameters: Optional[Dict[str, Any]] = None
    custom_deploy_command: Any = None
    custom_remove_command: Any = None
    task_role_name: Optional[str] = None
    max_concurrent: int = 1
    failed_tolerance: int = 0
    options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NpmTask":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in dict(data).items() if k in known})


def _require_str(config: Mapping[str, Any], key: str, task_type: str) -> str:
    value = config.get(key)
    if not isinstance(value, str) or not value.strip():
        raise TaskConfigurationError(
            message=f"task of type {task_type} requires '{key}'",
            details={"field": key, "logical_name": config.get("LogicalName")},
        )
    return value


def _int_setting(config: Mapping[str, Any], key: str, default: int, *, minimum: int) -> int:
    value = config.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise TaskConfigurationError(
            message=f"'{key}' must be an integer >= {minimum}",
            details={"field": key, "received": repr(value), "logical_name": config.get("LogicalName")},
        )
    return value


def _bool_setting(config: Mapping[str, Any], key: str) -> bool:
    value = config.get(key, False)
    if not isinstance(value, bool):
        raise TaskConfigurationError(
            message=f"'{key}' must be a boolean",
            details={"field": key, "received": repr(value), "logical_name": config.get("LogicalName")},
        )
    return value


class NpmBuildTaskPlugin(ABC):
    """Implementação comum; subclasses definem tipo e comandos padrão."""

    type: str = ""
    type_for_task: str = ""
    apply_globally: bool = False
    parameter_flag: str = "-c"

    args_class = NpmTaskCommandArgs

    def __init__(self, runner: Optional[ProcessRunner] = None):
        self.runner: ProcessRunner = runner if runner is not None else SubprocessRunner()

    # ------------------------------------------------------------------
    # Configuração → argumentos → task
    # ------------------------------------------------------------------
    def _extra_args(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        return {}

    def convert_to_command_args(self, config: Mapping[str, Any], context: CommandContext) -> NpmTaskCommandArgs:
        declared_type = config.get("Type")
        if declared_type is not None and declared_type != self.type:
            raise TaskConfigurationError(
                message=f"plugin {self.type} cannot convert task of type {declared_type}",
                details={"logical_name": config.get("LogicalName")},
            )

        parameters = config.get("Parameters")
        if parameters is not None and not isinstance(parameters, Mapping):
            raise TaskConfigurationError(
                message="'Parameters' must be a mapping",
                details={"logical_name": config.get("LogicalName")},
            )

        return self.args_class(
            name=_require_str(config, "LogicalName", self.type),
            path=_require_str(config, "Path", self.type),
            organization_binding=OrganizationBinding.from_config(config.get("OrganizationBinding")),
            organization_file=context.organization_file,
            file_path=config.get("FilePath"),
            max_concurrent=_int_setting(
                config, "MaxConcurrentTasks", context.default_max_concurrent_tasks, minimum=1
            ),
            failed_tolerance=_int_setting(
                config, "FailedTaskTolerance", context.default_failed_task_tolerance, minimum=0
            ),
            task_role_name=config.get("TaskRoleName"),
            run_npm_build=_bool_setting(config, "RunNpmBuild"),
            run_npm_install=_bool_setting(config, "RunNpmInstall"),
            custom_deploy_command=config.get("CustomDeployCommand"),
            custom_remove_command=config.get("CustomRemoveCommand"),
            parameters=dict(parameters) if parameters is not None else None,
            **self._extra_args(config),
        )

    def options_for(self, command_args: NpmTaskCommandArgs) -> Dict[str, Any]:
        """Opções específicas do tipo, guardadas em `NpmTask.options`."""
        return {}

    def values_for_equality(self, command_args: NpmTaskCommandArgs) -> Dict[str, Any]:
        return {
            "name": command_args.name,
            "type": self.type,
            "path": command_args.path,
            "file_path": command_args.file_path,
            "run_npm_build": command_args.run_npm_build,
            "run_npm_install": command_args.run_npm_install,
            "parameters": command_args.parameters,
            "custom_deploy_command": command_args.custom_deploy_command,
            "custom_remove_command": command_args.custom_remove_command,
            "options": self.options_for(command_args),
        }

    def convert_to_task(self, command_args: NpmTaskCommandArgs) -> NpmTask:
        return NpmTask(
            name=command_args.name,
            type=self.type,
            path=command_args.path,
            hash=compute_task_hash(self.values_for_equality(command_args)),
            run_npm_build=command_args.run_npm_build,
            run_npm_install=command_args.run_npm_install,
            parameters=command_args.parameters,
            custom_deploy_command=command_args.custom_deploy_command,
            custom_remove_command=command_args.custom_remove_command,
            task_role_name=command_args.task_role_name,
            max_concurrent=command_args.max_concurrent,
            failed_tolerance=command_args.failed_tolerance,
            options=self.options_for(command_args),
        )

    def task_to_dict(self, task: NpmTask) -> Dict[str, Any]:
        return task.to_dict()

    def task_from_dict(self, data: Mapping[str, Any]) -> NpmTask:
        return NpmTask.from_dict(data)

    # ------------------------------------------------------------------
    # Comandos padrão
    # ------------------------------------------------------------------
    def _npm_prefix(self, task: NpmTask) -> str:
        prefix = ""
        if task.run_npm_install:
            prefix += "npm ci && "
        if task.run_npm_build:
            prefix += "npm run build && "
        return prefix

    @abstractmethod
    def default_deploy_command(self, task: NpmTask) -> Any:
        """Comando padrão de deploy (valor declarativo, resolvido por target)."""

    @abstractmethod
    def default_remove_command(self, task: NpmTask) -> Any:
        """Comando padrão de remoção."""

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def perform_create_or_update(
        self, binding: PluginBinding, template: TemplateRoot, state: PersistedState
    ) -> InvocationResult:
        command = binding.task.custom_deploy_command
        if command is None:
            command = self.default_deploy_command(binding.task)
        return self._invoke(binding, template, command)

    def perform_remove(
        self, binding: PluginBinding, template: TemplateRoot, state: PersistedState
    ) -> InvocationResult:
        command = binding.task.custom_remove_command
        if command is None:
            command = self.default_remove_command(binding.task)
        return self._invoke(binding, template, command)

    def _invoke(self, binding: PluginBinding, template: TemplateRoot, command: Any) -> InvocationResult:
        task: NpmTask = binding.task
        target = binding.target

        ctx = ResolutionContext(
            target=target,
            template=template,
            parameters=task.parameters,
            parameter_flag=self.parameter_flag,
        )
        # parâmetros são resolvidos antes do comando para falhar cedo
        resolve_parameters(ctx)
        command_line = to_text(resolve_value(command, ctx)).strip()

        account = AccountContext(
            account_id=target.account_id,
            region=target.region,
            role_name=task.task_role_name,
            logical_account_id=target.logical_account_id,
        )
        result = self.runner.run(command_line, {}, account, cwd=task.path)

        if not result.succeeded:
            raise PluginInvocationError(
                message=f"{self.type_for_task} failed with exit code {result.exit_code}",
                details={
                    "target": target.key,
                    "account_id": target.account_id,
                    "region": target.region,
                    "command": command_line,
                    "exit_code": result.exit_code,
                    "output": result.output[-_OUTPUT_TAIL:],
                },
                hint="Corrija a falha e re-execute apenas as contas afetadas",
            )

        return InvocationResult(command_line=command_line, result=result)
