# src/orgflow/core/plugins/serverless.py
"""
Plugin de task para o Serverless Framework (`Type: serverless.com`).

Diferenças em relação ao CDK:
    - parâmetros são achatados como `--param key=value`
    - `Stage` e `ConfigFile` viram flags do comando padrão
    - a região é sempre passada explicitamente (`--region ${AWS::Region}`)
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from orgflow.core.exceptions import TaskConfigurationError

from .base import NpmBuildTaskPlugin, NpmTask, NpmTaskCommandArgs


@dataclass(frozen=True)
class ServerlessComTaskCommandArgs(NpmTaskCommandArgs):
    stage: Optional[str] = None
    config_file: Optional[str] = None


def _optional_str(config: Mapping[str, Any], key: str) -> Optional[str]:
    value = config.get(key)
    if value is not None and not isinstance(value, str):
        raise TaskConfigurationError(
            message=f"'{key}' must be a string",
            details={"field": key, "received": repr(value), "logical_name": config.get("LogicalName")},
        )
    return value


class ServerlessComBuildTaskPlugin(NpmBuildTaskPlugin):
    type = "serverless.com"
    type_for_task = "update-serverless.com"
    apply_globally = False
    parameter_flag = "--param"

    args_class = ServerlessComTaskCommandArgs

    def _extra_args(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "stage": _optional_str(config, "Stage"),
            "config_file": _optional_str(config, "ConfigFile"),
        }

    def options_for(self, command_args: NpmTaskCommandArgs) -> Dict[str, Any]:
        return {
            "stage": getattr(command_args, "stage", None),
            "config_file": getattr(command_args, "config_file", None),
        }

    def _command(self, task: NpmTask, verb: str) -> Dict[str, Any]:
        # Stage e ConfigFile entram como variáveis do Fn::Sub: o valor nunca é
        # interpretado como placeholder e chega ao shell já citado
        template = self._npm_prefix(task) + f"npx sls {verb} --region ${{AWS::Region}}"
        variables: Dict[str, str] = {}
        if task.options.get("stage"):
            template += " --stage ${ServerlessStage}"
            variables["ServerlessStage"] = shlex.quote(task.options["stage"])
        if task.options.get("config_file"):
            template += " --config ${ServerlessConfigFile}"
            variables["ServerlessConfigFile"] = shlex.quote(task.options["config_file"])
        template += " ${CurrentTask.Parameters}"
        if not variables:
            return {"Fn::Sub": template}
        return {"Fn::Sub": [template, variables]}

    def default_deploy_command(self, task: NpmTask) -> Dict[str, Any]:
        return self._command(task, "deploy")

    def default_remove_command(self, task: NpmTask) -> Dict[str, Any]:
        return self._command(task, "remove")
