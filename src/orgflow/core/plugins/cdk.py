# src/orgflow/core/plugins/cdk.py
"""Plugin de task para stacks AWS CDK (`Type: cdk`)."""

from __future__ import annotations

from typing import Any, Dict

from .base import NpmBuildTaskPlugin, NpmTask


class CdkBuildTaskPlugin(NpmBuildTaskPlugin):
    type = "cdk"
    type_for_task = "update-cdk"
    apply_globally = False
    parameter_flag = "-c"

    def default_deploy_command(self, task: NpmTask) -> Dict[str, Any]:
        return {
            "Fn::Sub": self._npm_prefix(task)
            + "npx cdk deploy --all --require-approval=never ${CurrentTask.Parameters}"
        }

    def default_remove_command(self, task: NpmTask) -> Dict[str, Any]:
        return {
            "Fn::Sub": self._npm_prefix(task)
            + "npx cdk destroy --all --force ${CurrentTask.Parameters}"
        }
