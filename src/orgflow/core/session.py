# src/orgflow/core/session.py
"""
Ponto de entrada programático de uma run.

    ctx.settings ──► CommandContext ──► BindingBuilder ──► TaskOrchestrator ──► RunResult

Erros de template ou de configuração de task são levantados antes de
qualquer processo ser iniciado; falhas de binding nunca são levantadas,
aparecem no `RunResult`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from orgflow.core.binding.builder import build_bindings
from orgflow.core.context import RunContext
from orgflow.core.engine.orchestrator import TaskOrchestrator
from orgflow.core.engine.types import RunResult
from orgflow.core.plugins.plugin import CommandContext
from orgflow.core.plugins.registry import PluginRegistry
from orgflow.core.state.persisted_state import PersistedState
from orgflow.core.template.model import TemplateRoot
from orgflow.core.traceability.summary import save_run_summary


def command_context_for(ctx: RunContext) -> CommandContext:
    settings = ctx.settings
    return CommandContext(
        organization_file=settings.organization_file,
        default_max_concurrent_tasks=settings.default_max_concurrent_tasks,
        default_failed_task_tolerance=settings.default_failed_task_tolerance,
    )


def execute_run(
    template: TemplateRoot,
    state: PersistedState,
    registry: PluginRegistry,
    ctx: RunContext,
    *,
    force: Optional[bool] = None,
    summary_path: Optional[Union[str, Path]] = None,
) -> RunResult:
    force = ctx.settings.force_deploy if force is None else force

    bindings = build_bindings(template, state, registry, command_context_for(ctx), force=force)
    ctx.log(
        scope="run",
        level="info",
        message=f"{len(bindings)} binding(s) to execute",
        force=force,
    )

    orchestrator = TaskOrchestrator(registry=registry, template=template, state=state, ctx=ctx)
    result = orchestrator.run(bindings)

    if summary_path is not None:
        save_run_summary(result, summary_path, ctx)
    return result
