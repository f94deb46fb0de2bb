# src/orgflow/core/engine/orchestrator.py
"""
Orquestrador de execução do orgflow.

Recebe os bindings classificados pelo Binding Builder e os executa:

    bindings ──► grupos (target_type, logical_name)
             ──► pool externo (até `max_concurrent_groups` grupos em paralelo)
             ──► pool do grupo (até `max_concurrent` workers puxando o próximo binding)
             ──► plugin.perform_* ──► estado persistido (put / delete)

Política de falhas por grupo:
    - cada binding que falha incrementa o contador do grupo
    - quando `falhas > failed_tolerance`, nenhum binding novo é iniciado
    - bindings em andamento terminam normalmente (sem cancelamento forçado)
    - bindings nunca iniciados são reportados como SKIPPED
    - o grupo recebe um payload `TOLERANCE_EXCEEDED`

Decisões arquiteturais:
    - Threads (`ThreadPoolExecutor`): os workers passam o tempo esperando processos externos
    - Dentro de um grupo, CreateOrUpdate é iniciado antes de Remove
    - Grupos com CreateOrUpdate são submetidos antes de grupos só de Remove
    - Nenhum retry; a re-execução acontece em uma nova run

Invariantes:
    - O estado só muda após um `perform_*` bem-sucedido
    - Nunca há mais de `max_concurrent` bindings do mesmo grupo em execução
    - Toda exceção de binding vira `OrgflowErrorPayload` atribuído ao target
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict, deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple

from orgflow.core.binding.builder import state_metadata
from orgflow.core.binding.types import BindingAction, PluginBinding
from orgflow.core.context import RunContext
from orgflow.core.errors import exception_to_error
from orgflow.core.exceptions import ToleranceExceededError
from orgflow.core.plugins.registry import PluginRegistry
from orgflow.core.state.persisted_state import PersistedState
from orgflow.core.template.model import TemplateRoot

from .types import BindingResult, BindingStatus, GroupResult, RunResult

GroupKey = Tuple[str, str]


def group_bindings(bindings: Sequence[PluginBinding]) -> "OrderedDict[GroupKey, List[PluginBinding]]":
    """
    Agrupa por (target_type, logical_name) preservando a ordem de chegada.

    Dentro de cada grupo, CreateOrUpdate vem antes de Remove; grupos que
    contêm algum CreateOrUpdate vêm antes dos grupos só de Remove.
    """
    groups: "OrderedDict[GroupKey, List[PluginBinding]]" = OrderedDict()
    for binding in bindings:
        if binding.action == BindingAction.NONE:
            continue
        key = (binding.target.target_type, binding.target.logical_name)
        groups.setdefault(key, []).append(binding)

    def _creates_first(items: List[PluginBinding]) -> List[PluginBinding]:
        return [b for b in items if b.action == BindingAction.CREATE_OR_UPDATE] + [
            b for b in items if b.action == BindingAction.REMOVE
        ]

    ordered: "OrderedDict[GroupKey, List[PluginBinding]]" = OrderedDict()
    for only_removes in (False, True):
        for key, items in groups.items():
            has_create = any(b.action == BindingAction.CREATE_OR_UPDATE for b in items)
            if has_create != only_removes:
                ordered[key] = _creates_first(items)
    return ordered


class TaskOrchestrator:
    """Executor concorrente de bindings com tolerância a falhas por grupo."""

    def __init__(
        self,
        *,
        registry: PluginRegistry,
        template: TemplateRoot,
        state: PersistedState,
        ctx: RunContext,
    ):
        self.registry = registry
        self.template = template
        self.state = state
        self.ctx = ctx
        self._status: Dict[str, BindingStatus] = {}
        self._status_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Status observável
    # ------------------------------------------------------------------
    def status_of(self, key: str) -> Optional[BindingStatus]:
        with self._status_lock:
            return self._status.get(key)

    def _set_status(self, key: str, status: BindingStatus) -> None:
        with self._status_lock:
            self._status[key] = status

    # ------------------------------------------------------------------
    # Limites por grupo
    # ------------------------------------------------------------------
    def _limits(self, bindings: Sequence[PluginBinding]) -> Tuple[int, int]:
        settings = self.ctx.settings
        task = bindings[0].task
        max_concurrent = getattr(task, "max_concurrent", None) or settings.default_max_concurrent_tasks
        failed_tolerance = getattr(task, "failed_tolerance", None)
        if failed_tolerance is None:
            failed_tolerance = settings.default_failed_task_tolerance
        return max(1, int(max_concurrent)), max(0, int(failed_tolerance))

    # ------------------------------------------------------------------
    # Execução de um binding
    # ------------------------------------------------------------------
    def _execute(self, binding: PluginBinding) -> BindingResult:
        target = binding.target
        key = target.key
        action = binding.action.value
        self._set_status(key, BindingStatus.RUNNING)
        self.ctx.log(scope=key, level="info", message=f"{action} started", action=action)

        started = time.monotonic()
        command_line: Optional[str] = None
        exit_code: Optional[int] = None
        try:
            plugin = self.registry.get(target.target_type)
            if binding.action == BindingAction.CREATE_OR_UPDATE:
                invocation = plugin.perform_create_or_update(binding, self.template, self.state)
                self.state.put(key, binding.task.hash, state_metadata(plugin, binding))
            else:
                invocation = plugin.perform_remove(binding, self.template, self.state)
                self.state.delete(key)
            command_line = invocation.command_line
            exit_code = invocation.result.exit_code
        except Exception as exc:
            error = exception_to_error(exc, target=key, action=action)
            self._set_status(key, BindingStatus.FAILED)
            self.ctx.log(
                scope=key,
                level="error",
                message=error.message,
                action=action,
                error=error.to_dict(),
            )
            return self._result(
                binding,
                BindingStatus.FAILED,
                command_line=error.details.get("command"),
                exit_code=error.details.get("exit_code"),
                duration_ms=int((time.monotonic() - started) * 1000),
                error=error.to_dict(),
            )

        self._set_status(key, BindingStatus.SUCCEEDED)
        self.ctx.log(
            scope=key,
            level="info",
            message=f"{action} succeeded",
            action=action,
            command_line=command_line,
        )
        return self._result(
            binding,
            BindingStatus.SUCCEEDED,
            command_line=command_line,
            exit_code=exit_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def _result(self, binding: PluginBinding, status: BindingStatus, **extra: Any) -> BindingResult:
        target = binding.target
        return BindingResult(
            key=target.key,
            action=binding.action.value,
            target_type=target.target_type,
            logical_name=target.logical_name,
            logical_account_id=target.logical_account_id,
            account_id=target.account_id,
            region=target.region,
            status=status,
            **extra,
        )

    # ------------------------------------------------------------------
    # Execução de um grupo
    # ------------------------------------------------------------------
    def run_group(self, group_key: GroupKey, bindings: Sequence[PluginBinding]) -> GroupResult:
        target_type, logical_name = group_key
        scope = f"{target_type}/{logical_name}"
        max_concurrent, failed_tolerance = self._limits(bindings)

        pending: Deque[PluginBinding] = deque(bindings)
        results: Dict[str, BindingResult] = {}
        lock = threading.Lock()
        counters = {"failed": 0}
        stop = threading.Event()

        for binding in bindings:
            self._set_status(binding.target.key, BindingStatus.PENDING)

        def worker() -> None:
            while True:
                with lock:
                    if stop.is_set() or not pending:
                        return
                    binding = pending.popleft()
                result = self._execute(binding)
                with lock:
                    results[binding.target.key] = result
                    if result.status == BindingStatus.FAILED:
                        counters["failed"] += 1
                        if counters["failed"] > failed_tolerance:
                            stop.set()

        self.ctx.log(
            scope=scope,
            level="info",
            message=f"group started with {len(bindings)} binding(s)",
            max_concurrent=max_concurrent,
            failed_tolerance=failed_tolerance,
        )

        workers = min(max_concurrent, len(bindings))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"orgflow-{logical_name}") as pool:
            futures = [pool.submit(worker) for _ in range(workers)]
            for future in as_completed(futures):
                future.result()

        for binding in pending:
            key = binding.target.key
            self._set_status(key, BindingStatus.SKIPPED)
            results[key] = self._result(binding, BindingStatus.SKIPPED)

        error = None
        if stop.is_set():
            skipped = [b.target.key for b in pending]
            exc = ToleranceExceededError(
                message=f"{counters['failed']} failure(s) exceeded tolerance {failed_tolerance} for {scope}",
                details={
                    "failed": counters["failed"],
                    "failed_tolerance": failed_tolerance,
                    "skipped": skipped,
                },
                hint="Corrija os targets com falha e re-execute; targets aplicados não serão repetidos",
            )
            error = exception_to_error(exc, group=scope).to_dict()
            self.ctx.log(scope=scope, level="error", message=exc.message, error=error)
        else:
            self.ctx.log(
                scope=scope,
                level="warning" if counters["failed"] else "info",
                message=f"group finished with {counters['failed']} failure(s)",
            )
            if counters["failed"]:
                self.ctx.add_warning(
                    scope=scope,
                    message=f"{counters['failed']} binding(s) failed within tolerance {failed_tolerance}",
                )

        return GroupResult(
            target_type=target_type,
            logical_name=logical_name,
            max_concurrent=max_concurrent,
            failed_tolerance=failed_tolerance,
            bindings=[results[b.target.key] for b in bindings],
            error=error,
        )

    # ------------------------------------------------------------------
    # Execução da run
    # ------------------------------------------------------------------
    def run(self, bindings: Sequence[PluginBinding]) -> RunResult:
        groups = group_bindings(bindings)
        if not groups:
            self.ctx.log(scope="run", level="info", message="nothing to do")
            return RunResult(run_id=self.ctx.run_id)

        self.ctx.log(scope="run", level="info", message=f"executing {len(groups)} group(s)")

        results: Dict[GroupKey, GroupResult] = {}
        max_groups = min(self.ctx.settings.max_concurrent_groups, len(groups))
        with ThreadPoolExecutor(max_workers=max_groups, thread_name_prefix="orgflow-group") as pool:
            futures = {pool.submit(self.run_group, key, items): key for key, items in groups.items()}
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        run_result = RunResult(run_id=self.ctx.run_id, groups=[results[key] for key in groups])
        self.ctx.log(
            scope="run",
            level="error" if run_result.exit_code else "info",
            message=f"run finished with exit code {run_result.exit_code}",
        )
        return run_result
