# src/orgflow/core/binding/builder.py
"""
Binding Builder do orgflow.

Compara o template atual com o estado persistido e classifica cada target:

    template.tasks ──► plugin.convert_to_command_args ──► plugin.convert_to_task (hash)
                   ──► template.list_targets (ou master/default_region se global)
                   ──► diff com o estado ──► [PluginBinding]

Regras de classificação:
    - target selecionado, hash ausente ou diferente → CreateOrUpdate
    - target selecionado, hash igual              → omitido (NONE)
    - `force=True`                                → todo target selecionado é CreateOrUpdate
    - entrada do estado não mais selecionada      → Remove (task da definição salva)
    - entrada de um tipo registrado cuja task
      saiu do template                            → Remove

Limites explícitos:
    - Não executa bindings nem define ordem de execução
    - Não escreve no estado persistido
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Set, Tuple

from orgflow.core.exceptions import TaskConfigurationError, TemplateError
from orgflow.core.plugins.plugin import CommandContext, TaskPlugin
from orgflow.core.plugins.registry import PluginRegistry
from orgflow.core.state.persisted_state import PersistedState, StateEntry
from orgflow.core.template.model import TemplateRoot

from .types import BindingAction, PluginBinding, Target


@dataclass
class BindingBuilder:
    registry: PluginRegistry
    template: TemplateRoot
    state: PersistedState
    command_context: CommandContext = field(default_factory=CommandContext)
    force: bool = False

    def build(self) -> List[PluginBinding]:
        bindings: List[PluginBinding] = []
        declared: Set[Tuple[str, str]] = set()

        for config in self.template.tasks:
            task_type = config.get("Type")
            if not isinstance(task_type, str) or not task_type:
                raise TaskConfigurationError(
                    message="task must declare 'Type'",
                    details={"logical_name": config.get("LogicalName")},
                )
            plugin = self.registry.get(task_type)
            command_args = plugin.convert_to_command_args(config, self.command_context)
            task = plugin.convert_to_task(command_args)
            declared.add((plugin.type, command_args.name))
            bindings.extend(self._bindings_for_task(plugin, command_args, task))

        bindings.extend(self._orphan_removals(declared))
        return [b for b in bindings if b.action != BindingAction.NONE]

    # -----------------------------
    # Targets selecionados
    # -----------------------------
    def _selected_targets(self, plugin: TaskPlugin, command_args: Any, task: Any) -> List[Target]:
        if plugin.apply_globally:
            master = self.template.master_account
            if master is None or not self.template.default_region:
                raise TemplateError(
                    message=f"task {command_args.name} applies globally but the template has no master account or default region",
                    details={"logical_name": command_args.name, "type": plugin.type},
                )
            return [
                Target(
                    target_type=plugin.type,
                    logical_account_id=master.logical_id,
                    account_id=master.account_id,
                    region=self.template.default_region,
                    logical_name=command_args.name,
                    definition=task,
                )
            ]
        return self.template.list_targets(
            command_args.organization_binding,
            target_type=plugin.type,
            logical_name=command_args.name,
            definition=task,
        )

    def _bindings_for_task(self, plugin: TaskPlugin, command_args: Any, task: Any) -> List[PluginBinding]:
        bindings: List[PluginBinding] = []
        selected_keys: Set[str] = set()

        for target in self._selected_targets(plugin, command_args, task):
            entry = self.state.get(target.key)
            last_hash = entry.hash if entry is not None else None
            target = Target(
                target_type=target.target_type,
                logical_account_id=target.logical_account_id,
                account_id=target.account_id,
                region=target.region,
                logical_name=target.logical_name,
                last_committed_hash=last_hash,
                definition=task,
            )
            selected_keys.add(target.key)

            if self.force or last_hash != task.hash:
                action = BindingAction.CREATE_OR_UPDATE
            else:
                action = BindingAction.NONE
            bindings.append(PluginBinding(action=action, target=target, task=task))

        for key, entry in self.state.entries_for(plugin.type, command_args.name):
            if key in selected_keys:
                continue
            bindings.append(self._removal(plugin, key, entry))

        return bindings

    # -----------------------------
    # Remoções
    # -----------------------------
    def _orphan_removals(self, declared: Set[Tuple[str, str]]) -> List[PluginBinding]:
        bindings: List[PluginBinding] = []
        for plugin in self.registry.list():
            for key, entry in self.state.entries_for(plugin.type):
                if (plugin.type, entry.metadata.get("logical_name")) in declared:
                    continue
                bindings.append(self._removal(plugin, key, entry))
        return bindings

    def _removal(self, plugin: TaskPlugin, key: str, entry: StateEntry) -> PluginBinding:
        meta: Mapping[str, Any] = entry.metadata
        definition = meta.get("definition")
        missing = [
            name
            for name in ("logical_name", "logical_account_id", "account_id", "region")
            if not meta.get(name)
        ]
        if missing or not isinstance(definition, Mapping):
            raise TaskConfigurationError(
                message=f"state entry {key} cannot be removed: stored metadata is incomplete",
                details={"target": key, "missing": missing + ([] if isinstance(definition, Mapping) else ["definition"])},
                hint="Remova a entrada do arquivo de estado manualmente",
            )

        task = plugin.task_from_dict(definition)
        target = Target(
            target_type=plugin.type,
            logical_account_id=str(meta["logical_account_id"]),
            account_id=str(meta["account_id"]),
            region=str(meta["region"]),
            logical_name=str(meta["logical_name"]),
            last_committed_hash=entry.hash,
            definition=task,
        )
        return PluginBinding(action=BindingAction.REMOVE, target=target, task=task)


def build_bindings(
    template: TemplateRoot,
    state: PersistedState,
    registry: PluginRegistry,
    command_context: CommandContext = CommandContext(),
    *,
    force: bool = False,
) -> List[PluginBinding]:
    """Atalho funcional para `BindingBuilder(...).build()`."""
    return BindingBuilder(
        registry=registry,
        template=template,
        state=state,
        command_context=command_context,
        force=force,
    ).build()


def state_metadata(plugin: TaskPlugin, binding: PluginBinding) -> Dict[str, Any]:
    """Metadados gravados no estado após um CreateOrUpdate bem-sucedido."""
    target = binding.target
    return {
        "target_type": target.target_type,
        "logical_name": target.logical_name,
        "logical_account_id": target.logical_account_id,
        "account_id": target.account_id,
        "region": target.region,
        "definition": plugin.task_to_dict(binding.task),
    }
