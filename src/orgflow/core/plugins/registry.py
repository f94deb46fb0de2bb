# src/orgflow/core/plugins/registry.py
"""
Registro explícito de plugins de task.

O `PluginRegistry` é montado uma única vez no início da run e resolve o
`Type` declarado de cada task para o plugin correspondente.

Decisões arquiteturais:
    - Não há descoberta dinâmica: todo tipo suportado é registrado explicitamente
    - Tipos duplicados são erro fatal no momento do registro
    - A ordem de registro é preservada

Invariantes:
    - Cada `plugin.type` é único no registry
    - `get` de um tipo não registrado falha com `UnknownTaskTypeError`

Limites explícitos:
    - Não executa tasks
    - Não interage com estado persistido
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from orgflow.core.exceptions import UnknownTaskTypeError
from orgflow.core.process.runner import ProcessRunner

from .cdk import CdkBuildTaskPlugin
from .plugin import TaskPlugin
from .serverless import ServerlessComBuildTaskPlugin


class DuplicatePluginTypeError(ValueError):
    """Dois plugins registrados com o mesmo `type`."""


@dataclass
class PluginRegistry:
    """Registro canônico de plugins indexado por `type`."""

    _plugins: Dict[str, TaskPlugin] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, plugin: TaskPlugin) -> None:
        plugin_type = getattr(plugin, "type", None)
        if not isinstance(plugin_type, str) or not plugin_type.strip():
            raise ValueError("plugin.type must be a non-empty string")

        if plugin_type in self._plugins:
            raise DuplicatePluginTypeError(f"Duplicate plugin type: {plugin_type}")

        self._plugins[plugin_type] = plugin
        self._order.append(plugin_type)

    def has(self, plugin_type: str) -> bool:
        return plugin_type in self._plugins

    def get(self, plugin_type: str) -> TaskPlugin:
        if plugin_type not in self._plugins:
            raise UnknownTaskTypeError(
                message=f"no plugin registered for task type: {plugin_type}",
                details={"type": plugin_type, "registered": list(self._order)},
                hint="Verifique o campo Type da task",
            )
        return self._plugins[plugin_type]

    def types(self) -> List[str]:
        return list(self._order)

    def list(self) -> List[TaskPlugin]:
        return [self._plugins[t] for t in self._order]


def create_default_registry(runner: Optional[ProcessRunner] = None) -> PluginRegistry:
    """Registry com os plugins embutidos (cdk, serverless.com)."""
    registry = PluginRegistry()
    registry.add(CdkBuildTaskPlugin(runner=runner))
    registry.add(ServerlessComBuildTaskPlugin(runner=runner))
    return registry
