# src/orgflow/core/config/settings.py
"""
Settings tipados da run.

Converte a configuração efetiva (dict resolvido pelo loader) em uma
estrutura imutável com defaults documentados, validada uma única vez
no início da run.

Chaves reconhecidas (v1):

    engine:
      max_concurrent_groups: 4          # teto de grupos de task em paralelo
      default_max_concurrent_tasks: 1   # usado quando a task não declara MaxConcurrentTasks
      default_failed_task_tolerance: 0  # usado quando a task não declara FailedTaskTolerance
      force_deploy: false               # ignora o content hash e reaplica tudo
    state:
      path: state.json
    organization_file: ./organization.yml
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidSettingError


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = (config or {}).get(name) or {}
    if not isinstance(value, dict):
        raise InvalidSettingError(f"config section '{name}' must be a mapping")
    return value


def _positive_int(value: Any, key: str, *, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSettingError(f"'{key}' must be an integer, got: {value!r}")
    if value < minimum:
        raise InvalidSettingError(f"'{key}' must be >= {minimum}, got: {value}")
    return value


@dataclass(frozen=True)
class RunSettings:
    """Configuração efetiva e validada de uma run."""

    max_concurrent_groups: int = 4
    default_max_concurrent_tasks: int = 1
    default_failed_task_tolerance: int = 0
    force_deploy: bool = False
    state_path: Optional[str] = None
    organization_file: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RunSettings":
        engine = _section(config, "engine")
        state = _section(config, "state")

        organization_file = (config or {}).get("organization_file")
        if organization_file is not None and not isinstance(organization_file, str):
            raise InvalidSettingError("'organization_file' must be a string")

        state_path = state.get("path")
        if state_path is not None and not isinstance(state_path, str):
            raise InvalidSettingError("'state.path' must be a string")

        return cls(
            max_concurrent_groups=_positive_int(
                engine.get("max_concurrent_groups", cls.max_concurrent_groups),
                "engine.max_concurrent_groups",
                minimum=1,
            ),
            default_max_concurrent_tasks=_positive_int(
                engine.get("default_max_concurrent_tasks", cls.default_max_concurrent_tasks),
                "engine.default_max_concurrent_tasks",
                minimum=1,
            ),
            default_failed_task_tolerance=_positive_int(
                engine.get("default_failed_task_tolerance", cls.default_failed_task_tolerance),
                "engine.default_failed_task_tolerance",
                minimum=0,
            ),
            force_deploy=bool(engine.get("force_deploy", False)),
            state_path=state_path,
            organization_file=organization_file,
        )
