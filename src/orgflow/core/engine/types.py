# src/orgflow/core/engine/types.py
"""
Tipos canônicos de resultado da execução de bindings.

Componentes principais:
    - BindingStatus → ciclo de vida de um binding durante a run
    - BindingResult → resultado imutável de um binding
    - GroupResult   → resultado de um grupo (target_type, logical_name)
    - RunResult     → agregado da run, com exit code derivado

Princípios fundamentais:
    - Tipos são estáveis e serializáveis (`to_dict`)
    - Erros aparecem como `OrgflowErrorPayload.to_dict()`, nunca como stack trace
    - Nenhuma lógica de execução vive neste módulo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class BindingStatus(str, Enum):
    """
    Estados de um binding.

    Transições válidas:
        PENDING → RUNNING → SUCCEEDED | FAILED
        PENDING → SKIPPED (grupo abandonado após exceder a tolerância)
    """
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class BindingResult:
    key: str
    action: str
    target_type: str
    logical_name: str
    logical_account_id: str
    account_id: str
    region: str
    status: BindingStatus
    command_line: Optional[str] = None
    exit_code: Optional[int] = None
    duration_ms: int = 0
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "action": self.action,
            "target_type": self.target_type,
            "logical_name": self.logical_name,
            "logical_account_id": self.logical_account_id,
            "account_id": self.account_id,
            "region": self.region,
            "status": self.status.value,
            "command_line": self.command_line,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


@dataclass(frozen=True)
class GroupResult:
    """
    Resultado de um grupo de bindings da mesma task.

    `error` só é preenchido quando a tolerância de falhas foi excedida;
    falhas dentro da tolerância aparecem apenas nos bindings.
    """
    target_type: str
    logical_name: str
    max_concurrent: int
    failed_tolerance: int
    bindings: List[BindingResult] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> str:
        return f"{self.target_type}/{self.logical_name}"

    @property
    def failed(self) -> bool:
        return self.error is not None

    def count(self, status: BindingStatus) -> int:
        return sum(1 for b in self.bindings if b.status == status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_type": self.target_type,
            "logical_name": self.logical_name,
            "max_concurrent": self.max_concurrent,
            "failed_tolerance": self.failed_tolerance,
            "counts": {s.value: self.count(s) for s in BindingStatus if s not in (BindingStatus.PENDING, BindingStatus.RUNNING)},
            "bindings": [b.to_dict() for b in self.bindings],
            "error": self.error,
        }


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma run."""

    run_id: str
    groups: List[GroupResult] = field(default_factory=list)

    @property
    def failed_groups(self) -> List[GroupResult]:
        return [g for g in self.groups if g.failed]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed_groups else 0

    def binding(self, key: str) -> Optional[BindingResult]:
        for group in self.groups:
            for result in group.bindings:
                if result.key == key:
                    return result
        return None

    def all_bindings(self) -> List[BindingResult]:
        return [b for g in self.groups for b in g.bindings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "exit_code": self.exit_code,
            "groups": [g.to_dict() for g in self.groups],
        }
