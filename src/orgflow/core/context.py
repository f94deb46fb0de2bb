# src/orgflow/core/context.py
"""
Contexto de execução de uma run do orgflow.

O RunContext é o meio canônico de:
    - identificar a run (run_id, created_at)
    - carregar a configuração efetiva e os settings tipados
    - registrar eventos de log estruturados
    - coletar warnings não fatais por escopo (target key ou grupo)

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Logs são dados estruturados, não texto livre
    - Workers registram eventos concorrentemente; toda escrita é serializada

Limites explícitos:
    - Não executa bindings
    - Não persiste eventos automaticamente (ver `traceability.summary`)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from orgflow.core.config.settings import RunSettings


@dataclass
class RunContext:
    """
    Contexto compartilhado de uma run.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config: configuração efetiva (defaults + local deep-merge)
    - settings: configuração validada (limites, force deploy, paths)
    - meta: metadados livres (ex.: caminho do template, origem)
    - events: log estruturado de eventos
    - warnings: warnings por escopo
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any] = field(default_factory=dict)
    settings: RunSettings = field(default_factory=RunSettings)
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _lock: Any = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    @classmethod
    def from_config(cls, *, run_id: str, config: Dict[str, Any], **meta: Any) -> "RunContext":
        return cls(
            run_id=run_id,
            created_at=datetime.now(timezone.utc),
            config=config,
            settings=RunSettings.from_config(config),
            meta=dict(meta),
        )

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, scope: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "scope": scope,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, scope: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(scope, []).append(message)

    def events_for(self, scope: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self.events if e.get("scope") == scope]
