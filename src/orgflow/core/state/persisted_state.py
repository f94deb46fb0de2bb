# src/orgflow/core/state/persisted_state.py
"""
Estado persistido do orgflow.

Mapeamento durável `target key → StateEntry(hash, metadata)`:

    - hash: content hash da task no último apply bem-sucedido
    - metadata: identidade do target (tipo, logical name, conta, região)
      e a definição serializada da task, usada para remover targets cuja
      task já saiu do template

Ciclo de vida:
    - lido uma vez no início da run (diff)
    - escrito incrementalmente, uma entrada por binding bem-sucedido
    - nunca alterado por bindings que falharam

Decisões arquiteturais:
    - Operações são de entrada única; não há transações multi-chave
    - Cada escrita é atômica (lock em memória + os.replace no arquivo)
    - Persistência em JSON determinístico (sort_keys, indentação)
"""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

STATE_VERSION = 1


@dataclass(frozen=True)
class StateEntry:
    hash: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"hash": self.hash, "metadata": dict(self.metadata)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateEntry":
        return cls(hash=str(data.get("hash", "")), metadata=dict(data.get("metadata", {}) or {}))


class PersistedState:
    """Store chave-valor do último estado aplicado por target.

    Quando `path` é informado, cada `put`/`delete` regrava o arquivo.
    """

    def __init__(
        self,
        entries: Optional[Dict[str, StateEntry]] = None,
        *,
        path: Optional[Union[str, Path]] = None,
    ):
        self._entries: Dict[str, StateEntry] = dict(entries or {})
        self._lock = threading.Lock()
        self.path = Path(path) if path is not None else None

    # -----------------------------
    # Leitura
    # -----------------------------
    def get(self, key: str) -> Optional[StateEntry]:
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def entries_for(
        self,
        target_type: str,
        logical_name: Optional[str] = None,
    ) -> List[Tuple[str, StateEntry]]:
        """Entradas de um tipo de task (e, opcionalmente, de uma task)."""
        with self._lock:
            items = list(self._entries.items())
        found = []
        for key, entry in items:
            meta = entry.metadata
            if meta.get("target_type") != target_type:
                continue
            if logical_name is not None and meta.get("logical_name") != logical_name:
                continue
            found.append((key, entry))
        return found

    # -----------------------------
    # Escrita
    # -----------------------------
    def put(self, key: str, hash: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            entries = dict(self._entries)
            entries[key] = StateEntry(hash=hash, metadata=dict(metadata or {}))
            self._commit_locked(entries)

    def delete(self, key: str) -> None:
        with self._lock:
            entries = dict(self._entries)
            entries.pop(key, None)
            self._commit_locked(entries)

    # -----------------------------
    # Persistência
    # -----------------------------
    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return self._to_dict_locked()

    def _to_dict_locked(self, entries: Optional[Dict[str, StateEntry]] = None) -> Dict[str, Any]:
        entries = self._entries if entries is None else entries
        return {
            "version": STATE_VERSION,
            "targets": {k: v.to_dict() for k, v in entries.items()},
        }

    def _commit_locked(self, entries: Dict[str, StateEntry]) -> None:
        # o arquivo é gravado antes da troca: falha de escrita não altera a memória
        if self.path is not None:
            _write_json_atomic(self.path, self._to_dict_locked(entries))
        self._entries = entries

    def save(self, path: Optional[Union[str, Path]] = None) -> None:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("no path given to save persisted state")
        with self._lock:
            _write_json_atomic(target, self._to_dict_locked())

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, path: Optional[Union[str, Path]] = None) -> "PersistedState":
        targets = (data or {}).get("targets", {}) or {}
        return cls({k: StateEntry.from_dict(v) for k, v in targets.items()}, path=path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "PersistedState":
        """Carrega o estado de um arquivo JSON; arquivo ausente é estado vazio."""
        p = Path(path)
        if not p.exists():
            return cls(path=p)
        data = json.loads(p.read_text(encoding="utf-8"))
        return cls.from_dict(data, path=p)


def _write_json_atomic(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
    os.replace(tmp, path)
