# src/orgflow/core/traceability/summary.py
"""
Resumo persistido de uma run do orgflow.

O resumo consolida, em JSON determinístico:
    - identificação da run (run_id, created_at)
    - hash semântico da configuração efetiva (`inputs.config_hash`)
    - resultado por grupo e por binding (status, ação, target, erro)
    - exit code agregado
    - event log e warnings do RunContext, quando informado

Decisões arquiteturais:
    - UTC é o timezone canônico dos timestamps
    - `sort_keys=True` e indentação fixa: o mesmo conteúdo gera o mesmo arquivo
    - Diretórios intermediários são criados automaticamente

Limites explícitos:
    - Não é o estado persistido (ver `core.state`); apagar o resumo não afeta o diff
    - Não faz migração de schema
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from orgflow.core.config.hashing import compute_config_hash
from orgflow.core.context import RunContext
from orgflow.core.engine.types import RunResult

SUMMARY_VERSION = 1


def build_run_summary(result: RunResult, ctx: Optional[RunContext] = None) -> Dict[str, Any]:
    summary: Dict[str, Any] = {"version": SUMMARY_VERSION}
    summary.update(result.to_dict())
    if ctx is not None:
        summary["created_at"] = ctx.created_at.isoformat()
        summary["inputs"] = {"config_hash": compute_config_hash(ctx.config)}
        summary["meta"] = dict(ctx.meta)
        summary["events"] = list(ctx.events)
        summary["warnings"] = {k: list(v) for k, v in ctx.warnings.items()}
    return summary


def save_run_summary(
    result: RunResult,
    path: Union[str, Path],
    ctx: Optional[RunContext] = None,
) -> Path:
    """
    Persiste o resumo da run em JSON.

    Raises:
        OSError: falha ao criar diretórios ou escrever o arquivo.
        TypeError: conteúdo não serializável (ex.: meta com objetos arbitrários).
    """
    target = Path(path)
    data = build_run_summary(result, ctx)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
    return target


def load_run_summary(path: Union[str, Path]) -> Dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))
