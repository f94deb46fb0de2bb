# src/orgflow/core/template/loader.py
"""Loader do template de organização (YAML/JSON).

O formato é inferido pela extensão do arquivo. O conteúdo é convertido
via `TemplateRoot.from_dict`; nenhuma expressão intrínseca é resolvida
neste estágio.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

import yaml

from orgflow.core.exceptions import TemplateError

from .model import TemplateRoot


def load_template(path: Union[str, Path]) -> TemplateRoot:
    """Carrega um template de organização a partir de YAML/JSON.

    Raises:
        TemplateError: se o arquivo não existir, o formato não for suportado
            ou o parsing falhar.
    """
    p = Path(path)
    if not p.exists():
        raise TemplateError(message=f"template file not found: {p}", details={"path": str(p)})

    suffix = p.suffix.lower()
    raw = p.read_text(encoding="utf-8")

    try:
        if suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(raw)
        elif suffix == ".json":
            data = json.loads(raw)
        else:
            raise TemplateError(
                message=f"unsupported template format: {suffix}",
                details={"path": str(p)},
            )
    except TemplateError:
        raise
    except Exception as e:
        raise TemplateError(
            message=str(e) or "failed to parse template",
            details={"path": str(p)},
        ) from e

    if data is None:
        raise TemplateError(message="template file is empty", details={"path": str(p)})

    return TemplateRoot.from_dict(data)
