# src/orgflow/core/exceptions.py
"""
orgflow - Exceções canônicas

Este módulo define as exceções tipadas internas do orgflow.

Objetivo:
- Permitir que resolver, plugins e orquestrador levantem exceções semânticas
- Facilitar o mapeamento determinístico para OrgflowErrorPayload
- Atribuir toda falha de binding a um target explícito

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`
- A mensagem é curta e humana
- Nenhuma exceção carrega stack trace para o operador
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class OrgflowException(Exception):
    """Base class para exceções internas do orgflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - `hint` indica ao operador onde corrigir
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Expressões
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResolutionError(OrgflowException):
    """Referência desconhecida, pseudo-parâmetro ausente ou expressão malformada."""


# ---------------------------------------------------------------------------
# Plugins / configuração de tasks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskConfigurationError(OrgflowException):
    """Configuração declarativa de task inválida ou incompleta."""


@dataclass(frozen=True)
class UnknownTaskTypeError(OrgflowException):
    """Nenhum plugin registrado para o `Type` da task."""


@dataclass(frozen=True)
class PluginInvocationError(OrgflowException):
    """Processo externo terminou com exit code != 0 ou não pôde ser iniciado."""


# ---------------------------------------------------------------------------
# Orquestração
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToleranceExceededError(OrgflowException):
    """Falhas de um grupo excederam `FailedTaskTolerance`."""


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TemplateError(OrgflowException):
    """Template de organização estruturalmente inválido (ids duplicados, refs quebradas)."""
