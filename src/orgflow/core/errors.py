# src/orgflow/core/errors.py
"""
orgflow - Estruturas canônicas de erro (v1)

Este módulo define o padrão canônico de erros reportados pelo orgflow.
Erros de binding fazem parte do resumo da run e devem ser:

- explícitos
- serializáveis
- atribuídos a um target
- acionáveis (o operador sabe em qual conta re-executar)

Nenhuma falha é engolida silenciosamente.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from orgflow.core.exceptions import (
    OrgflowException,
    PluginInvocationError,
    ResolutionError,
    TaskConfigurationError,
    TemplateError,
    ToleranceExceededError,
    UnknownTaskTypeError,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrgflowErrorPayload:
    """
    Payload canônico de erro do orgflow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados (target, action, exit code, ...)
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

RESOLUTION_ERROR = "RESOLUTION_ERROR"
TASK_CONFIGURATION_ERROR = "TASK_CONFIGURATION_ERROR"
UNKNOWN_TASK_TYPE = "UNKNOWN_TASK_TYPE"
PLUGIN_INVOCATION_ERROR = "PLUGIN_INVOCATION_ERROR"
TOLERANCE_EXCEEDED = "TOLERANCE_EXCEEDED"
TEMPLATE_ERROR = "TEMPLATE_ERROR"
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"

_TYPE_BY_EXCEPTION = {
    ResolutionError: RESOLUTION_ERROR,
    TaskConfigurationError: TASK_CONFIGURATION_ERROR,
    UnknownTaskTypeError: UNKNOWN_TASK_TYPE,
    PluginInvocationError: PLUGIN_INVOCATION_ERROR,
    ToleranceExceededError: TOLERANCE_EXCEEDED,
    TemplateError: TEMPLATE_ERROR,
}


def exception_to_error(exc: BaseException, **context: Any) -> OrgflowErrorPayload:
    """Converte exceções em OrgflowErrorPayload (serializável, acionável).

    Regras:
    - OrgflowException: código estável pelo catálogo, details preservados.
    - Outras exceções: encapsular como ENGINE_EXECUTION_ERROR sem stack trace.

    `context` (ex.: target, action) é mesclado em `details` sem sobrescrever
    chaves já presentes na exceção.
    """
    if isinstance(exc, OrgflowException):
        details = dict(context)
        details.update(exc.details or {})
        return OrgflowErrorPayload(
            type=_TYPE_BY_EXCEPTION.get(type(exc), type(exc).__name__),
            message=exc.message or "Erro de execução",
            details=details,
            hint=exc.hint,
        )

    details = dict(context)
    details["exception_class"] = exc.__class__.__name__
    return OrgflowErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details=details,
        hint="Verifique o log de eventos da run e a configuração da task",
    )
