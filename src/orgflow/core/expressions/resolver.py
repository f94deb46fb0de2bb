# src/orgflow/core/expressions/resolver.py
"""
Resolver de expressões intrínsecas do orgflow.

Este módulo avalia a AST produzida por `ast.parse_expression` contra um
`ResolutionContext`, construído por binding imediatamente antes de a task
ser executada em um target concreto.

Formas suportadas:
    - Ref AWS::AccountId / AWS::Region      → conta e região do target atual
    - Ref <logicalAccount>                  → account id da conta referenciada
    - Fn::GetAtt [<logicalAccount>, <path>] → atributo de qualquer conta do template
    - Fn::Sub                               → placeholders `${...}` resolvidos por nome

Placeholders de `Fn::Sub`, em ordem de precedência:
    - ${CurrentTask.Parameters} → parâmetros resolvidos achatados em tokens
                                  `-c key=value`, na ordem do mapa
    - ${CurrentAccount}         → account id do target atual
    - ${CurrentAccount.<path>}  → atributo da conta do target atual
    - ${<variável>}             → variável da forma [template, {var: expr}]
    - ${AWS::AccountId} / ${AWS::Region}
    - ${<conta>.<path>}         → mesmo que Fn::GetAtt
    - ${<conta>}                → mesmo que Ref

Decisões arquiteturais:
    - Resolução total: nenhum placeholder sobrevive à resolução
    - Referências desconhecidas falham com `ResolutionError`, nunca viram string vazia
    - A resolução é pura e idempotente (necessário para re-execuções)
    - Parâmetros ausentes achatam para uma sequência vazia de tokens

Limites explícitos:
    - Não executa comandos
    - Não lê nem escreve estado persistido
"""

from __future__ import annotations

import json
import shlex
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from orgflow.core.binding.types import Target
from orgflow.core.exceptions import ResolutionError
from orgflow.core.template.model import TemplateRoot

from .ast import (
    GetAtt,
    Literal,
    MappingNode,
    Node,
    Placeholder,
    Ref,
    SequenceNode,
    Sub,
    parse_expression,
)

CURRENT_ACCOUNT = "CurrentAccount"
CURRENT_TASK_PARAMETERS = "CurrentTask.Parameters"
PSEUDO_ACCOUNT_ID = "AWS::AccountId"
PSEUDO_REGION = "AWS::Region"


@dataclass(frozen=True)
class ResolutionContext:
    """
    Contexto de resolução de um único binding.

    Campos:
        - target: target atual (conta, região, logical account)
        - template: grafo do template, para lookups entre contas
        - parameters: parâmetros declarados da task (ainda não resolvidos)
        - parameter_flag: prefixo usado ao achatar parâmetros (`-c` no CDK)
    """
    target: Target
    template: TemplateRoot
    parameters: Optional[Mapping[str, Any]] = None
    parameter_flag: str = "-c"
    resolving_parameters: bool = False


# ---------------------------------------------------------------------------
# Conversões
# ---------------------------------------------------------------------------

def to_text(value: Any) -> str:
    """Converte um valor resolvido em texto para substituição."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        # datas e outros escalares do YAML viram texto dentro do JSON
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def flatten_parameters(parameters: Optional[Mapping[str, Any]], flag: str = "-c") -> str:
    """Achata parâmetros resolvidos em `-c key=value` separados por espaço."""
    if not parameters:
        return ""
    return " ".join(
        f"{flag} {key}={shlex.quote(to_text(value))}" for key, value in parameters.items()
    )


# ---------------------------------------------------------------------------
# Avaliação
# ---------------------------------------------------------------------------

def _account_attribute(ctx: ResolutionContext, logical_id: str, path: str) -> Any:
    if logical_id == CURRENT_ACCOUNT:
        logical_id = ctx.target.logical_account_id

    if not ctx.template.has_account(logical_id):
        raise ResolutionError(
            message=f"unknown logical account: {logical_id}",
            details={"logical_id": logical_id, "target": ctx.target.key},
            hint="Declare a conta no template ou corrija a referência",
        )

    current: Any = ctx.template.get_account(logical_id).attributes()
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current or current[segment] is None:
            raise ResolutionError(
                message=f"unknown attribute '{path}' on account {logical_id}",
                details={"logical_id": logical_id, "attribute_path": path, "target": ctx.target.key},
            )
        current = current[segment]
    return current


def _resolve_ref(name: str, ctx: ResolutionContext) -> Any:
    if name == PSEUDO_ACCOUNT_ID or name == CURRENT_ACCOUNT:
        return ctx.target.account_id
    if name == PSEUDO_REGION:
        return ctx.target.region
    if name.startswith("AWS::"):
        raise ResolutionError(
            message=f"unsupported pseudo parameter: {name}",
            details={"name": name, "target": ctx.target.key},
        )
    return _account_attribute(ctx, name, "AccountId")


def _resolve_placeholder(name: str, ctx: ResolutionContext, variables: Dict[str, Any]) -> Any:
    if name == CURRENT_TASK_PARAMETERS:
        if ctx.resolving_parameters:
            raise ResolutionError(
                message="parameters cannot reference ${CurrentTask.Parameters}",
                details={"target": ctx.target.key},
            )
        return flatten_parameters(resolve_parameters(ctx), ctx.parameter_flag)

    if name in variables:
        return variables[name]

    if name == CURRENT_ACCOUNT or name.startswith("AWS::"):
        return _resolve_ref(name, ctx)

    if "." in name:
        logical_id, path = name.split(".", 1)
        return _account_attribute(ctx, logical_id, path)

    return _resolve_ref(name, ctx)


def resolve(node: Node, ctx: ResolutionContext) -> Any:
    """Avalia recursivamente um nó da AST."""
    if isinstance(node, Literal):
        return node.value

    if isinstance(node, Ref):
        return _resolve_ref(node.name, ctx)

    if isinstance(node, GetAtt):
        return _account_attribute(ctx, node.logical_id, node.attribute_path)

    if isinstance(node, Sub):
        variables = {name: resolve(expr, ctx) for name, expr in node.variables}
        rendered = []
        for part in node.parts:
            if isinstance(part, Placeholder):
                rendered.append(to_text(_resolve_placeholder(part.name, ctx, variables)))
            else:
                rendered.append(part)
        return "".join(rendered)

    if isinstance(node, MappingNode):
        return {key: resolve(value, ctx) for key, value in node.items}

    if isinstance(node, SequenceNode):
        return [resolve(item, ctx) for item in node.items]

    raise ResolutionError(message=f"unknown expression node: {type(node).__name__}", details={})


def resolve_value(raw: Any, ctx: ResolutionContext) -> Any:
    """Faz parse e resolve um valor declarativo bruto."""
    return resolve(parse_expression(raw), ctx)


def resolve_parameters(ctx: ResolutionContext) -> Dict[str, Any]:
    """Resolve o mapa de parâmetros da task atual, preservando a ordem."""
    if not ctx.parameters:
        return {}
    inner = replace(ctx, resolving_parameters=True)
    return {str(key): resolve_value(value, inner) for key, value in ctx.parameters.items()}
