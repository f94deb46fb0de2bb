# src/orgflow/core/expressions/ast.py
"""
AST das expressões intrínsecas do orgflow.

Valores de configuração de tasks podem conter um conjunto pequeno e fixo
de formas intrínsecas. Este módulo converte o valor declarativo bruto
(dict/list/escalar vindo do YAML) em uma árvore de nós tipados:

    - Literal      → qualquer valor sem forma intrínseca
    - Ref          → { Ref: "AWS::AccountId" | "AWS::Region" | <logicalAccount> }
    - GetAtt       → { Fn::GetAtt: [<logicalAccount>, <attributePath>] }
    - Sub          → { Fn::Sub: "<template>" } ou { Fn::Sub: ["<template>", {var: expr}] }
    - MappingNode  → dict comum cujos valores podem conter expressões
    - SequenceNode → lista comum cujos itens podem conter expressões

O template de um `Fn::Sub` é tokenizado aqui mesmo, de modo que erros de
sintaxe (placeholder não terminado, nome vazio) aparecem antes de qualquer
resolução.

Invariantes:
    - O parsing não consulta contexto e não tem efeitos colaterais
    - Um dict com chave intrínseca deve ter exatamente essa chave
    - Chaves `Fn::*` desconhecidas são rejeitadas (não viram literal)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Tuple, Union

from orgflow.core.exceptions import ResolutionError


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Ref:
    name: str


@dataclass(frozen=True)
class GetAtt:
    logical_id: str
    attribute_path: str


@dataclass(frozen=True)
class Placeholder:
    name: str


@dataclass(frozen=True)
class Sub:
    parts: Tuple[Union[str, Placeholder], ...]
    variables: Tuple[Tuple[str, "Node"], ...] = ()


@dataclass(frozen=True)
class MappingNode:
    items: Tuple[Tuple[str, "Node"], ...]


@dataclass(frozen=True)
class SequenceNode:
    items: Tuple["Node", ...]


Node = Union[Literal, Ref, GetAtt, Sub, MappingNode, SequenceNode]

INTRINSIC_KEYS = ("Ref", "Fn::GetAtt", "Fn::Sub")

_PLACEHOLDER = re.compile(r"\$\{([^}]*)\}")


def is_intrinsic(raw: Any) -> bool:
    """True quando `raw` é um dict cuja forma é intrínseca."""
    return isinstance(raw, dict) and any(k in INTRINSIC_KEYS or str(k).startswith("Fn::") for k in raw)


def parse_sub_template(template: str) -> Tuple[Union[str, Placeholder], ...]:
    """Tokeniza o template de um `Fn::Sub` em texto literal e placeholders.

    `${!Name}` é o escape para o texto literal `${Name}`.
    """
    if not isinstance(template, str):
        raise ResolutionError(
            message="Fn::Sub template must be a string",
            details={"received": type(template).__name__},
        )

    parts = []
    pos = 0
    for match in _PLACEHOLDER.finditer(template):
        if match.start() > pos:
            parts.append(template[pos:match.start()])
        name = match.group(1).strip()
        if name.startswith("!"):
            parts.append("${" + name[1:] + "}")
        elif not name:
            raise ResolutionError(
                message="Fn::Sub placeholder must not be empty",
                details={"template": template},
            )
        else:
            parts.append(Placeholder(name))
        pos = match.end()

    tail = template[pos:]
    if "${" in tail:
        raise ResolutionError(
            message="Fn::Sub placeholder is not terminated",
            details={"template": template},
            hint="Feche o placeholder com '}'",
        )
    if tail:
        parts.append(tail)

    # texto adjacente (ex.: escapes) é mesclado para manter a árvore mínima
    merged = []
    for part in parts:
        if merged and isinstance(part, str) and isinstance(merged[-1], str):
            merged[-1] = merged[-1] + part
        else:
            merged.append(part)
    return tuple(merged)


def _parse_ref(value: Any) -> Ref:
    if not isinstance(value, str) or not value.strip():
        raise ResolutionError(message="Ref must name a non-empty string", details={"received": repr(value)})
    return Ref(value.strip())


def _parse_get_att(value: Any) -> GetAtt:
    if isinstance(value, str) and "." in value:
        logical_id, path = value.split(".", 1)
        value = [logical_id, path]
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 2
        or not all(isinstance(v, str) and v.strip() for v in value)
    ):
        raise ResolutionError(
            message="Fn::GetAtt requires [<logicalAccountId>, <attributePath>]",
            details={"received": repr(value)},
        )
    return GetAtt(logical_id=value[0].strip(), attribute_path=value[1].strip())


def _parse_sub(value: Any) -> Sub:
    if isinstance(value, str):
        return Sub(parts=parse_sub_template(value))

    if isinstance(value, (list, tuple)) and len(value) == 2 and isinstance(value[1], dict):
        variables = tuple((str(k), parse_expression(v)) for k, v in value[1].items())
        return Sub(parts=parse_sub_template(value[0]), variables=variables)

    raise ResolutionError(
        message="Fn::Sub requires a template string or [template, variables]",
        details={"received": repr(value)},
    )


def parse_expression(raw: Any) -> Node:
    """
    Converte um valor declarativo bruto em um nó da AST.

    Raises:
        ResolutionError: se a expressão for malformada ou usar uma função
            intrínseca não suportada.
    """
    if isinstance(raw, dict):
        if is_intrinsic(raw):
            if len(raw) != 1:
                raise ResolutionError(
                    message="intrinsic function must be the only key of its mapping",
                    details={"keys": sorted(str(k) for k in raw)},
                )
            key, value = next(iter(raw.items()))
            if key == "Ref":
                return _parse_ref(value)
            if key == "Fn::GetAtt":
                return _parse_get_att(value)
            if key == "Fn::Sub":
                return _parse_sub(value)
            raise ResolutionError(
                message=f"unsupported intrinsic function: {key}",
                details={"function": key},
                hint="Apenas Ref, Fn::GetAtt e Fn::Sub são suportados",
            )
        return MappingNode(items=tuple((str(k), parse_expression(v)) for k, v in raw.items()))

    if isinstance(raw, (list, tuple)):
        return SequenceNode(items=tuple(parse_expression(v) for v in raw))

    return Literal(raw)
