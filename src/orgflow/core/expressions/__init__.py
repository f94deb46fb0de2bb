# src/orgflow/core/expressions/__init__.py
"""
Linguagem de expressões intrínsecas do orgflow.

    - ast      → parsing de Ref / Fn::GetAtt / Fn::Sub em nós tipados
    - resolver → avaliação recursiva contra um ResolutionContext por binding

Resolução é pura, idempotente e total para expressões bem formadas;
qualquer referência desconhecida falha com `ResolutionError`.
"""
