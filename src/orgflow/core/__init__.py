# src/orgflow/core/__init__.py
"""
Core do orgflow.

Princípios fundamentais:
    - Nenhuma falha silenciosa: erros são exceções tipadas ou payloads atribuídos a um target
    - O estado persistido só muda após um binding bem-sucedido
    - Execução de processos fica atrás de um contrato substituível (`ProcessRunner`)
"""
