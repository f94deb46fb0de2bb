# src/orgflow/core/process/__init__.py
"""
Executor de processos externos do orgflow.

Contrato: `run(command_line, env, account_context) -> ProcessResult`.
O core trata exit code != 0 como falha e repassa a saída combinada
para diagnóstico.
"""
