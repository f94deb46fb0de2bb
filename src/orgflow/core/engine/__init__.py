# src/orgflow/core/engine/__init__.py
"""Execução concorrente de bindings agrupados por task."""
