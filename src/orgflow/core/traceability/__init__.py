# src/orgflow/core/traceability/__init__.py
"""Rastreabilidade das runs: resumo persistido em JSON."""
