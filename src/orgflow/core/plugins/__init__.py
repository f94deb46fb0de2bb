# src/orgflow/core/plugins/__init__.py
"""Plugins de task: contrato, implementações embutidas e registry."""
