# src/orgflow/core/template/__init__.py
"""
Template de organização do orgflow.

Modelo em memória, somente leitura durante a run:
    - model  → Account, OrganizationalUnit, OrganizationBinding, TemplateRoot
    - loader → leitura de YAML/JSON para TemplateRoot
"""
