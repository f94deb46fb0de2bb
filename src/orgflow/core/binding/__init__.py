# src/orgflow/core/binding/__init__.py
"""
Binding Builder do orgflow.

Este pacote transforma as tasks lógicas do template, cruzadas com o
estado persistido, em bindings concretos por target:

    - types   → BindingAction, Target, PluginBinding
    - builder → expansão de OrganizationBinding e classificação por hash

O builder apenas classifica. A ordem e a concorrência de execução são
responsabilidade do engine.
"""
