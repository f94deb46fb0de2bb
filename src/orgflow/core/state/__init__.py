# src/orgflow/core/state/__init__.py
"""
Estado persistido do orgflow (último hash aplicado por target).
"""
