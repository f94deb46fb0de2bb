# src/orgflow/core/config/__init__.py
"""
Camada de configuração do orgflow.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Conversão para settings tipados e validados (`RunSettings`)
    - Hashing canônico (configuração da run e content hash de tasks)

Princípios fundamentais:
    - Configuração é declarativa e explícita
    - Nenhuma heurística implícita durante merge
    - A mesma entrada sempre produz a mesma configuração final
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidSettingError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash, compute_task_hash
from .loader import load_config
from .merge import deep_merge
from .settings import RunSettings

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidSettingError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "compute_task_hash",
    "load_config",
    "deep_merge",
    "RunSettings",
]
