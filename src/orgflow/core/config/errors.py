# src/orgflow/core/config/errors.py
"""
Exceções canônicas da camada de configuração do orgflow.

Este módulo define a hierarquia de exceções utilizadas durante o
carregamento, merge e validação estrutural da configuração da run.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Mensagens de erro são claras e direcionadas ao operador

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção aqui representa falha de binding ou de plugin
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração da run.

    Permite captura genérica de erros de configuração e distinção clara
    entre falhas estruturais (antes da run) e falhas de execução de
    bindings (durante a run).
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    Decisões arquiteturais:
        - O arquivo de defaults é obrigatório
        - Sem defaults não existe configuração efetiva válida
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"max_concurrent_groups": 4}}
        - override: {"engine": "fast"}

    Limites explícitos:
        - Não realiza coerção ou conversão de tipos
        - Não tenta resolver conflitos automaticamente
    """


class InvalidSettingError(ConfigError):
    """
    Exceção levantada quando um valor da configuração efetiva não respeita
    o domínio esperado (ex.: limite de concorrência menor que 1).
    """
