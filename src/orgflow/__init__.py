# src/orgflow/__init__.py
"""
orgflow: orquestração de tasks de deploy em várias contas e regiões AWS.

Arquitetura em alto nível:
    - core.template     → grafo de contas, OUs e definições de task
    - core.expressions  → resolução de Ref / Fn::GetAtt / Fn::Sub por target
    - core.plugins      → contrato de plugin, CDK, Serverless Framework e registry
    - core.binding      → diff template × estado persistido em bindings
    - core.engine       → execução concorrente com tolerância a falhas por task
    - core.state        → estado aplicado por target (JSON)
    - core.traceability → resumo persistido da run

Limites explícitos:
    - Não faz parsing completo de templates de organização
    - Não gerencia o ciclo de vida de recursos na nuvem diretamente
"""
