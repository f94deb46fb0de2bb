# tests/conftest.py
"""
Fixtures compartilhados para testes do orgflow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas da run
- um template de organização básico (master + contas + OU)
- contexto de execução controlado (RunContext)
- um ProcessRunner falso que registra invocações

O objetivo destas fixtures é permitir testes do core (resolver,
plugins, builder e orquestrador) sem depender de:
- processos externos (npx, cdk, sls)
- credenciais ou chamadas AWS
- arquivos de estado reais

Decisões arquiteturais:
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas
    - O runner falso é thread-safe: o orquestrador o chama de vários workers

Invariantes:
    - Nenhuma fixture executa processos reais
    - Nenhuma fixture acessa a rede
"""

import threading
import time
from datetime import datetime, timezone

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def config_defaults_yaml() -> str:
    """YAML típico de `orgflow.defaults.yaml`."""
    return """\
engine:
  max_concurrent_groups: 4
  default_max_concurrent_tasks: 1
  default_failed_task_tolerance: 0
  force_deploy: false
state:
  path: state.json
organization_file: ./organization.yml
"""


@pytest.fixture
def config_local_yaml() -> str:
    """Overrides locais: mais paralelismo e force deploy."""
    return """\
engine:
  max_concurrent_groups: 8
  force_deploy: true
"""


@pytest.fixture
def run_config() -> dict:
    return {
        "engine": {
            "max_concurrent_groups": 4,
            "default_max_concurrent_tasks": 1,
            "default_failed_task_tolerance": 0,
            "force_deploy": False,
        },
        "organization_file": "./organization.yml",
    }


@pytest.fixture
def dummy_ctx(run_config):
    """
    RunContext determinístico para testes.

    `run_id` e `created_at` são fixos; settings derivados de `run_config`.
    """
    from orgflow.core.config.settings import RunSettings
    from orgflow.core.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=run_config,
        settings=RunSettings.from_config(run_config),
        meta={"source": "pytest"},
    )


# =====================================================
# Template fixtures
# =====================================================

@pytest.fixture
def basic_template_dict() -> dict:
    return {
        "DefaultRegion": "eu-central-1",
        "Accounts": {
            "MasterAccount": {
                "Type": "master",
                "AccountId": "1000000000001",
                "AccountName": "Organization Master",
                "RootEmail": "master@example.com",
            },
            "Account": {
                "AccountId": "1232342341235",
                "AccountName": "Account 1",
                "RootEmail": "account1@example.com",
                "Alias": "account-one",
                "Tags": {"key": "Value 123", "budget-alarm": "true"},
            },
            "Account2": {
                "AccountId": "1232342341236",
                "AccountName": "Account 2",
                "RootEmail": "account2@example.com",
                "Tags": {"key": "Value 567"},
            },
            "Account3": {"AccountId": "1232342341237", "AccountName": "Account 3"},
            "Account4": {"AccountId": "1232342341238", "AccountName": "Account 4"},
            "Account5": {"AccountId": "1232342341239", "AccountName": "Account 5"},
        },
        "OrganizationalUnits": {
            "DevOU": {"OrganizationalUnitName": "dev", "Accounts": ["Account2", {"Ref": "Account3"}]},
        },
        "Tasks": {},
    }


@pytest.fixture
def basic_template(basic_template_dict):
    from orgflow.core.template.model import TemplateRoot

    return TemplateRoot.from_dict(basic_template_dict)


@pytest.fixture
def template_with_tasks(basic_template_dict):
    """Factory: template básico com as tasks informadas em `Tasks`."""
    from orgflow.core.template.model import TemplateRoot

    def _build(tasks: dict):
        data = dict(basic_template_dict)
        data["Tasks"] = tasks
        return TemplateRoot.from_dict(data)

    return _build


# =====================================================
# Process runner fake
# =====================================================

@pytest.fixture
def FakeRunner():
    """
    Classe de ProcessRunner falso.

    - registra cada chamada em `calls` (command_line, env, account, cwd)
    - `exit_codes`: account_id → exit code (default 0)
    - `delay`: segundos de espera por chamada, para observar concorrência
    - `max_in_flight`: maior número de chamadas simultâneas observado
    """
    from orgflow.core.process.runner import ProcessResult

    class _FakeRunner:
        def __init__(self, exit_codes=None, delay: float = 0.0):
            self.exit_codes = dict(exit_codes or {})
            self.delay = delay
            self.calls = []
            self.in_flight = 0
            self.max_in_flight = 0
            self._lock = threading.Lock()

        def run(self, command_line, env, account_context, *, cwd=None):
            with self._lock:
                self.calls.append(
                    {
                        "command_line": command_line,
                        "env": dict(env),
                        "account": account_context,
                        "cwd": cwd,
                    }
                )
                self.in_flight += 1
                self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                if self.delay:
                    time.sleep(self.delay)
                code = self.exit_codes.get(account_context.account_id, 0)
                stderr = "" if code == 0 else f"failed in {account_context.account_id}"
                return ProcessResult(exit_code=code, stdout="ok", stderr=stderr)
            finally:
                with self._lock:
                    self.in_flight -= 1

        @property
        def last_command(self):
            return self.calls[-1]["command_line"]

        def accounts_called(self):
            return sorted(c["account"].account_id for c in self.calls)

    return _FakeRunner


@pytest.fixture
def fake_runner(FakeRunner):
    return FakeRunner()
