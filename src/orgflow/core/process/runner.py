# src/orgflow/core/process/runner.py
"""
Execução de processos externos por conta.

O core do orgflow apenas monta a linha de comando e decide quando
invocá-la. Este módulo define o contrato do executor e uma implementação
baseada em `subprocess`:

    - AccountContext        → conta, região e role sob os quais o comando roda
    - ProcessResult         → exit code + stdout/stderr
    - ProcessRunner         → protocolo consumido pelos plugins
    - SubprocessRunner      → executor via shell, com ambiente por conta
    - StsRoleCredentialsProvider → credenciais temporárias via STS AssumeRole

Decisões arquiteturais:
    - Exit code != 0 não levanta exceção aqui; o plugin decide
    - Comando que não pode ser iniciado retorna exit code 127
    - Região e credenciais da conta são exportadas via variáveis de ambiente
      para que a ferramenta subjacente autentique na conta correta
    - Nenhum retry acontece nesta camada
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from orgflow.core.exceptions import PluginInvocationError

EXIT_CANNOT_START = 127
EXIT_TIMEOUT = 124


@dataclass(frozen=True)
class AccountContext:
    account_id: str
    region: str
    role_name: Optional[str] = None
    logical_account_id: Optional[str] = None


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Saída combinada, usada em diagnósticos."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


@runtime_checkable
class ProcessRunner(Protocol):
    def run(
        self,
        command_line: str,
        env: Mapping[str, str],
        account_context: AccountContext,
        *,
        cwd: Optional[str] = None,
    ) -> ProcessResult:
        ...


@runtime_checkable
class CredentialsProvider(Protocol):
    def environment_for(self, account_context: AccountContext) -> Dict[str, str]:
        ...


class StsRoleCredentialsProvider:
    """Assume `arn:aws:iam::<account>:role/<role>` e exporta as credenciais.

    Sem `role_name` no contexto, nenhuma credencial é exportada e a
    ferramenta usa as credenciais do ambiente atual.
    """

    def __init__(
        self,
        *,
        session_name: str = "orgflow",
        duration_seconds: int = 3600,
        client: Any = None,
    ):
        self.session_name = session_name
        self.duration_seconds = duration_seconds
        self._client = client

    def _sts(self) -> Any:
        if self._client is None:
            self._client = boto3.client("sts")
        return self._client

    def environment_for(self, account_context: AccountContext) -> Dict[str, str]:
        if not account_context.role_name:
            return {}

        role_arn = f"arn:aws:iam::{account_context.account_id}:role/{account_context.role_name}"
        try:
            response = self._sts().assume_role(
                RoleArn=role_arn,
                RoleSessionName=self.session_name,
                DurationSeconds=self.duration_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            code = "BotoCoreError"
            if isinstance(exc, ClientError):
                code = exc.response.get("Error", {}).get("Code", "ClientError")
            raise PluginInvocationError(
                message=f"unable to assume role {role_arn}",
                details={"role_arn": role_arn, "error_code": code},
                hint="Verifique se a role existe na conta e confia na conta de origem",
            ) from exc

        credentials = response["Credentials"]
        return {
            "AWS_ACCESS_KEY_ID": credentials["AccessKeyId"],
            "AWS_SECRET_ACCESS_KEY": credentials["SecretAccessKey"],
            "AWS_SESSION_TOKEN": credentials["SessionToken"],
        }


class SubprocessRunner:
    """Executa a linha de comando via shell com o ambiente da conta alvo."""

    def __init__(
        self,
        *,
        credentials: Optional[CredentialsProvider] = None,
        base_env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        self.credentials = credentials
        self.base_env = base_env
        self.timeout = timeout

    def build_env(self, env: Mapping[str, str], account_context: AccountContext) -> Dict[str, str]:
        full_env = dict(os.environ if self.base_env is None else self.base_env)
        full_env["AWS_REGION"] = account_context.region
        full_env["AWS_DEFAULT_REGION"] = account_context.region
        if self.credentials is not None:
            full_env.update(self.credentials.environment_for(account_context))
        full_env.update(env or {})
        return full_env

    def run(
        self,
        command_line: str,
        env: Mapping[str, str],
        account_context: AccountContext,
        *,
        cwd: Optional[str] = None,
    ) -> ProcessResult:
        full_env = self.build_env(env, account_context)
        try:
            completed = subprocess.run(
                command_line,
                shell=True,
                cwd=cwd,
                env=full_env,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            return ProcessResult(
                exit_code=EXIT_TIMEOUT,
                stderr=f"command timed out after {exc.timeout}s",
            )
        except OSError as exc:
            return ProcessResult(
                exit_code=EXIT_CANNOT_START,
                stderr=f"command could not be executed ({exc.strerror or exc})",
            )
        return ProcessResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
