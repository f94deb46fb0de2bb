# src/orgflow/core/template/model.py
"""
Grafo do template de organização (somente leitura).

Este módulo define o modelo em memória consumido pelo core do orgflow:
contas, unidades organizacionais e definições de task. O parsing completo
de templates de organização acontece fora do core; aqui existe apenas o
necessário para:

    - buscar uma conta por logical id (`get_account`)
    - expandir um `OrganizationBinding` em targets concretos (`list_targets`)

Decisões arquiteturais:
    - Todas as estruturas são imutáveis durante a run
    - Logical ids de contas são únicos no template
    - A ordem de declaração das contas é preservada na expansão
    - Referências a contas inexistentes são erro explícito (`TemplateError`)

Limites explícitos:
    - Não resolve expressões intrínsecas (ver `core.expressions`)
    - Não lê nem escreve estado persistido
    - Não conhece plugins
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from orgflow.core.binding.types import Target
from orgflow.core.exceptions import TemplateError


@dataclass(frozen=True)
class Account:
    """Conta AWS declarada no template."""

    logical_id: str
    account_id: str
    account_name: Optional[str] = None
    root_email: Optional[str] = None
    alias: Optional[str] = None
    tags: Mapping[str, str] = field(default_factory=dict)
    is_master: bool = False

    def attributes(self) -> Dict[str, Any]:
        """Atributos navegáveis via `Fn::GetAtt` (ex.: `Tags.key`)."""
        return {
            "LogicalId": self.logical_id,
            "AccountId": self.account_id,
            "AccountName": self.account_name,
            "RootEmail": self.root_email,
            "Alias": self.alias,
            "Tags": dict(self.tags),
        }


@dataclass(frozen=True)
class OrganizationalUnit:
    logical_id: str
    name: Optional[str] = None
    accounts: Tuple[str, ...] = ()


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _logical_ref(value: Any) -> str:
    """Aceita `Account2` ou `{Ref: Account2}`."""
    if isinstance(value, dict) and set(value.keys()) == {"Ref"}:
        value = value["Ref"]
    if not isinstance(value, str) or not value.strip():
        raise TemplateError(
            message="invalid account reference in OrganizationBinding",
            details={"reference": repr(value)},
            hint="Use o logical id da conta ou { Ref: <logicalId> }",
        )
    return value


@dataclass(frozen=True)
class OrganizationBinding:
    """
    Regra de seleção de contas e regiões de uma task.

    Campos reconhecidos (formato declarativo):
        - IncludeMasterAccount: inclui a conta master
        - Account: '*' (todas exceto master) ou lista de logical ids
        - ExcludeAccount: logical ids removidos da seleção
        - OrganizationalUnit: contas pertencentes às OUs listadas
        - AccountsWithTag: contas que possuem a tag informada
        - Region: uma região ou lista de regiões
    """

    include_master_account: bool = False
    all_accounts: bool = False
    accounts: Tuple[str, ...] = ()
    exclude_accounts: Tuple[str, ...] = ()
    organizational_units: Tuple[str, ...] = ()
    accounts_with_tag: Optional[str] = None
    regions: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, raw: Optional[Mapping[str, Any]]) -> "OrganizationBinding":
        if raw is None:
            return cls()
        if isinstance(raw, OrganizationBinding):
            return raw
        if not isinstance(raw, Mapping):
            raise TemplateError(
                message="OrganizationBinding must be a mapping",
                details={"received": type(raw).__name__},
            )

        account_value = raw.get("Account")
        all_accounts = account_value == "*"
        accounts = () if all_accounts else tuple(_logical_ref(a) for a in _as_list(account_value))

        tag = raw.get("AccountsWithTag")
        if tag is not None and not isinstance(tag, str):
            raise TemplateError(message="AccountsWithTag must be a string", details={"received": repr(tag)})

        return cls(
            include_master_account=bool(raw.get("IncludeMasterAccount", False)),
            all_accounts=all_accounts,
            accounts=accounts,
            exclude_accounts=tuple(_logical_ref(a) for a in _as_list(raw.get("ExcludeAccount"))),
            organizational_units=tuple(_logical_ref(o) for o in _as_list(raw.get("OrganizationalUnit"))),
            accounts_with_tag=tag,
            regions=tuple(str(r) for r in _as_list(raw.get("Region"))),
        )


@dataclass(frozen=True)
class TemplateRoot:
    """
    Template de organização em memória.

    `tasks` contém as definições declarativas (dicts) na ordem do arquivo,
    cada uma com `LogicalName` preenchido.
    """

    accounts: Tuple[Account, ...]
    organizational_units: Tuple[OrganizationalUnit, ...] = ()
    tasks: Tuple[Mapping[str, Any], ...] = ()
    default_region: Optional[str] = None

    _accounts_by_id: Dict[str, Account] = field(default_factory=dict, init=False, repr=False, compare=False)
    _ous_by_id: Dict[str, OrganizationalUnit] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for account in self.accounts:
            if account.logical_id in self._accounts_by_id:
                raise TemplateError(
                    message=f"duplicate account logical id: {account.logical_id}",
                    details={"logical_id": account.logical_id},
                )
            self._accounts_by_id[account.logical_id] = account
        if sum(1 for a in self.accounts if a.is_master) > 1:
            raise TemplateError(message="template declares more than one master account", details={})
        for ou in self.organizational_units:
            self._ous_by_id[ou.logical_id] = ou

    # -----------------------------
    # Consultas
    # -----------------------------
    @property
    def master_account(self) -> Optional[Account]:
        for account in self.accounts:
            if account.is_master:
                return account
        return None

    def has_account(self, logical_id: str) -> bool:
        return logical_id in self._accounts_by_id

    def get_account(self, logical_id: str) -> Account:
        if logical_id not in self._accounts_by_id:
            raise KeyError(logical_id)
        return self._accounts_by_id[logical_id]

    def _require_account(self, logical_id: str) -> Account:
        if logical_id not in self._accounts_by_id:
            raise TemplateError(
                message=f"OrganizationBinding references unknown account: {logical_id}",
                details={"logical_id": logical_id},
                hint="Declare a conta no template ou corrija o OrganizationBinding",
            )
        return self._accounts_by_id[logical_id]

    def select_accounts(self, binding: OrganizationBinding) -> List[Account]:
        """Expande o binding em contas, na ordem de declaração do template."""
        selected = set()

        if binding.all_accounts:
            selected.update(a.logical_id for a in self.accounts if not a.is_master)

        for logical_id in binding.accounts:
            selected.add(self._require_account(logical_id).logical_id)

        for ou_id in binding.organizational_units:
            if ou_id not in self._ous_by_id:
                raise TemplateError(
                    message=f"OrganizationBinding references unknown organizational unit: {ou_id}",
                    details={"logical_id": ou_id},
                )
            for logical_id in self._ous_by_id[ou_id].accounts:
                selected.add(self._require_account(logical_id).logical_id)

        if binding.accounts_with_tag:
            selected.update(
                a.logical_id for a in self.accounts if binding.accounts_with_tag in a.tags
            )

        master = self.master_account
        if binding.include_master_account and master is not None:
            selected.add(master.logical_id)

        for logical_id in binding.exclude_accounts:
            selected.discard(logical_id)

        return [a for a in self.accounts if a.logical_id in selected]

    def list_targets(
        self,
        binding: OrganizationBinding,
        *,
        target_type: str,
        logical_name: str,
        definition: Any = None,
    ) -> List[Target]:
        """
        Expande um OrganizationBinding em targets (conta × região).

        Sem `Region` no binding, usa `default_region` do template; sem
        nenhuma das duas, nenhum target é produzido.
        """
        regions: Sequence[str] = binding.regions or ((self.default_region,) if self.default_region else ())
        targets: List[Target] = []
        seen = set()
        for account in self.select_accounts(binding):
            for region in regions:
                ident = (account.account_id, region)
                if ident in seen:
                    continue
                seen.add(ident)
                targets.append(
                    Target(
                        target_type=target_type,
                        logical_account_id=account.logical_id,
                        account_id=account.account_id,
                        region=region,
                        logical_name=logical_name,
                        definition=definition,
                    )
                )
        return targets

    # -----------------------------
    # Construção a partir de dict
    # -----------------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemplateRoot":
        """
        Constrói o template a partir da forma declarativa mínima:

            DefaultRegion: eu-central-1
            Accounts:
              MasterAccount: { Type: master, AccountId: '1000' }
              Account2: { AccountId: '2000', Tags: { key: Value 567 } }
            OrganizationalUnits:
              DevOU: { OrganizationalUnitName: dev, Accounts: [ Account2 ] }
            Tasks:
              taskName: { Type: cdk, Path: ./, OrganizationBinding: { ... } }
        """
        if not isinstance(data, Mapping):
            raise TemplateError(message="template root must be a mapping", details={"received": type(data).__name__})

        accounts = tuple(_account_from_dict(k, v) for k, v in (data.get("Accounts") or {}).items())
        ous = tuple(
            OrganizationalUnit(
                logical_id=k,
                name=(v or {}).get("OrganizationalUnitName"),
                accounts=tuple(_logical_ref(a) for a in _as_list((v or {}).get("Accounts"))),
            )
            for k, v in (data.get("OrganizationalUnits") or {}).items()
        )
        tasks = tuple(_task_from_dict(k, v) for k, v in (data.get("Tasks") or {}).items())

        return cls(
            accounts=accounts,
            organizational_units=ous,
            tasks=tasks,
            default_region=data.get("DefaultRegion"),
        )


def _tag_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _account_from_dict(logical_id: str, raw: Any) -> Account:
    if not isinstance(raw, Mapping) or not raw.get("AccountId"):
        raise TemplateError(
            message=f"account '{logical_id}' must declare AccountId",
            details={"logical_id": logical_id},
        )
    account_id = raw["AccountId"]
    # YAML lê ids sem aspas como int (e com zero à esquerda, como octal)
    if not isinstance(account_id, str) or not account_id.strip().isdigit():
        raise TemplateError(
            message=f"account '{logical_id}' has an invalid AccountId: {account_id!r}",
            details={"logical_id": logical_id, "received": repr(account_id)},
            hint="Declare o AccountId entre aspas, ex.: AccountId: '012345678901'",
        )
    tags = raw.get("Tags") or {}
    return Account(
        logical_id=logical_id,
        account_id=account_id.strip(),
        account_name=raw.get("AccountName"),
        root_email=raw.get("RootEmail"),
        alias=raw.get("Alias"),
        tags={str(k): _tag_value(v) for k, v in tags.items()},
        is_master=str(raw.get("Type", "")).lower() == "master",
    )


def _task_from_dict(logical_name: str, raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise TemplateError(
            message=f"task '{logical_name}' must be a mapping",
            details={"logical_name": logical_name},
        )
    task = dict(raw)
    task.setdefault("LogicalName", logical_name)
    return task
