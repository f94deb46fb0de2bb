# tests/core/template/test_template_loader.py
"""Testes do carregamento de templates a partir de arquivos."""

import json
from pathlib import Path

import pytest

try:
    from orgflow.core.exceptions import TemplateError
    from orgflow.core.template.loader import load_template
except Exception as e:  # noqa: BLE001
    load_template = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing src/orgflow/core/template/loader.py. Import error: {_IMPORT_ERR}")


def test_load_yaml_template(tmp_path: Path):
    _require_imports()
    path = tmp_path / "organization-tasks.yml"
    path.write_text(
        """\
DefaultRegion: eu-central-1
Accounts:
  MasterAccount:
    Type: master
    AccountId: '1000'
  Account2:
    AccountId: '2000'
    Tags:
      key: Value 567
Tasks:
  budgets:
    Type: cdk
    Path: ./budgets
    OrganizationBinding:
      Account: '*'
""",
        encoding="utf-8",
    )

    template = load_template(path)

    assert template.default_region == "eu-central-1"
    assert template.get_account("Account2").tags["key"] == "Value 567"
    assert template.tasks[0]["LogicalName"] == "budgets"


def test_load_json_template(basic_template_dict, tmp_path: Path):
    _require_imports()
    path = tmp_path / "organization.json"
    path.write_text(json.dumps(basic_template_dict), encoding="utf-8")

    assert load_template(path).get_account("Account").alias == "account-one"


@pytest.mark.parametrize(
    "name,content",
    [
        ("missing.yml", None),
        ("organization.txt", "Accounts: {}"),
        ("empty.yml", ""),
        ("broken.yml", "Accounts: [unclosed"),
    ],
)
def test_invalid_templates_raise(tmp_path: Path, name, content):
    _require_imports()
    path = tmp_path / name
    if content is not None:
        path.write_text(content, encoding="utf-8")

    with pytest.raises(TemplateError):
        load_template(path)


def test_unquoted_account_id_is_rejected(tmp_path: Path):
    _require_imports()
    path = tmp_path / "organization.yml"
    # sem aspas, o YAML lê 012345670123 como octal
    path.write_text(
        "Accounts:\n  Account:\n    AccountId: 012345670123\n",
        encoding="utf-8",
    )

    with pytest.raises(TemplateError) as exc:
        load_template(path)

    assert exc.value.details["logical_id"] == "Account"
    assert "aspas" in exc.value.hint


def test_quoted_account_id_keeps_leading_zero(tmp_path: Path):
    _require_imports()
    path = tmp_path / "organization.yml"
    path.write_text(
        "Accounts:\n  Account:\n    AccountId: '012345670123'\n    Tags:\n      budget-alarm: true\n",
        encoding="utf-8",
    )

    account = load_template(path).get_account("Account")

    assert account.account_id == "012345670123"
    assert account.tags["budget-alarm"] == "true"
