# tests/core/template/test_model.py
"""
Testes do grafo do template de organização.

Validam a expansão de `OrganizationBinding` em targets (conta × região),
a ordem de declaração das contas e os erros explícitos para referências
inexistentes.
"""

import pytest

try:
    from orgflow.core.exceptions import TemplateError
    from orgflow.core.template.model import OrganizationBinding, TemplateRoot
except Exception as e:  # noqa: BLE001
    TemplateRoot = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing src/orgflow/core/template/model.py. Import error: {_IMPORT_ERR}")


def _targets(template, raw_binding):
    binding = OrganizationBinding.from_config(raw_binding)
    return template.list_targets(binding, target_type="cdk", logical_name="taskName")


def test_accounts_are_parsed(basic_template):
    _require_imports()
    account = basic_template.get_account("Account2")

    assert account.account_id == "1232342341236"
    assert account.tags == {"key": "Value 567"}
    assert basic_template.master_account.logical_id == "MasterAccount"
    assert basic_template.has_account("Account5")
    assert not basic_template.has_account("Nope")


def test_get_unknown_account_raises_key_error(basic_template):
    _require_imports()
    with pytest.raises(KeyError):
        basic_template.get_account("Nope")


def test_wildcard_selects_all_but_master(basic_template):
    _require_imports()
    targets = _targets(basic_template, {"Account": "*"})

    assert [t.logical_account_id for t in targets] == ["Account", "Account2", "Account3", "Account4", "Account5"]
    assert {t.region for t in targets} == {"eu-central-1"}


def test_include_master_and_explicit_accounts(basic_template):
    _require_imports()
    targets = _targets(basic_template, {"IncludeMasterAccount": True, "Account": [{"Ref": "Account2"}]})

    assert [t.logical_account_id for t in targets] == ["MasterAccount", "Account2"]


def test_organizational_unit_tags_and_exclusions(basic_template):
    _require_imports()
    targets = _targets(
        basic_template,
        {"OrganizationalUnit": "DevOU", "AccountsWithTag": "budget-alarm", "ExcludeAccount": "Account3"},
    )

    assert [t.logical_account_id for t in targets] == ["Account", "Account2"]


def test_regions_expand_per_account(basic_template):
    _require_imports()
    targets = _targets(basic_template, {"Account": "Account2", "Region": ["eu-west-1", "us-east-1"]})

    assert [(t.account_id, t.region) for t in targets] == [
        ("1232342341236", "eu-west-1"),
        ("1232342341236", "us-east-1"),
    ]
    assert targets[0].key == "cdk/taskName/1232342341236/eu-west-1"


def test_no_regions_and_no_default_region_yields_no_targets(basic_template_dict):
    _require_imports()
    data = dict(basic_template_dict)
    data.pop("DefaultRegion")
    template = TemplateRoot.from_dict(data)

    assert _targets(template, {"Account": "*"}) == []


def test_unknown_account_in_binding_raises(basic_template):
    _require_imports()
    with pytest.raises(TemplateError):
        _targets(basic_template, {"Account": "Ghost"})


def test_duplicate_master_is_rejected(basic_template_dict):
    _require_imports()
    data = dict(basic_template_dict)
    data["Accounts"] = dict(data["Accounts"], Other={"Type": "master", "AccountId": "9"})

    with pytest.raises(TemplateError):
        TemplateRoot.from_dict(data)


def test_tasks_receive_logical_name(template_with_tasks):
    _require_imports()
    template = template_with_tasks({"deployBudgets": {"Type": "cdk", "Path": "./budgets"}})

    assert template.tasks[0]["LogicalName"] == "deployBudgets"


@pytest.mark.parametrize("account_id", [1232342341235, "12-34", ""])
def test_account_id_must_be_quoted_digits(basic_template_dict, account_id):
    _require_imports()
    data = dict(basic_template_dict)
    data["Accounts"] = {"Account": {"AccountId": account_id}}
    data["OrganizationalUnits"] = {}

    with pytest.raises(TemplateError):
        TemplateRoot.from_dict(data)


def test_boolean_tags_keep_yaml_spelling(basic_template_dict):
    _require_imports()
    data = dict(basic_template_dict)
    data["Accounts"] = {"Account": {"AccountId": "1232342341235", "Tags": {"on": True, "off": False}}}
    data["OrganizationalUnits"] = {}

    assert TemplateRoot.from_dict(data).get_account("Account").tags == {"on": "true", "off": "false"}
