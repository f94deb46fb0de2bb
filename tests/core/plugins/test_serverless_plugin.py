# tests/core/plugins/test_serverless_plugin.py
"""Testes do plugin Serverless Framework (`Type: serverless.com`)."""

import pytest

try:
    from orgflow.core.binding.types import BindingAction, PluginBinding, Target
    from orgflow.core.exceptions import TaskConfigurationError
    from orgflow.core.plugins.plugin import CommandContext
    from orgflow.core.plugins.serverless import ServerlessComBuildTaskPlugin
    from orgflow.core.state.persisted_state import PersistedState
except Exception as e:  # noqa: BLE001
    ServerlessComBuildTaskPlugin = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing src/orgflow/core/plugins/serverless.py. Import error: {_IMPORT_ERR}")


@pytest.fixture
def plugin(fake_runner):
    _require_imports()
    return ServerlessComBuildTaskPlugin(runner=fake_runner)


def _task(plugin, **config):
    base = {"LogicalName": "api", "Path": "./api"}
    base.update(config)
    return plugin.convert_to_task(plugin.convert_to_command_args(base, CommandContext()))


def _binding(task):
    target = Target(
        target_type="serverless.com",
        logical_account_id="Account2",
        account_id="1232342341236",
        region="eu-west-1",
        logical_name="api",
    )
    return PluginBinding(action=BindingAction.CREATE_OR_UPDATE, target=target, task=task)


def test_plugin_identity(plugin):
    assert plugin.type == "serverless.com"
    assert plugin.type_for_task == "update-serverless.com"
    assert plugin.apply_globally is False


def test_stage_and_config_file_are_read(plugin):
    args = plugin.convert_to_command_args(
        {"LogicalName": "api", "Path": "./api", "Stage": "dev", "ConfigFile": "serverless.yml"},
        CommandContext(),
    )

    assert args.stage == "dev"
    assert args.config_file == "serverless.yml"


def test_stage_must_be_string(plugin):
    with pytest.raises(TaskConfigurationError):
        plugin.convert_to_command_args({"LogicalName": "api", "Path": "./", "Stage": 3}, CommandContext())


def test_stage_participates_in_hash(plugin):
    assert _task(plugin, Stage="dev").hash != _task(plugin, Stage="prod").hash


def test_default_deploy_command(plugin, fake_runner, basic_template):
    task = _task(plugin, Stage="dev", ConfigFile="serverless.yml", Parameters={"key": {"Ref": "AWS::AccountId"}})

    plugin.perform_create_or_update(_binding(task), basic_template, PersistedState())

    assert fake_runner.last_command == (
        "npx sls deploy --region eu-west-1 --stage dev --config serverless.yml --param key=1232342341236"
    )
    assert fake_runner.calls[0]["cwd"] == "./api"


def test_default_remove_command_without_optional_flags(plugin, fake_runner, basic_template):
    task = _task(plugin, RunNpmInstall=True)

    plugin.perform_remove(_binding(task), basic_template, PersistedState())

    assert fake_runner.last_command == "npm ci && npx sls remove --region eu-west-1"


def test_stage_and_config_file_are_quoted_for_the_shell(plugin, fake_runner, basic_template):
    task = _task(plugin, Stage="dev;echo hi", ConfigFile="my config.yml")

    plugin.perform_create_or_update(_binding(task), basic_template, PersistedState())

    assert fake_runner.last_command == (
        "npx sls deploy --region eu-west-1 --stage 'dev;echo hi' --config 'my config.yml'"
    )


def test_stage_is_not_parsed_as_placeholder(plugin, fake_runner, basic_template):
    task = _task(plugin, Stage="${AWS::AccountId}")

    plugin.perform_remove(_binding(task), basic_template, PersistedState())

    assert fake_runner.last_command == "npx sls remove --region eu-west-1 --stage '${AWS::AccountId}'"
