# tests/core/config/test_settings.py
"""Testes de `RunSettings.from_config` (defaults e validação)."""

import pytest

try:
    from orgflow.core.config.errors import InvalidSettingError
    from orgflow.core.config.settings import RunSettings
except Exception as e:  # noqa: BLE001
    RunSettings = None
    InvalidSettingError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing src/orgflow/core/config/settings.py. Import error: {_IMPORT_ERR}")


def test_defaults_when_config_is_empty():
    _require_imports()
    settings = RunSettings.from_config({})

    assert settings.max_concurrent_groups == 4
    assert settings.default_max_concurrent_tasks == 1
    assert settings.default_failed_task_tolerance == 0
    assert settings.force_deploy is False
    assert settings.state_path is None
    assert settings.organization_file is None


def test_values_are_read_from_sections(run_config):
    _require_imports()
    run_config["engine"]["max_concurrent_groups"] = 2
    run_config["state"] = {"path": "out/state.json"}

    settings = RunSettings.from_config(run_config)

    assert settings.max_concurrent_groups == 2
    assert settings.state_path == "out/state.json"
    assert settings.organization_file == "./organization.yml"


@pytest.mark.parametrize(
    "engine",
    [
        {"max_concurrent_groups": 0},
        {"default_max_concurrent_tasks": "2"},
        {"default_failed_task_tolerance": -1},
        {"max_concurrent_groups": True},
    ],
)
def test_invalid_engine_values_raise(engine):
    _require_imports()
    with pytest.raises(InvalidSettingError):
        RunSettings.from_config({"engine": engine})


def test_section_must_be_mapping():
    _require_imports()
    with pytest.raises(InvalidSettingError):
        RunSettings.from_config({"engine": ["max_concurrent_groups"]})
