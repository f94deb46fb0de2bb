# tests/core/state/test_persisted_state.py
"""
Testes do estado persistido por target.

Validam:
- operações de entrada única (get/put/delete)
- filtro por tipo e logical name (`entries_for`)
- persistência JSON determinística e round-trip
- escrita automática quando o estado tem `path`
- arquivo ausente equivale a estado vazio
"""

import json
import threading
from pathlib import Path

import pytest

try:
    from orgflow.core.state.persisted_state import PersistedState, StateEntry
except Exception as e:  # noqa: BLE001
    PersistedState = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing src/orgflow/core/state/persisted_state.py. Import error: {_IMPORT_ERR}")


def _meta(logical_name="taskName", account_id="1232342341235", target_type="cdk"):
    return {
        "target_type": target_type,
        "logical_name": logical_name,
        "logical_account_id": "Account",
        "account_id": account_id,
        "region": "eu-central-1",
    }


def test_put_get_delete():
    _require_imports()
    state = PersistedState()
    state.put("cdk/taskName/1232342341235/eu-central-1", "abc", _meta())

    entry = state.get("cdk/taskName/1232342341235/eu-central-1")
    assert entry == StateEntry(hash="abc", metadata=_meta())

    state.delete("cdk/taskName/1232342341235/eu-central-1")
    assert state.get("cdk/taskName/1232342341235/eu-central-1") is None
    state.delete("cdk/taskName/1232342341235/eu-central-1")


def test_entries_for_filters_by_type_and_name():
    _require_imports()
    state = PersistedState()
    state.put("cdk/a/1/eu-central-1", "h1", _meta("a", "1"))
    state.put("cdk/b/1/eu-central-1", "h2", _meta("b", "1"))
    state.put("serverless.com/a/1/eu-central-1", "h3", _meta("a", "1", "serverless.com"))

    assert [k for k, _ in state.entries_for("cdk")] == ["cdk/a/1/eu-central-1", "cdk/b/1/eu-central-1"]
    assert [k for k, _ in state.entries_for("cdk", "a")] == ["cdk/a/1/eu-central-1"]
    assert state.entries_for("update-stacks") == []


def test_save_and_load_round_trip(tmp_path: Path):
    _require_imports()
    path = tmp_path / "state" / "state.json"
    state = PersistedState()
    state.put("cdk/a/1/eu-central-1", "h1", _meta("a", "1"))
    state.save(path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == 1
    assert data["targets"]["cdk/a/1/eu-central-1"]["hash"] == "h1"

    loaded = PersistedState.load(path)
    assert loaded.get("cdk/a/1/eu-central-1").metadata["logical_name"] == "a"


def test_missing_file_is_empty_state(tmp_path: Path):
    _require_imports()
    state = PersistedState.load(tmp_path / "nope.json")

    assert state.keys() == []
    assert state.path == tmp_path / "nope.json"


def test_file_backed_state_writes_on_each_change(tmp_path: Path):
    _require_imports()
    path = tmp_path / "state.json"
    state = PersistedState.load(path)

    state.put("cdk/a/1/eu-central-1", "h1", _meta("a", "1"))
    assert "cdk/a/1/eu-central-1" in json.loads(path.read_text(encoding="utf-8"))["targets"]

    state.delete("cdk/a/1/eu-central-1")
    assert json.loads(path.read_text(encoding="utf-8"))["targets"] == {}


def test_save_without_path_raises():
    _require_imports()
    with pytest.raises(ValueError):
        PersistedState().save()


def test_concurrent_puts_are_not_lost(tmp_path: Path):
    _require_imports()
    state = PersistedState(path=tmp_path / "state.json")

    def writer(i):
        state.put(f"cdk/t/{i}/eu-central-1", f"h{i}", _meta("t", str(i)))

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    reloaded = PersistedState.load(tmp_path / "state.json")
    assert len(reloaded.keys()) == 20


def test_failed_write_leaves_memory_untouched(tmp_path: Path):
    _require_imports()
    path = tmp_path / "state.json"
    state = PersistedState.load(path)
    state.put("cdk/a/1/eu-central-1", "h1", _meta("a", "1"))

    # um arquivo no lugar do diretório faz a escrita falhar
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    state.path = blocker / "state.json"

    with pytest.raises(OSError):
        state.put("cdk/a/1/eu-central-1", "h2", _meta("a", "1"))
    with pytest.raises(OSError):
        state.delete("cdk/a/1/eu-central-1")

    assert state.get("cdk/a/1/eu-central-1").hash == "h1"
    assert state.keys() == ["cdk/a/1/eu-central-1"]


def test_unserializable_metadata_is_not_committed(tmp_path: Path):
    _require_imports()
    state = PersistedState(path=tmp_path / "state.json")

    with pytest.raises(TypeError):
        state.put("cdk/a/1/eu-central-1", "h1", {"definition": object()})

    assert state.get("cdk/a/1/eu-central-1") is None
