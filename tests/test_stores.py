import json

import pytest

from cohortkit import InMemoryAssignmentStore, JsonFileAssignmentStore


def test_in_memory_store():
    store = InMemoryAssignmentStore()
    assert store.get("experiments.foo") is None

    store.set("experiments.foo", {"value": True})
    store.set("experiments.bar", {"value": False})
    store.set("overrideExperimentProvider", True)

    assert store.get("experiments.foo") == {"value": True}
    assert store.keys("experiments.") == ["experiments.foo", "experiments.bar"]

    store.delete("experiments.foo")
    store.delete("missing")
    assert store.keys() == ["experiments.bar", "overrideExperimentProvider"]

    store.clear()
    assert store.keys() == []


def test_stores_reject_none(tmp_path):
    with pytest.raises(ValueError):
        InMemoryAssignmentStore().set("key", None)
    with pytest.raises(ValueError):
        JsonFileAssignmentStore(str(tmp_path / "a.json")).set("key", None)


def test_json_store_persists(tmp_path):
    path = str(tmp_path / "nested" / "experiments.json")
    store = JsonFileAssignmentStore(path)
    assert store.keys() == []

    store.set("experiments.foo", {"value": "blah"})
    store.set("overrideExperimentProvider", True)

    reopened = JsonFileAssignmentStore(path)
    assert reopened.get("experiments.foo") == {"value": "blah"}
    assert reopened.get("overrideExperimentProvider") is True
    assert reopened.keys("experiments.") == ["experiments.foo"]

    with open(path) as f:
        assert json.load(f) == {
            "cohortkit": {
                "experiments.foo": {"value": "blah"},
                "overrideExperimentProvider": True,
            }
        }


def test_json_store_delete(tmp_path):
    path = str(tmp_path / "experiments.json")
    store = JsonFileAssignmentStore(path)
    store.set("experiments.foo", {"value": True})
    store.delete("experiments.foo")
    store.delete("experiments.foo")

    assert JsonFileAssignmentStore(path).get("experiments.foo") is None


def test_json_store_clear_is_scoped_to_namespace(tmp_path):
    path = str(tmp_path / "experiments.json")
    first = JsonFileAssignmentStore(path, namespace="profile-1")
    second = JsonFileAssignmentStore(path, namespace="profile-2")

    first.set("experiments.foo", {"value": True})
    second.set("experiments.foo", {"value": False})
    first.clear()

    assert JsonFileAssignmentStore(path, namespace="profile-1").keys() == []
    assert JsonFileAssignmentStore(path, namespace="profile-2").get("experiments.foo") == {
        "value": False
    }


def test_json_store_reload(tmp_path):
    path = str(tmp_path / "experiments.json")
    reader = JsonFileAssignmentStore(path)
    writer = JsonFileAssignmentStore(path)

    writer.set("experiments.foo", {"value": True})
    assert reader.get("experiments.foo") is None

    reader.reload()
    assert reader.get("experiments.foo") == {"value": True}


def test_json_store_failed_write_leaves_state_untouched(tmp_path):
    path = str(tmp_path / "experiments.json")
    store = JsonFileAssignmentStore(path)
    store.set("experiments.foo", {"value": True})

    with pytest.raises(TypeError):
        store.set("experiments.bar", {"value": {1, 2}})
    assert store.get("experiments.bar") is None
    assert store.keys() == ["experiments.foo"]

    # Later writes are not poisoned by the failed one
    store.set("experiments.baz", {"value": False})
    reopened = JsonFileAssignmentStore(path)
    assert sorted(reopened.keys()) == ["experiments.baz", "experiments.foo"]
    assert reopened.get("experiments.bar") is None


def test_json_store_surfaces_corrupt_file(tmp_path):
    path = tmp_path / "experiments.json"
    path.write_text("not json")
    with pytest.raises(ValueError):
        JsonFileAssignmentStore(str(path))

    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        JsonFileAssignmentStore(str(path))
