import json

import pytest

from fzm.core.models import State
from fzm.core.state_manager import StateManager, StateSaveError


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


def write_state(data_dir, content):
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "state.json").write_text(content if isinstance(content, str) else json.dumps(content))


class TestStateLoad:
    """Test that loading state never fails"""

    def test_missing_file(self, data_dir):
        state = StateManager(data_dir).load()
        assert state.in_use is None
        assert state.aliases == {}

    @pytest.mark.parametrize(
        "content",
        [
            "{broken",
            "[]",
            "42",
            json.dumps({"in_use": 13}),
            json.dumps({"in_use": ""}),
            json.dumps({"in_use": "../../outside"}),
            json.dumps({"in_use": "latest"}),
        ],
    )
    def test_corrupt_or_odd_content(self, data_dir, content):
        write_state(data_dir, content)
        assert StateManager(data_dir).load().in_use is None

    def test_valid(self, data_dir):
        write_state(data_dir, {"in_use": "0.13.0", "aliases": {"stable": "0.13.0"}})
        state = StateManager(data_dir).load()
        assert state.in_use == "0.13.0"
        assert state.aliases == {"stable": "0.13.0"}


class TestStateSave:
    """Test atomic state saves"""

    def test_creates_directory_and_round_trips(self, data_dir):
        manager = StateManager(data_dir)
        state = State()
        state.set_in_use("master")
        manager.save(state)

        assert manager.load().in_use == "master"
        raw = json.loads((data_dir / "state.json").read_text())
        assert raw == {"in_use": "master", "aliases": {}}
        assert not (data_dir / "state.json.tmp").exists()

    def test_null_in_use_written(self, data_dir):
        manager = StateManager(data_dir)
        state = State(in_use="0.13.0")
        state.set_in_use(None)
        manager.save(state)
        assert json.loads((data_dir / "state.json").read_text())["in_use"] is None

    def test_unknown_fields_preserved(self, data_dir):
        write_state(data_dir, {"in_use": "0.13.0", "aliases": {}, "future": {"x": 1}})
        manager = StateManager(data_dir)
        state = manager.load()
        state.set_in_use("0.14.0")
        manager.save(state)
        raw = json.loads((data_dir / "state.json").read_text())
        assert raw["future"] == {"x": 1}
        assert raw["in_use"] == "0.14.0"

    def test_set_in_use_does_not_touch_disk(self, data_dir):
        manager = StateManager(data_dir)
        manager.load().set_in_use("0.13.0")
        assert not (data_dir / "state.json").exists()

    def test_save_failure(self, tmp_path):
        blocker = tmp_path / "data"
        blocker.write_text("file in the way")
        with pytest.raises(StateSaveError):
            StateManager(blocker).save(State(in_use="0.13.0"))
