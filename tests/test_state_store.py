"""
Tests for the JSON state store.
"""

import json

import pytest

from nerdfont_cli.exceptions import StateLoadError, StateSaveError
from nerdfont_cli.models.package import Package
from nerdfont_cli.storage.state_store import StateStore, release_path_for


def _package(name, installed="", latest="v3.0.0"):
    return Package(
        name=name,
        download_url=f"https://example.invalid/{name}.zip",
        installed_version=installed,
        latest_version=latest,
    )


class TestLoad:
    """Tests for StateStore.load."""

    def test_missing_file_creates_placeholder(self, state_path):
        store = StateStore.load(state_path)

        assert len(store) == 0
        assert state_path.is_file()
        assert json.loads(state_path.read_text()) == {}

    def test_empty_file_is_empty_store(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text("")

        assert len(StateStore.load(state_path)) == 0

    def test_garbage_is_ignored(self, state_path, caplog):
        state_path.parent.mkdir(parents=True)
        state_path.write_text("{not json")

        store = StateStore.load(state_path)

        assert len(store) == 0
        assert "Ignoring unreadable state file" in caplog.text

    def test_invalid_utf8_is_ignored(self, state_path, caplog):
        state_path.parent.mkdir(parents=True)
        state_path.write_bytes(b"\xff\xfe{garbage")

        store = StateStore.load(state_path)

        assert len(store) == 0
        assert "Ignoring unreadable state file" in caplog.text

    def test_wrong_shape_is_ignored(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(json.dumps(["FiraCode", "Hack"]))

        assert len(StateStore.load(state_path)) == 0

    def test_reads_records_with_on_disk_field_names(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(
            json.dumps(
                {
                    "Hack": {
                        "name": "Hack",
                        "download_url": "https://example.invalid/Hack.zip",
                        "installed": "v2.3.3",
                        "latest": "v3.0.0",
                    }
                }
            )
        )

        hack = StateStore.load(state_path).get("Hack")

        assert hack.installed_version == "v2.3.3"
        assert hack.latest_version == "v3.0.0"
        assert hack.download_url == "https://example.invalid/Hack.zip"

    def test_unreadable_path_raises(self, state_path):
        state_path.mkdir(parents=True)

        with pytest.raises(StateLoadError):
            StateStore.load(state_path)


class TestSave:
    """Tests for StateStore.save."""

    def test_round_trip(self, state_path):
        store = StateStore(
            state_path,
            {
                "Hack": _package("Hack", installed="v3.0.0"),
                "FiraCode": _package("FiraCode"),
                "Meslo": _package("Meslo", installed="v2.3.3"),
            },
        )

        store.save()
        loaded = StateStore.load(state_path)

        assert loaded.packages == store.packages

    def test_writes_on_disk_field_names(self, state_path):
        StateStore(state_path, {"Hack": _package("Hack", installed="v3.0.0")}).save()

        data = json.loads(state_path.read_text())

        assert data == {
            "Hack": {
                "name": "Hack",
                "download_url": "https://example.invalid/Hack.zip",
                "installed": "v3.0.0",
                "latest": "v3.0.0",
            }
        }

    def test_leaves_no_temporary_files(self, state_path):
        StateStore(state_path, {"Hack": _package("Hack")}).save()

        assert [p.name for p in state_path.parent.iterdir()] == [state_path.name]

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(StateSaveError):
            StateStore(blocker / "fonts.json", {}).save()


class TestMutations:
    """Tests for the record helpers."""

    def test_mark_installed_copies_latest(self, store):
        store.mark_installed("FiraCode")

        assert store.get("FiraCode").installed_version == "v3.0.0"

    def test_mark_removed_clears_installed(self, store):
        store.mark_installed("FiraCode")
        store.mark_removed("FiraCode")

        assert store.get("FiraCode").installed_version == ""

    def test_outdated(self, state_path):
        store = StateStore(
            state_path,
            {
                "Hack": _package("Hack", installed="v2.3.3"),
                "Meslo": _package("Meslo", installed="v3.0.0"),
                "FiraCode": _package("FiraCode"),
            },
        )

        assert [p.name for p in store.outdated()] == ["Hack"]
        assert sorted(p.name for p in store.installed()) == ["Hack", "Meslo"]


class TestRelease:
    """Tests for the persisted release identifier."""

    def test_new_store_has_no_release(self, state_path):
        assert StateStore.load(state_path).release is None

    def test_release_survives_save_and_load(self, store, state_path):
        store.save()

        assert StateStore.load(state_path).release == "v3.0.0"
        assert json.loads(release_path_for(state_path).read_text()) == {
            "release": "v3.0.0"
        }

    def test_state_file_stays_a_plain_mapping(self, store, state_path):
        store.save()

        assert list(json.loads(state_path.read_text())) == ["FiraCode"]

    def test_release_is_independent_of_records(self, state_path):
        store = StateStore(
            state_path,
            {
                "Hack": _package("Hack", latest="v3.1.0"),
                "Meslo": _package("Meslo", latest="v2.3.3"),
            },
            release="v3.1.0",
        )
        store.save()

        assert StateStore.load(state_path).release == "v3.1.0"

    def test_damaged_release_file_means_unknown(self, store, state_path):
        store.save()
        release_path_for(state_path).write_bytes(b"\xff{oops")

        loaded = StateStore.load(state_path)

        assert loaded.release is None
        assert "FiraCode" in loaded

    def test_release_ignored_without_records(self, store, state_path):
        store.save()
        state_path.write_text("{}")

        assert StateStore.load(state_path).release is None

    def test_clearing_release_removes_file(self, store, state_path):
        store.save()
        store.release = None
        store.save()

        assert not release_path_for(state_path).exists()
