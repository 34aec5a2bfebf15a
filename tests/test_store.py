"""Tests for the YAML alias store."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from wolctl.errors import NotFoundError, StorageError, ValidationError
from wolctl.store.aliases import Alias, AliasStore


def _db(tmp_path: Path) -> Path:
    return tmp_path / "config" / "wolctl" / "aliases.yaml"


class TestOpen:
    def test_missing_file_is_empty_store(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            assert store.list_aliases() == {}

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        path = _db(tmp_path)
        AliasStore.open(path).close()
        assert path.parent.is_dir()

    def test_file_not_created_until_first_write(self, tmp_path: Path) -> None:
        path = _db(tmp_path)
        with AliasStore.open(path) as store:
            assert not path.exists()
            store.add("desk", "AA:BB:CC:DD:EE:FF")
        assert path.exists()

    def test_empty_file_is_empty_store(self, tmp_path: Path) -> None:
        path = tmp_path / "aliases.yaml"
        path.write_text("")
        with AliasStore.open(path) as store:
            assert store.list_aliases() == {}

    def test_invalid_yaml_raises_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "aliases.yaml"
        path.write_text("aliases: [unclosed")
        with pytest.raises(StorageError):
            AliasStore.open(path)

    def test_undecodable_bytes_raise_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "aliases.yaml"
        path.write_bytes(b"aliases:\n  desk:\n    mac: \xff\xfe\n")
        with pytest.raises(StorageError, match="cannot read alias file"):
            AliasStore.open(path)

    def test_non_mapping_root_raises_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "aliases.yaml"
        path.write_text(yaml.dump(["desk", "laptop"]))
        with pytest.raises(StorageError):
            AliasStore.open(path)

    def test_entry_without_mac_raises_storage_error(self, tmp_path: Path) -> None:
        path = tmp_path / "aliases.yaml"
        path.write_text(yaml.dump({"aliases": {"desk": {"iface": "eth0"}}}))
        with pytest.raises(StorageError, match="desk"):
            AliasStore.open(path)


class TestAddGet:
    def test_round_trip(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF", "eth0")
            assert store.get("desk") == Alias("desk", "AA:BB:CC:DD:EE:FF", "eth0")

    def test_iface_defaults_to_empty(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF")
            assert store.get("desk").iface == ""

    def test_overwrite_keeps_latest(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF", "eth0")
            store.add("desk", "11:22:33:44:55:66")
            assert store.get("desk") == Alias("desk", "11:22:33:44:55:66", "")
            assert list(store.list_aliases()) == ["desk"]

    def test_names_are_case_sensitive(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("Desk", "AA:BB:CC:DD:EE:FF")
            with pytest.raises(NotFoundError):
                store.get("desk")

    def test_get_missing_raises_not_found(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            with pytest.raises(NotFoundError, match="ghost"):
                store.get("ghost")

    def test_empty_name_rejected(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            with pytest.raises(ValidationError):
                store.add("", "AA:BB:CC:DD:EE:FF")

    def test_empty_mac_rejected(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            with pytest.raises(ValidationError):
                store.add("desk", "")

    def test_persists_across_reopen(self, tmp_path: Path) -> None:
        path = _db(tmp_path)
        with AliasStore.open(path) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF", "eth0")
        with AliasStore.open(path) as store:
            assert store.get("desk") == Alias("desk", "AA:BB:CC:DD:EE:FF", "eth0")

    def test_file_layout(self, tmp_path: Path) -> None:
        path = _db(tmp_path)
        with AliasStore.open(path) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF", "eth0")
        raw = yaml.safe_load(path.read_text())
        assert raw == {"aliases": {"desk": {"mac": "AA:BB:CC:DD:EE:FF", "iface": "eth0"}}}

    def test_no_temp_file_left_behind(self, tmp_path: Path) -> None:
        path = _db(tmp_path)
        with AliasStore.open(path) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF")
        assert [p.name for p in path.parent.iterdir()] == ["aliases.yaml"]

    def test_write_failure_raises_storage_error_and_rolls_back(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            with patch("wolctl.store.aliases.os.replace", side_effect=OSError("disk full")):
                with pytest.raises(StorageError, match="disk full"):
                    store.add("desk", "AA:BB:CC:DD:EE:FF")
            with pytest.raises(NotFoundError):
                store.get("desk")


class TestList:
    def test_sorted_by_name(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("zeta", "AA:BB:CC:DD:EE:01")
            store.add("alpha", "AA:BB:CC:DD:EE:02")
            store.add("mid", "AA:BB:CC:DD:EE:03")
            assert list(store.list_aliases()) == ["alpha", "mid", "zeta"]

    def test_returns_copy(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF")
            store.list_aliases().clear()
            assert "desk" in store.list_aliases()


class TestDelete:
    def test_delete_then_get_not_found(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF")
            store.delete("desk")
            with pytest.raises(NotFoundError):
                store.get("desk")

    def test_delete_persists(self, tmp_path: Path) -> None:
        path = _db(tmp_path)
        with AliasStore.open(path) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF")
            store.delete("desk")
        with AliasStore.open(path) as store:
            assert store.list_aliases() == {}

    def test_delete_missing_raises_and_leaves_store_unchanged(self, tmp_path: Path) -> None:
        with AliasStore.open(_db(tmp_path)) as store:
            store.add("desk", "AA:BB:CC:DD:EE:FF")
            with pytest.raises(NotFoundError):
                store.delete("ghost")
            assert list(store.list_aliases()) == ["desk"]


class TestClose:
    def test_operations_after_close_raise(self, tmp_path: Path) -> None:
        store = AliasStore.open(_db(tmp_path))
        store.close()
        assert store.closed
        with pytest.raises(StorageError):
            store.list_aliases()
        with pytest.raises(StorageError):
            store.add("desk", "AA:BB:CC:DD:EE:FF")

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        store = AliasStore.open(_db(tmp_path))
        store.close()
        store.close()
        assert store.closed

    def test_context_manager_closes_on_error(self, tmp_path: Path) -> None:
        store = AliasStore.open(_db(tmp_path))
        with pytest.raises(NotFoundError):
            with store:
                store.get("ghost")
        assert store.closed
