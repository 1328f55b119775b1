# tests/services/test_identity.py
"""Tests for display name stores."""

from __future__ import annotations

from pathlib import Path

from guestbook.services.identity import FileIdentityStore, MemoryIdentityStore


def test_memory_store_normalizes_names() -> None:
    store = MemoryIdentityStore("  alice ")
    assert store.get_username() == "alice"

    store.set_username("   ")
    assert store.get_username() is None


def test_file_store_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "identity.json"
    store = FileIdentityStore(path)
    assert store.get_username() is None

    store.set_username(" bob ")

    assert FileIdentityStore(path).get_username() == "bob"


def test_file_store_blank_name_clears_slot(tmp_path: Path) -> None:
    path = tmp_path / "identity.json"
    store = FileIdentityStore(path)
    store.set_username("bob")

    store.set_username("")

    assert not path.exists()
    assert store.get_username() is None


def test_file_store_ignores_malformed_content(tmp_path: Path) -> None:
    path = tmp_path / "identity.json"
    store = FileIdentityStore(path)

    path.write_text("{not json", encoding="utf-8")
    assert store.get_username() is None

    path.write_text('["bob"]', encoding="utf-8")
    assert store.get_username() is None

    path.write_text('{"username": 42}', encoding="utf-8")
    assert store.get_username() is None
