# tests/common/test_state_manager.py
# -*- coding: utf-8 -*-
"""
Tests for the step fingerprint state file.
"""

import hashlib

from common.state_manager import STATE_FILE_HEADER, StateManager, file_fingerprint


class TestFileFingerprint:
    def test_sha256_of_content(self, tmp_path):
        path = tmp_path / "packages.list"
        path.write_bytes(b"git\n")

        assert file_fingerprint(path) == hashlib.sha256(b"git\n").hexdigest()

    def test_missing_file(self, tmp_path):
        assert file_fingerprint(tmp_path / "missing") is None


class TestStateManager:
    def test_missing_state_file_is_empty(self, tmp_path):
        manager = StateManager(tmp_path / "state.txt")

        assert manager.load() == {}
        assert manager.get("apt-packages") is None

    def test_record_creates_parent_and_persists(self, tmp_path):
        state_file = tmp_path / "nested" / "state.txt"
        StateManager(state_file).record("apt-packages", "abc123")

        assert StateManager(state_file).get("apt-packages") == "abc123"
        assert state_file.read_text().startswith(STATE_FILE_HEADER)

    def test_record_keeps_other_entries(self, tmp_path):
        manager = StateManager(tmp_path / "state.txt")
        manager.record("mise-tools", "111")
        manager.record("apt-packages", "222")
        manager.record("mise-tools", "333")

        assert manager.load() == {"apt-packages": "222", "mise-tools": "333"}

    def test_matches(self, tmp_path):
        manager = StateManager(tmp_path / "state.txt")
        manager.record("apt-packages", "abc")

        assert manager.matches("apt-packages", "abc") is True
        assert manager.matches("apt-packages", "def") is False
        assert manager.matches("apt-packages", None) is False
        assert manager.matches("mise-tools", "abc") is False

    def test_malformed_lines_ignored(self, tmp_path, mock_logger):
        state_file = tmp_path / "state.txt"
        state_file.write_text(
            "# comment\n\napt-packages abc\nbroken line here\nlonely\n"
        )

        entries = StateManager(state_file, mock_logger).load()

        assert entries == {"apt-packages": "abc"}
        assert mock_logger.debug.call_count == 2

    def test_forget_and_clear(self, tmp_path):
        manager = StateManager(tmp_path / "state.txt")
        manager.record("a", "1")
        manager.record("b", "2")

        manager.forget("a")
        assert manager.load() == {"b": "2"}

        manager.clear()
        assert manager.load() == {}

    def test_no_temp_files_left_behind(self, tmp_path):
        manager = StateManager(tmp_path / "state.txt")
        manager.record("a", "1")

        assert [p.name for p in tmp_path.iterdir()] == ["state.txt"]
