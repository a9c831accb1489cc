"""Tests for sysindex.config."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

import pytest

from sysindex.config import (
    DEFAULT_CONFIG,
    _deep_merge,
    _toml_value,
    configure_logging,
    dump_default_config,
    load_config,
    validate_config,
)


class TestLoadConfigDefaults:
    def test_defaults_returned_when_no_file(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr("sysindex.config._DEFAULT_PATH", tmp_path / "absent.toml")
        cfg = load_config(None)
        assert cfg["refresh_interval"] == 2.0
        assert cfg["network_probes"] is True
        assert cfg["public_ip"]["timeout"] == 5.0
        assert cfg["bandwidth"]["timeout"] == 10.0

    def test_at_least_three_public_ip_endpoints(self) -> None:
        assert len(DEFAULT_CONFIG["public_ip"]["endpoints"]) >= 3

    def test_invalid_default_file_warns_and_falls_back(
        self, tmp_path: Path, monkeypatch, capsys
    ) -> None:
        bad = tmp_path / "config.toml"
        bad.write_text("refresh_interval = [oops\n")
        monkeypatch.setattr("sysindex.config._DEFAULT_PATH", bad)
        cfg = load_config(None)
        assert cfg["refresh_interval"] == 2.0
        assert "ignoring invalid TOML" in capsys.readouterr().err


class TestTomlOverlay:
    def test_overrides_scalar(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("refresh_interval = 5.0\n")
        cfg = load_config(toml_file)
        assert cfg["refresh_interval"] == 5.0
        assert cfg["input_poll_ms"] == 100

    def test_overrides_nested_key_keeps_siblings(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("[public_ip]\ntimeout = 2.5\n")
        cfg = load_config(toml_file)
        assert cfg["public_ip"]["timeout"] == 2.5
        assert cfg["public_ip"]["endpoints"] == DEFAULT_CONFIG["public_ip"]["endpoints"]

    def test_replaces_endpoint_list(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text('[public_ip]\nendpoints = ["https://example.test/ip"]\n')
        cfg = load_config(toml_file)
        assert cfg["public_ip"]["endpoints"] == ["https://example.test/ip"]


class TestExplicitPath:
    def test_missing_explicit_path_errors(self, tmp_path: Path) -> None:
        missing = tmp_path / "nonexistent.toml"
        with pytest.raises(SystemExit):
            load_config(missing)

    def test_invalid_toml_errors(self, tmp_path: Path) -> None:
        bad_file = tmp_path / "bad.toml"
        bad_file.write_text("this is [not valid toml\n")
        with pytest.raises(SystemExit):
            load_config(bad_file)


class TestDumpDefaultConfig:
    def test_is_valid_toml(self) -> None:
        parsed = tomllib.loads(dump_default_config())
        assert "refresh_interval" in parsed
        assert "public_ip" in parsed
        assert "bandwidth" in parsed

    def test_roundtrips_defaults(self) -> None:
        parsed = tomllib.loads(dump_default_config())
        assert parsed == DEFAULT_CONFIG

    @pytest.mark.parametrize(
        "text",
        ['C:\\logs\\"sysindex".log', "tab\there", "naïve ☕", "bell\x07 and del\x7f"],
    )
    def test_strings_are_escaped(self, text: str) -> None:
        assert tomllib.loads(f"value = {_toml_value(text)}")["value"] == text

    def test_dump_escapes_user_values(self, monkeypatch) -> None:
        monkeypatch.setitem(DEFAULT_CONFIG, "log_file", 'C:\\Users\\me\\"odd".log')
        parsed = tomllib.loads(dump_default_config())
        assert parsed["log_file"] == 'C:\\Users\\me\\"odd".log'


class TestDeepMerge:
    def test_scalar_overwrite(self) -> None:
        result = _deep_merge({"a": 1, "b": 2}, {"a": 10})
        assert result == {"a": 10, "b": 2}

    def test_nested_dict_merge(self) -> None:
        base = {"x": {"a": 1, "b": 2}}
        overlay = {"x": {"b": 3, "c": 4}}
        result = _deep_merge(base, overlay)
        assert result["x"] == {"a": 1, "b": 3, "c": 4}

    def test_base_not_mutated(self) -> None:
        base = {"x": {"a": 1}}
        _deep_merge(base, {"x": {"a": 2}})
        assert base == {"x": {"a": 1}}


class TestConfigureLogging:
    def test_log_file_receives_records(self, tmp_path: Path) -> None:
        log_file = tmp_path / "sysindex.log"
        configure_logging(str(log_file), "DEBUG", interactive=True)
        logging.getLogger("sysindex.probes").debug("probe detail")
        for handler in logging.getLogger("sysindex").handlers:
            handler.flush()
        assert "probe detail" in log_file.read_text()

    def test_interactive_without_file_writes_nothing(self, capsys) -> None:
        configure_logging("", "INFO", interactive=True)
        logging.getLogger("sysindex.dashboard").warning("hidden")
        captured = capsys.readouterr()
        assert "hidden" not in captured.err
        assert "hidden" not in captured.out


class TestValidation:
    def test_defaults_are_valid(self) -> None:
        assert validate_config(DEFAULT_CONFIG) == []

    @pytest.mark.parametrize(
        ("toml_text", "message"),
        [
            ('refresh_interval = "fast"\n', "refresh_interval must be a positive number"),
            ("refresh_interval = 0\n", "refresh_interval must be a positive number"),
            ("input_poll_ms = 12.5\n", "input_poll_ms must be a positive integer"),
            ('network_probes = "yes"\n', "network_probes must be true or false"),
            ('log_level = "LOUD"\n', "log_level must be one of"),
            ("[bandwidth]\ntimeout = -1\n", "bandwidth.timeout must be a positive number"),
            ("[public_ip]\nendpoints = []\n", "public_ip.endpoints must be a non-empty list"),
            ("public_ip = 3\n", "[public_ip] must be a table"),
        ],
    )
    def test_bad_value_in_explicit_file_exits(
        self, tmp_path: Path, capsys, toml_text: str, message: str
    ) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text(toml_text)
        with pytest.raises(SystemExit) as info:
            load_config(cfg)
        assert info.value.code == 1
        err = capsys.readouterr().err
        assert err.startswith("sysindex: invalid config in")
        assert message in err

    def test_log_file_in_missing_directory_exits(self, tmp_path: Path, capsys) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text(f'log_file = "{(tmp_path / "no" / "such" / "dir.log").as_posix()}"\n')
        with pytest.raises(SystemExit):
            load_config(cfg)
        assert "log_file is not writable" in capsys.readouterr().err

    def test_log_file_that_is_a_directory_exits(self, tmp_path: Path, capsys) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text(f'log_file = "{tmp_path.as_posix()}"\n')
        with pytest.raises(SystemExit):
            load_config(cfg)
        assert "log_file is a directory" in capsys.readouterr().err

    def test_writable_log_file_is_accepted(self, tmp_path: Path) -> None:
        cfg = tmp_path / "config.toml"
        cfg.write_text(f'log_file = "{(tmp_path / "sysindex.log").as_posix()}"\n')
        assert load_config(cfg)["log_file"].endswith("sysindex.log")

    def test_bad_default_file_warns_and_falls_back(
        self, tmp_path: Path, monkeypatch, capsys
    ) -> None:
        bad = tmp_path / "config.toml"
        bad.write_text('refresh_interval = "soon"\n')
        monkeypatch.setattr("sysindex.config._DEFAULT_PATH", bad)
        cfg = load_config(None)
        assert cfg["refresh_interval"] == 2.0
        assert "refresh_interval must be a positive number" in capsys.readouterr().err
