"""Tests for sollsp.toml discovery and loading."""

from __future__ import annotations

import pytest

from sollsp.compiler import Target
from sollsp.config import (
    CONFIG_NAME,
    SolLspConfig,
    config_for,
    find_config,
    load_config,
)


class TestFindConfig:
    def test_walks_up_from_file(self, tmp_path):
        (tmp_path / CONFIG_NAME).write_text("")
        nested = tmp_path / "contracts" / "token"
        nested.mkdir(parents=True)
        source = nested / "Token.sol"
        source.write_text("")
        assert find_config(source) == (tmp_path / CONFIG_NAME).resolve()

    def test_nearest_wins(self, tmp_path):
        (tmp_path / CONFIG_NAME).write_text("")
        inner = tmp_path / "inner"
        inner.mkdir()
        (inner / CONFIG_NAME).write_text("")
        assert find_config(inner) == (inner / CONFIG_NAME).resolve()


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        path = tmp_path / CONFIG_NAME
        path.write_text(
            '[compiler]\n'
            'solc = "/usr/local/bin/solc"\n'
            'target = "solana"\n'
            'import_paths = ["lib", "node_modules"]\n'
            'timeout = 10\n'
            '\n'
            '[server]\n'
            'use_editor_buffer = false\n'
        )
        config = load_config(path)
        assert config.compiler.solc == "/usr/local/bin/solc"
        assert config.compiler.target == Target.SOLANA
        assert config.compiler.import_paths == [tmp_path / "lib", tmp_path / "node_modules"]
        assert config.compiler.timeout == 10
        assert config.server.use_editor_buffer is False

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / CONFIG_NAME
        path.write_text("")
        assert load_config(path) == SolLspConfig()

    def test_defaults(self):
        config = SolLspConfig()
        assert config.compiler.solc is None
        assert config.compiler.target == Target.EWASM
        assert config.compiler.import_paths == []
        assert config.server.use_editor_buffer is True

    def test_unknown_target(self, tmp_path):
        path = tmp_path / CONFIG_NAME
        path.write_text('[compiler]\ntarget = "evm-classic"\n')
        with pytest.raises(ValueError):
            load_config(path)


class TestConfigFor:
    def test_loads_nearest(self, tmp_path):
        (tmp_path / CONFIG_NAME).write_text('[compiler]\ntimeout = 3\n')
        assert config_for(tmp_path).compiler.timeout == 3

    def test_defaults_without_file(self, monkeypatch, tmp_path):
        def missing(start=None):
            raise FileNotFoundError(CONFIG_NAME)

        monkeypatch.setattr("sollsp.config.find_config", missing)
        assert config_for(tmp_path) == SolLspConfig()
