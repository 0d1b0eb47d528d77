"""Unit tests for GrammarManager."""

import pytest

from grammars.manager import GRAMMARS_DIR, GrammarManager


def write_grammar(root, name, extensions):
    grammar_dir = root / name
    grammar_dir.mkdir()
    listed = ", ".join(extensions)
    (grammar_dir / "config.yaml").write_text(f"name: {name}\nversion: 1.0.0\nfile_extensions: [{listed}]\n")
    return grammar_dir


class TestGrammarManager:
    """Test cases for GrammarManager."""

    def test_language_for_file(self, tmp_path):
        """Test extension matching is case-insensitive."""
        manager = GrammarManager()
        write_grammar(tmp_path, "sourcepawn", [".sp", ".inc"])
        manager.discover(tmp_path)

        assert manager.language_for_file("scripting/plugin.sp") == "sourcepawn"
        assert manager.language_for_file("include/helpers.INC") == "sourcepawn"
        assert manager.language_for_file("readme.md") is None
        assert not manager.is_supported("readme.md")

    def test_extension_override(self, tmp_path):
        """Test that a later grammar takes over a shared extension."""
        manager = GrammarManager()
        write_grammar(tmp_path, "a_sourcepawn", [".sp", ".inc"])
        write_grammar(tmp_path, "b_include", [".inc"])

        manager.discover(tmp_path)

        assert manager.language_for_file("helpers.inc") == "b_include"
        assert manager.language_for_file("plugin.sp") == "a_sourcepawn"

    def test_unknown_file_before_discovery(self):
        """Test nothing is supported until grammars are discovered."""
        assert not GrammarManager().is_supported("plugin.sp")

    def test_load_grammar_config(self, tmp_path):
        """Test loading grammar configuration from YAML."""
        manager = GrammarManager()
        grammar_dir = tmp_path / "pawn"
        grammar_dir.mkdir()
        (grammar_dir / "config.yaml").write_text("""
name: pawn
version: 3.2.0
file_extensions:
  - .pwn
grammar:
  symbol: tree_sitter_pawn
""")

        config = manager.load_grammar_config(grammar_dir)

        assert config["name"] == "pawn"
        assert config["version"] == "3.2.0"
        assert config["file_extensions"] == [".pwn"]
        assert config["grammar"]["symbol"] == "tree_sitter_pawn"

    def test_load_grammar_config_missing_file(self, tmp_path):
        """Test loading config from directory without config.yaml."""
        manager = GrammarManager()

        with pytest.raises(FileNotFoundError):
            manager.load_grammar_config(tmp_path)

    def test_load_grammar_config_invalid_yaml(self, tmp_path):
        """Test loading invalid YAML configuration."""
        import yaml

        manager = GrammarManager()
        (tmp_path / "config.yaml").write_text("invalid: yaml: content: [")

        with pytest.raises(yaml.YAMLError):
            manager.load_grammar_config(tmp_path)

    def test_load_grammar_config_missing_required_fields(self, tmp_path):
        """Test loading config with missing required fields."""
        manager = GrammarManager()
        (tmp_path / "config.yaml").write_text("name: pawn\n")

        with pytest.raises(ValueError):
            manager.load_grammar_config(tmp_path)

    def test_discover(self, tmp_path):
        """Test discovery maps extensions without loading grammars."""
        manager = GrammarManager()
        good = tmp_path / "pawn"
        good.mkdir()
        (good / "config.yaml").write_text("name: pawn\nversion: 1.0.0\nfile_extensions: [.pwn]\n")
        bad = tmp_path / "broken"
        bad.mkdir()
        (bad / "config.yaml").write_text("name: broken\n")
        (tmp_path / "empty").mkdir()

        configs = manager.discover(tmp_path)

        assert [config["name"] for config in configs] == ["pawn"]
        assert manager.is_supported("gamemode.pwn")
        assert manager.language_for_file("gamemode.pwn") == "pawn"

    def test_discover_bundled_grammars(self):
        """Test the bundled SourcePawn configuration is found."""
        manager = GrammarManager()

        configs = manager.discover()

        assert "sourcepawn" in [config["name"] for config in configs]
        assert manager.is_supported("plugin.sp")
        assert manager.is_supported("include/helpers.inc")
        assert not manager.is_supported("notes.txt")
        assert GRAMMARS_DIR.name == "grammars"

    def test_discover_missing_directory(self, tmp_path):
        """Test discovery of a directory that does not exist."""
        assert GrammarManager().discover(tmp_path / "nowhere") == []
