"""
Grammar Manager.

This module discovers grammar configurations and decides which files belong
to a known grammar based on their extension.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

GRAMMARS_DIR = Path(__file__).parent
REQUIRED_FIELDS = ('name', 'version', 'file_extensions')


class GrammarManager:
    """Manages grammar configurations and extension matching."""

    def __init__(self):
        """Initialize the grammar manager."""
        self._extension_map: Dict[str, str] = {}
        self._config_cache: Dict[str, Dict] = {}

    def _map_extensions(self, language_name: str, extensions: List[str]) -> None:
        for ext in extensions:
            ext = ext.lower()
            current = self._extension_map.get(ext)
            if current is not None and current != language_name:
                logger.warning(
                    f"Extension '{ext}' already mapped to '{current}', "
                    f"overwriting with '{language_name}'"
                )
            self._extension_map[ext] = language_name

    def language_for_file(self, file_path: str) -> Optional[str]:
        """Return the language name mapped to the file's extension."""
        ext = Path(file_path).suffix.lower()
        language = self._extension_map.get(ext)
        if language is None:
            logger.debug(f"No grammar found for file extension '{ext}' (file: {file_path})")
        return language

    def is_supported(self, file_path: str) -> bool:
        return self.language_for_file(file_path) is not None

    def load_grammar_config(self, grammar_dir: Path) -> Dict:
        """
        Load grammar configuration from YAML file.

        Args:
            grammar_dir: Directory containing the grammar adapter and config.yaml

        Returns:
            Dictionary containing grammar configuration

        Raises:
            FileNotFoundError: If config.yaml is not found
            yaml.YAMLError: If config.yaml is malformed
            ValueError: If a required field is missing
        """
        config_path = Path(grammar_dir) / "config.yaml"

        cache_key = str(config_path)
        if cache_key in self._config_cache:
            return self._config_cache[cache_key]

        if not config_path.exists():
            raise FileNotFoundError(f"Grammar configuration not found: {config_path}")

        try:
            with open(config_path, 'r', encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse grammar configuration {config_path}: {e}")
            raise

        for field in REQUIRED_FIELDS:
            if field not in config:
                raise ValueError(f"Missing required field '{field}' in {config_path}")

        self._config_cache[cache_key] = config
        logger.debug(f"Loaded grammar configuration from {config_path}")
        return config

    def discover(self, grammars_dir: Path = GRAMMARS_DIR) -> List[Dict]:
        """
        Discover grammar configurations under a directory.

        Every subdirectory holding a config.yaml contributes its file
        extensions, so files can be matched before any grammar is loaded.

        Args:
            grammars_dir: Directory to scan

        Returns:
            List of loaded grammar configurations
        """
        configs: List[Dict] = []
        grammars_dir = Path(grammars_dir)

        if not grammars_dir.exists():
            logger.warning(f"Grammars directory not found: {grammars_dir}")
            return configs

        for grammar_dir in sorted(grammars_dir.iterdir()):
            if not grammar_dir.is_dir():
                continue

            if not (grammar_dir / "config.yaml").exists():
                logger.debug(f"Skipping {grammar_dir.name}: no config.yaml found")
                continue

            try:
                config = self.load_grammar_config(grammar_dir)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.error(f"Failed to load grammar from {grammar_dir}: {e}")
                continue

            self._map_extensions(config['name'], config['file_extensions'])
            configs.append(config)
            logger.debug(f"Found grammar configuration: {config['name']} v{config['version']}")

        return configs
