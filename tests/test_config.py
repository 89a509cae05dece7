"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
import unittest

from nexus_agent.config import (
    DEFAULT_CONFIG,
    ensure_config_dir,
    load_config,
    validate_config,
)
from nexus_agent.exceptions import ConfigValidationError


class ConfigTests(unittest.TestCase):
    """Validate config merge and fallback behavior."""

    def _load(self, text: str | None) -> dict:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            if text is not None:
                config_path.write_text(text.strip(), encoding="utf-8")
            return load_config(config_path=config_path)

    def test_missing_config_uses_defaults(self) -> None:
        config = self._load(None)
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertEqual(config["app"]["title"], "Nexus Agent")
        self.assertEqual(config["agent"]["default_mode"], "chat")
        self.assertEqual(config["agent"]["thinking_budget"], 500)
        self.assertEqual(config["media"]["image_endpoint"], "")
        self.assertFalse(config["security"]["allow_remote_hosts"])

    def test_partial_config_overrides_selected_values(self) -> None:
        config = self._load(
            """
[gateway]
model = "qwen2.5"

[agent]
default_mode = "Image"
thinking_budget = 0

[media]
image_endpoint = "http://localhost:8080/images"
            """
        )
        self.assertEqual(config["gateway"]["model"], "qwen2.5")
        self.assertEqual(config["gateway"]["host"], DEFAULT_CONFIG["gateway"]["host"])
        self.assertEqual(config["agent"]["default_mode"], "image")
        self.assertEqual(config["agent"]["thinking_budget"], 0)
        self.assertEqual(config["media"]["image_endpoint"], "http://localhost:8080/images")
        self.assertEqual(config["media"]["video_endpoint"], "")

    def test_invalid_values_fallback_to_defaults(self) -> None:
        with self.assertLogs("nexus_agent.config", level="WARNING"):
            config = self._load(
                """
[gateway]
timeout = -1

[agent]
default_mode = "karaoke"
                """
            )
        self.assertEqual(config["gateway"]["timeout"], DEFAULT_CONFIG["gateway"]["timeout"])
        self.assertEqual(config["agent"]["default_mode"], "chat")

    def test_invalid_section_does_not_discard_valid_sections(self) -> None:
        with self.assertLogs("nexus_agent.config", level="WARNING") as logs:
            config = self._load(
                """
[gateway]
model = "mistral"

[logging]
level = "LOUD"
                """
            )
        self.assertEqual(config["gateway"]["model"], "mistral")
        self.assertEqual(config["logging"], DEFAULT_CONFIG["logging"])
        self.assertTrue(any("config.section.invalid" in line for line in logs.output))

    def test_unknown_sections_are_ignored(self) -> None:
        config = self._load('[ui]\ntheme = "dark"\n')
        self.assertNotIn("ui", config)

    def test_validate_config_rejects_non_table(self) -> None:
        with self.assertRaises(ConfigValidationError):
            validate_config(["gateway"])  # type: ignore[arg-type]

    def test_allowlist_rejecting_default_host_resets_security(self) -> None:
        with self.assertLogs("nexus_agent.config", level="WARNING"):
            config = validate_config({"security": {"allowed_hosts": ["ollama.internal"]}})
        self.assertEqual(config["gateway"]["host"], DEFAULT_CONFIG["gateway"]["host"])
        self.assertEqual(config["security"], DEFAULT_CONFIG["security"])

    def test_media_endpoint_requires_http_scheme(self) -> None:
        with self.assertLogs("nexus_agent.config", level="WARNING"):
            config = self._load(
                """
[media]
video_endpoint = "ftp://media.example/videos"
                """
            )
        self.assertEqual(config["media"]["video_endpoint"], "")

    def test_unparseable_toml_uses_defaults(self) -> None:
        with self.assertLogs("nexus_agent.config", level="WARNING"):
            config = self._load("[gateway\nmodel = ")
        self.assertEqual(config, DEFAULT_CONFIG)

    def test_remote_host_disallowed_by_default_policy(self) -> None:
        with self.assertLogs("nexus_agent.config", level="WARNING"):
            config = self._load(
                """
[gateway]
host = "http://example.com:11434"
                """
            )
        self.assertEqual(config["gateway"]["host"], DEFAULT_CONFIG["gateway"]["host"])

    def test_remote_host_allowed_when_policy_enabled(self) -> None:
        config = self._load(
            """
[gateway]
host = "http://example.com:11434"

[security]
allow_remote_hosts = true
            """
        )
        self.assertEqual(config["gateway"]["host"], "http://example.com:11434")
        self.assertTrue(config["security"]["allow_remote_hosts"])

    @unittest.skipUnless(os.name == "posix", "POSIX permissions only")
    def test_existing_config_is_made_private(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            config_path.write_text('[app]\ntitle = "Mine"\n', encoding="utf-8")
            config_path.chmod(0o644)
            config = load_config(config_path=config_path)
            self.assertEqual(config["app"]["title"], "Mine")
            self.assertEqual(config_path.stat().st_mode & 0o777, 0o600)

    def test_ensure_config_dir_creates_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            target = Path(temp_dir) / "nested" / "nexus-agent"
            self.assertEqual(ensure_config_dir(target), target)
            self.assertTrue(target.is_dir())


if __name__ == "__main__":
    unittest.main()
