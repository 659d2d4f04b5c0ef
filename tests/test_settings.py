import json
from pathlib import Path
import sys
import tempfile
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from promptplayground.config.settings import SettingsError, load_settings, settings_summary
from promptplayground.llm import AzureBackend, ErnieBackend, OpenAIBackend


class SettingsLoaderTests(unittest.TestCase):
    def _write_config(self, temp_dir, config):
        config_path = Path(temp_dir) / "settings.json"
        config_path.write_text(json.dumps(config), encoding="utf-8")
        return config_path

    def test_defaults_without_config(self):
        settings = load_settings(environ={})

        self.assertIsNone(settings.backend)
        self.assertEqual(settings.generation.max_count, 1)
        self.assertEqual(settings.generation.temperature, 0.7)
        self.assertEqual(settings.generation.max_tokens, 500)
        self.assertEqual(settings.runtime.log_level, "INFO")

    def test_loads_enabled_backend_and_generation_from_file(self):
        config = {
            "backends": {
                "azure": {
                    "enabled": True,
                    "deployment": "gpt4o",
                    "endpoint": "https://example.openai.azure.com",
                    "secret": "file-secret",
                },
                "ernie": {"enabled": False, "client_id": "cid", "secret": "s"},
            },
            "generation": {"temperature": 0.2, "max_count": 3, "top_p": 0.9},
            "runtime": {"log_level": "debug"},
        }

        with tempfile.TemporaryDirectory() as temp_dir:
            settings = load_settings(
                config_path=self._write_config(temp_dir, config), environ={}
            )

        self.assertEqual(
            settings.backend,
            AzureBackend(
                deployment="gpt4o",
                endpoint="https://example.openai.azure.com",
                secret="file-secret",
            ),
        )
        self.assertEqual(settings.generation.temperature, 0.2)
        self.assertEqual(settings.generation.max_count, 3)
        self.assertEqual(settings.generation.top_p, 0.9)
        self.assertEqual(settings.runtime.log_level, "DEBUG")

        provider_config = settings.provider_configuration()
        self.assertIs(provider_config.backend, settings.backend)
        self.assertIs(provider_config.generation, settings.generation)

    def test_environment_overrides_config_file(self):
        config = {
            "backends": {"azure": {"enabled": True, "deployment": "d", "endpoint": "e"}},
            "generation": {"max_count": 2},
        }

        with tempfile.TemporaryDirectory() as temp_dir:
            settings = load_settings(
                config_path=self._write_config(temp_dir, config),
                environ={
                    "PROMPT_PLAYGROUND_AZURE_SECRET": "env-secret",
                    "PROMPT_PLAYGROUND_GENERATION_MAX_COUNT": "5",
                },
            )

        self.assertEqual(settings.backend.secret, "env-secret")
        self.assertEqual(settings.generation.max_count, 5)

    def test_backend_can_be_selected_from_environment(self):
        config = {
            "backends": {
                "azure": {"enabled": True, "deployment": "d", "endpoint": "e", "secret": "s"},
            }
        }

        with tempfile.TemporaryDirectory() as temp_dir:
            settings = load_settings(
                config_path=self._write_config(temp_dir, config),
                environ={
                    "PROMPT_PLAYGROUND_BACKEND": "openai",
                    "PROMPT_PLAYGROUND_OPENAI_MODEL": "llama3",
                    "PROMPT_PLAYGROUND_OPENAI_API_KEY": "local",
                    "PROMPT_PLAYGROUND_OPENAI_BASE_URL": "http://127.0.0.1:11434/v1",
                },
            )

        self.assertEqual(
            settings.backend,
            OpenAIBackend(model="llama3", api_key="local", base_url="http://127.0.0.1:11434/v1"),
        )

    def test_incomplete_backend_is_loaded_for_the_selector_to_reject(self):
        settings = load_settings(
            environ={"PROMPT_PLAYGROUND_BACKEND": "ernie", "PROMPT_PLAYGROUND_ERNIE_CLIENT_ID": "cid"}
        )

        self.assertEqual(settings.backend, ErnieBackend(client_id="cid"))

    def test_multiple_enabled_backends_are_rejected(self):
        config = {"backends": {"azure": {"enabled": True}, "ernie": {"enabled": True}}}

        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(SettingsError):
                load_settings(config_path=self._write_config(temp_dir, config), environ={})

    def test_unknown_backend_names_are_rejected(self):
        with self.assertRaises(SettingsError):
            load_settings(environ={"PROMPT_PLAYGROUND_BACKEND": "bard"})

        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(SettingsError):
                load_settings(
                    config_path=self._write_config(temp_dir, {"backends": {"bard": {}}}),
                    environ={},
                )

    def test_invalid_values_raise_settings_error(self):
        for environ in (
            {"PROMPT_PLAYGROUND_GENERATION_MAX_TOKENS": "zero"},
            {"PROMPT_PLAYGROUND_GENERATION_MAX_TOKENS": "0"},
            {"PROMPT_PLAYGROUND_GENERATION_TEMPERATURE": "3.5"},
            {"PROMPT_PLAYGROUND_RUNTIME_LOG_LEVEL": "LOUD"},
        ):
            with self.subTest(environ=environ):
                with self.assertRaises(SettingsError):
                    load_settings(environ=environ)

    def test_missing_config_file_raises(self):
        with self.assertRaises(SettingsError):
            load_settings(config_path=Path("/nonexistent/settings.json"), environ={})

    def test_invalid_json_raises(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "settings.json"
            config_path.write_text("{not json", encoding="utf-8")

            with self.assertRaises(SettingsError):
                load_settings(config_path=config_path, environ={})

    def test_summary_redacts_secrets(self):
        settings = load_settings(
            environ={
                "PROMPT_PLAYGROUND_BACKEND": "azure",
                "PROMPT_PLAYGROUND_AZURE_DEPLOYMENT": "gpt4o",
                "PROMPT_PLAYGROUND_AZURE_ENDPOINT": "https://example.openai.azure.com",
                "PROMPT_PLAYGROUND_AZURE_SECRET": "very-secret",
            }
        )

        summary = settings_summary(settings)

        self.assertEqual(summary["backend"]["type"], "azure")
        self.assertEqual(summary["backend"]["deployment"], "gpt4o")
        self.assertEqual(summary["backend"]["secret"], "***")
        self.assertNotIn("very-secret", json.dumps(summary))


if __name__ == "__main__":
    unittest.main()
