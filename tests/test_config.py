"""Tests for configuration loading."""

import os
from datetime import timedelta
from unittest.mock import patch

from novachat.configs.config import AppConfig, get_app_config


class TestAppConfig:
    def test_yaml_defaults(self):
        config = get_app_config()
        assert config.api.port == 5000
        assert config.budget.input_context_limit == 8000
        assert config.budget.output_response_limit == 3500
        assert config.budget.max_history_messages == 10
        assert config.budget.safety_margin == 100
        assert config.storage.backend == "memory"
        assert config.storage.session_ttl == timedelta(hours=24)

    def test_not_a_singleton(self):
        assert get_app_config() is not get_app_config()

    def test_env_overrides_nested_values(self):
        env_vars = {
            "NOVACHAT_BUDGET__MAX_HISTORY_MESSAGES": "4",
            "NOVACHAT_LLM__MODEL_NAME": "gemini-test",
            "NOVACHAT_STORAGE__BACKEND": "database",
        }
        with patch.dict(os.environ, env_vars, clear=False):
            config = AppConfig()

        assert config.budget.max_history_messages == 4
        assert config.llm.model_name == "gemini-test"
        assert config.storage.backend == "database"

    def test_legacy_api_key_variable(self):
        env = {k: v for k, v in os.environ.items() if k != "NOVACHAT_LLM__API_KEY"}
        env["GEMINI_API_KEY"] = "legacy-key"
        with patch.dict(os.environ, env, clear=True):
            config = AppConfig()
        assert config.llm.api_key.get_secret_value() == "legacy-key"

    def test_prefixed_api_key_wins(self):
        env_vars = {"GEMINI_API_KEY": "legacy", "NOVACHAT_LLM__API_KEY": "primary"}
        with patch.dict(os.environ, env_vars, clear=False):
            config = AppConfig()
        assert config.llm.api_key.get_secret_value() == "primary"

    def test_prompt_defaults(self):
        prompt = AppConfig().prompt
        assert prompt.lead_in == "\n\nBegin the conversation now."
        assert prompt.fallback_reply == "I'm sorry, I couldn't generate a response."
        assert prompt.system_prompt

    def test_legacy_api_key_from_dotenv(self, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("GEMINI_API_KEY=from-dotenv\n")
        env = {
            k: v
            for k, v in os.environ.items()
            if k.upper() not in ("GEMINI_API_KEY", "NOVACHAT_LLM__API_KEY")
        }
        with patch.dict(os.environ, env, clear=True):
            config = AppConfig(_env_file=dotenv)
        assert config.llm.api_key.get_secret_value() == "from-dotenv"

    def test_legacy_key_not_serialized(self):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "legacy"}, clear=False):
            config = AppConfig()
        assert "gemini_api_key" not in config.model_dump()

    def test_default_max_message_fits_budget(self):
        from novachat.core.budget import HistoryBudgeter, TokenBudget, estimate_tokens

        config = AppConfig()
        budget = TokenBudget.from_config(config.budget)
        budgeter = HistoryBudgeter(budget, config.prompt)
        longest = "x" * config.api.max_message_length
        assert (
            budgeter.preamble_tokens(config.prompt.system_prompt)
            + estimate_tokens(longest)
            <= budget.prompt_ceiling
        )
