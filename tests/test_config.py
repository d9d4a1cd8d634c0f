"""
Test suite for swapcore configuration and logging

Covers:
  - TOML loading, defaults, env overrides, validation
  - Registry construction from config (deployment fee)
  - Environment-driven constants wrappers
  - Log sanitization (terminal-safe formatter)
"""

import logging

import pytest

from swapcore.config import SwapCoreConfig, load_config
from swapcore.constants import ConfigBool, ConfigString, parse_bool
from swapcore.exceptions import ConfigurationError
from swapcore.exchange.pool import TokenId
from swapcore.exchange.registry import ExchangeRegistry
from swapcore.logger import ExchangeLogHighlighter, LogManager, TerminalSafeFormatter, get_logger
from swapcore.tokens.ledger import BaseLedger, TokenLedger


TOKEN = TokenId("token.contract", "0")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("SWAPCORE_CONFIG", "SWAPCORE_EXCHANGE_ADDRESS", "SWAPCORE_LOG_LEVEL", "SWAPCORE_LOG_FILE_OUTPUT"):
        monkeypatch.delenv(var, raising=False)


def write_config(tmp_path, body: str) -> str:
    path = tmp_path / "config.toml"
    path.write_text(body)
    return str(path)


# ============================================================================
# TOML loader
# ============================================================================

class TestConfigLoader:

    def test_defaults_when_file_missing(self, tmp_path):
        cfg = load_config(str(tmp_path / "missing.toml"))
        assert cfg.exchange.fee_num == 100
        assert cfg.exchange.fee_denom == 10_000
        assert cfg.logging.level == "INFO"

    def test_load_from_file(self, tmp_path):
        path = write_config(tmp_path, """
[exchange]
exchange_address = "dex.ledger"
fee_num = 30
fee_denom = 10000

[logging]
level = "DEBUG"
file_output = true
""")
        cfg = load_config(path)
        assert cfg.exchange.exchange_address == "dex.ledger"
        assert cfg.exchange.fee_num == 30
        assert cfg.logging.file_output is True
        assert cfg.to_dict()["logging"]["level"] == "DEBUG"

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, '[exchange]\nexchange_address = "from-env-path"\n')
        monkeypatch.setenv("SWAPCORE_CONFIG", path)
        assert load_config().exchange.exchange_address == "from-env-path"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, '[exchange]\nexchange_address = "toml"\n')
        monkeypatch.setenv("SWAPCORE_EXCHANGE_ADDRESS", "env")
        monkeypatch.setenv("SWAPCORE_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("SWAPCORE_LOG_FILE_OUTPUT", "true")
        cfg = load_config(path)
        assert cfg.exchange.exchange_address == "env"
        assert cfg.logging.level == "WARNING"
        assert cfg.logging.file_output is True

    @pytest.mark.parametrize("body", [
        "[exchange]\nfee_num = 10000\nfee_denom = 10000\n",
        "[exchange]\nfee_num = -1\n",
        "[exchange]\nfee_num = 1.5\n",
        "[logging]\nlevel = \"LOUD\"\n",
    ])
    def test_invalid_values(self, tmp_path, body):
        with pytest.raises(ConfigurationError):
            load_config(write_config(tmp_path, body))

    def test_invalid_toml(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            load_config(write_config(tmp_path, "[exchange\n"))

    def test_registry_from_config_uses_deployment_fee(self, tmp_path):
        cfg = load_config(write_config(tmp_path, """
[exchange]
exchange_address = "dex"
fee_num = 300
fee_denom = 1000
"""))
        tokens, base = TokenLedger(), BaseLedger()
        base.mint("alice", 10_000)
        tokens.mint("alice", TOKEN, 10_000)
        registry = ExchangeRegistry.from_config(cfg, tokens, base)
        registry.add_liquidity("alice", TOKEN, 1000, 1000)
        assert registry.address == "dex"
        assert base.balance_of("dex") == 1000
        # 30% fee: 100 * 0.7 = 70 effective input
        assert registry.quote_base_for_token(TOKEN, 100) == 65

    def test_registry_from_config_applies_logging_section(self, tmp_path):
        cfg = load_config(write_config(tmp_path, '[logging]\nlevel = "WARNING"\n'))
        try:
            ExchangeRegistry.from_config(cfg, TokenLedger(), BaseLedger())
            assert logging.getLogger().level == logging.WARNING
            assert not get_logger("swapcore.exchange.registry").isEnabledFor(logging.INFO)
            assert get_logger("swapcore.exchange.registry").isEnabledFor(logging.WARNING)
        finally:
            LogManager().configure(reconfigure=True)

    def test_from_dict_defaults(self):
        cfg = SwapCoreConfig.from_dict({})
        assert cfg.validate()


# ============================================================================
# Constants
# ============================================================================

class TestConstants:

    def test_parse_bool(self):
        assert parse_bool(" TRUE ") is True
        assert parse_bool("false") is False
        assert parse_bool("maybe") == "maybe"

    def test_config_wrappers_keep_defaults(self):
        s = ConfigString("custom", "default")
        assert s == "custom" and s.default() == "default"
        b = ConfigBool(False, True)
        assert b == False and b.default() is True
        assert str(b) == "False"


# ============================================================================
# Logging
# ============================================================================

class TestLogging:

    def test_sanitize_strips_ansi_and_control_chars(self):
        raw = "pool \x1b[31mevil\x1b[0m:0\r\nnext\x07"
        assert TerminalSafeFormatter.sanitize(raw) == "pool evil:0\nnext"

    def test_formatter_sanitizes_messages(self):
        formatter = TerminalSafeFormatter("%(message)s")
        record = logging.LogRecord("swapcore", logging.INFO, __file__, 1, "token %s", ("a\x1b[2Jb",), None)
        assert formatter.format(record) == "token ab"

    def test_get_logger_configures_once(self):
        logger = get_logger("swapcore.test")
        assert logger.name == "swapcore.test"
        assert LogManager().is_configured
        assert LogManager() is LogManager()

    def test_validate_log_format_falls_back(self):
        assert LogManager.validate_log_format("%(message)s") == "%(message)s"
        assert LogManager.validate_log_format("%(nonexistent)s") != "%(nonexistent)s"

    def test_highlighter_styles(self):
        assert ExchangeLogHighlighter.base_style == "swapcore."
