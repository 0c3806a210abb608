"""
Tests for the objkt signals CLI.
"""

import json
import logging
from unittest.mock import AsyncMock, patch

import pytest

from objkt_signals import cli
from objkt_signals.config import SignalConfig
from objkt_signals.exceptions import ConfigurationError
from objkt_signals.models import SignalBatch


@pytest.fixture
def env_config():
    with patch.object(SignalConfig, "from_env", return_value=SignalConfig(self_address="tz1env")), \
            patch.object(cli, "setup_logging"):
        yield


class TestBuildConfig:
    """Tests for CLI flag handling."""

    def test_flags_override_environment(self, env_config):
        args = cli.create_parser().parse_args([
            "--self-address", "tz1flag",
            "--min-sold", "5",
            "--concurrency", "3",
            "--timeout", "4.5",
        ])

        config = cli.build_config(args)

        assert config.self_address == "tz1flag"
        assert config.thresholds.min_sold == 5
        assert config.thresholds.min_listed == 1
        assert config.concurrency_limit == 3
        assert config.fetch_timeout_seconds == 4.5

    def test_environment_kept_without_flags(self, env_config):
        config = cli.build_config(cli.create_parser().parse_args([]))

        assert config.self_address == "tz1env"

    def test_invalid_thresholds_exit_code(self, env_config):
        assert cli.main(["--min-listed", "200"]) == 2

    @pytest.mark.parametrize("flag", ["--concurrency", "--timeout"])
    def test_explicit_zero_is_rejected(self, env_config, flag):
        args = cli.create_parser().parse_args([flag, "0"])

        with pytest.raises(ConfigurationError):
            cli.build_config(args)

        assert cli.main([flag, "0"]) == 2


class TestMain:
    """Tests for a one-shot run."""

    def test_prints_batch_json(self, env_config, capsys):
        batch = SignalBatch(candidates=4)
        with patch.object(cli, "run_once", new=AsyncMock(return_value=batch)):
            assert cli.main(["--tokens", "1", "2"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["candidates"] == 4
        assert output["signals"] == []


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_single_handler_and_level(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            cli.setup_logging("DEBUG", "json")
            cli.setup_logging("WARNING", "text")

            assert len(root.handlers) == 1
            assert root.level == logging.WARNING
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)
