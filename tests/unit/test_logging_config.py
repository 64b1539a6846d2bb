import json
import logging

import pytest

from gasless_agentkit.logging_config import action_context, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_stdlib_records_carry_bound_action(capsys, restore_root_logger):
    setup_logging("INFO")

    with action_context("smart_swap", operation_handle="0x01"):
        logging.getLogger("gasless_agentkit.test").info("Submitting swap")
    logging.getLogger("gasless_agentkit.test").info("After action")

    first, second = [json.loads(line) for line in capsys.readouterr().out.strip().splitlines()]
    assert first["event"] == "Submitting swap"
    assert first["action"] == "smart_swap"
    assert first["operation_handle"] == "0x01"
    assert first["level"] == "info"
    assert "action" not in second


def test_noisy_loggers_are_quieted(restore_root_logger):
    setup_logging("DEBUG")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
