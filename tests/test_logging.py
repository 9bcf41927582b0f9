import logging
from pathlib import Path

import pytest

from lovetown.config import LoggingConfig
from lovetown.logging import NETWORK_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    network_levels = {name: logging.getLogger(name).level for name in NETWORK_LOGGERS}
    for handler in handlers:
        root.removeHandler(handler)
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    for name, network_level in network_levels.items():
        logging.getLogger(name).setLevel(network_level)
    logging.captureWarnings(False)


def test_file_handler_receives_records(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "lovetown.log"

    configure_logging(LoggingConfig(level="debug", path=log_path))
    logging.getLogger("lovetown.test").debug("hello from the session")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.DEBUG
    assert len(logging.getLogger().handlers) == 2
    assert "| DEBUG | lovetown.test | hello from the session" in log_path.read_text()


def test_network_loggers_quiet_by_default() -> None:
    configure_logging(LoggingConfig(level="DEBUG"))

    for name in NETWORK_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_log_network_traces_frames_above_root_level() -> None:
    configure_logging(LoggingConfig(level="WARNING", log_network=True))

    wire = logging.getLogger("lovetown.adapters.buttplug.wire")
    assert wire.isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("lovetown.session").isEnabledFor(logging.INFO)


def test_unknown_level_falls_back_to_info() -> None:
    configure_logging(LoggingConfig(level="chatty"))

    assert logging.getLogger().level == logging.INFO
