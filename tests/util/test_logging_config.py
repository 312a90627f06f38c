from types import SimpleNamespace

import pytest

from kanjisabi.util.logging_config import LoggerManager, cleanup_old_logs, logger


@pytest.mark.parametrize("path, tag", [
    ("/src/kanjisabi/morph/server.py", "SERVER"),
    ("/src/kanjisabi/morph/lindera_client.py", "MORPH"),
    ("C:\\src\\kanjisabi\\ocr\\tsv_parser.py", "OCR"),
    ("/src/kanjisabi/pipeline/session.py", "PIPELINE"),
    ("/src/kanjisabi/cli.py", "PIPELINE"),
    ("/src/kanjisabi/util/config/configuration.py", "CONFIG"),
    ("/src/kanjisabi/errors.py", "MAIN"),
])
def test_component_tags(path, tag):
    record = {"file": SimpleNamespace(path=path)}

    assert LoggerManager()._detect_component_tag(record) == tag.ljust(10)


def test_log_files_live_in_the_config_directory():
    log_dir = LoggerManager()._get_log_directory()

    assert log_dir.name == "logs"
    assert log_dir.parent.name == "kanjisabi"
    assert log_dir.is_dir()


def test_logger_accepts_messages():
    logger.debug("debug message")
    logger.info("info message")
    cleanup_old_logs(days=7)
