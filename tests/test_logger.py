from loguru import logger

from storyshelf.utils import logger as logger_module
from storyshelf.utils.logger import FILE_FORMAT, get_logger, setup_logger


def capture(format=None):
    lines = []
    kwargs = {"format": format} if format else {}
    sink_id = logger.add(lambda message: lines.append(message), level="DEBUG", **kwargs)
    return lines, sink_id


def test_get_logger_binds_category():
    lines, sink_id = capture()
    try:
        get_logger("network").info("request sent")
    finally:
        logger.remove(sink_id)

    assert lines[0].record["extra"]["category"] == "network"


def test_setup_logger_gives_bare_records_a_category(monkeypatch):
    monkeypatch.setattr(logger_module, "_configured", False)
    logger.configure(extra={})
    setup_logger("DEBUG")

    lines, sink_id = capture(FILE_FORMAT)
    try:
        logger.info("plain message")
    finally:
        logger.remove(sink_id)

    assert " | app | " in lines[0]
    assert lines[0].rstrip().endswith("plain message")
