import logging

from hqlcomplete.logs import ROOT_LOGGER, disable_debug, enable_debug


def test_enable_writes_engine_logs(tmp_path):
    handler = enable_debug(tmp_path)
    try:
        logging.getLogger("hqlcomplete.completion.index").debug("rebuilt index")
    finally:
        disable_debug(handler)
    assert "[hqlcomplete.completion.index] rebuilt index" in (tmp_path / "debug.log").read_text()


def test_disable_detaches(tmp_path):
    handler = enable_debug(tmp_path)
    disable_debug(handler)
    logger = logging.getLogger(ROOT_LOGGER)
    assert handler not in logger.handlers
    assert logger.level == logging.NOTSET


def test_disable_none_is_noop():
    disable_debug(None)
