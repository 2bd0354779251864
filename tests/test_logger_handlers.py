import logging
import sys

from b64_converter import logger as b64_logger


def _stderr_handlers(base: logging.Logger) -> list[logging.Handler]:
    return [
        h for h in base.handlers if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
    ]


def test_setup_logger_idempotent_handlers():
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    base = b64_logger.setup_logger(level=logging.DEBUG)
    _ = b64_logger.setup_logger(level=logging.DEBUG)

    assert len(_stderr_handlers(base)) == 1
    assert base.propagate is False


def test_env_level_override(monkeypatch):
    monkeypatch.setenv("B64_CONVERTER_LOG_LEVEL", "warning")
    base = b64_logger.setup_logger(level=logging.DEBUG)
    assert base.level == logging.WARNING

    monkeypatch.delenv("B64_CONVERTER_LOG_LEVEL")
    b64_logger.setup_logger()


def test_category_filter(monkeypatch):
    monkeypatch.setenv("B64_CONVERTER_LOG_CATS", "encoder, dispatcher")
    base = b64_logger.setup_logger()
    (handler,) = _stderr_handlers(base)

    def _record(name: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)

    assert handler.filter(_record("b64_converter.encoder"))
    assert not handler.filter(_record("b64_converter.patterns"))

    monkeypatch.delenv("B64_CONVERTER_LOG_CATS")
    b64_logger.setup_logger()
    assert handler.filter(_record("b64_converter.patterns"))


def test_get_logger_returns_child():
    child = b64_logger.get_logger("engine_core")
    assert child.name == "b64_converter.engine_core"
    assert b64_logger.get_logger() is logging.getLogger("b64_converter")
