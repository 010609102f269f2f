"""Test basic functionality of hycomab."""

import logging

import hycomab


def test_version():
    """Test that version is defined."""
    assert hasattr(hycomab, "__version__")
    assert isinstance(hycomab.__version__, str)


def test_author():
    """Test that author is defined."""
    assert hasattr(hycomab, "__author__")
    assert isinstance(hycomab.__author__, str)


def test_public_api():
    """Test that the reader entry points are exported."""
    for name in ("ABFile", "open_ab", "open_dataset", "set_log_level"):
        assert callable(getattr(hycomab, name))


def test_set_log_level():
    """Test that set_log_level changes only the package logger."""
    logger = logging.getLogger("hycomab")
    previous = logger.level
    try:
        hycomab.set_log_level("DEBUG")
        assert logger.level == logging.DEBUG
        assert logging.getLogger("hycomab.parser").getEffectiveLevel() == logging.DEBUG
    finally:
        logger.setLevel(previous)


def test_debug_logging(write_ab, grid_data, caplog):
    """Test that open logs the extent and the metadata summary."""
    with caplog.at_level(logging.DEBUG, logger="hycomab"):
        with hycomab.open_ab(write_ab(grid_data)):
            pass
    messages = caplog.text
    assert "airtmp(3, 5, 7)" in messages
    assert "dimensions:" in messages
    assert "closed" in messages
