import logging

from funchost.logging.format import AddFormattedAttributes, DefaultFormatter, compress_logger_name


def test_compress_logger_name():
    assert compress_logger_name("log", 1) == "l"
    assert compress_logger_name("log", 2) == "lo"
    assert compress_logger_name("log", 3) == "log"
    assert compress_logger_name("log", 5) == "log"
    assert compress_logger_name("funchost.runtime.dispatcher", 1) == "f.r.d"
    assert compress_logger_name("funchost.runtime.dispatcher", 9) == "f.r.dispa"
    assert compress_logger_name("funchost.runtime.dispatcher", 14) == "f.r.dispatcher"
    assert compress_logger_name("funchost.runtime.dispatcher", 20) == "f.runtime.dispatcher"
    assert compress_logger_name("funchost.runtime.dispatcher", 27) == "funchost.runtime.dispatcher"


def test_formatted_attributes():
    record = logging.LogRecord(
        name="funchost.runtime.dispatcher",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Function %s failed",
        args=("hello",),
        exc_info=None,
    )
    record.threadName = "funchost-worker-functhread12"

    assert AddFormattedAttributes(max_name_len=20, max_thread_len=12).filter(record)
    assert record.fh_level == "WARN"
    assert record.fh_name == "f.runtime.dispatcher"
    assert record.fh_thread == "functhread12"

    formatted = DefaultFormatter().format(record)
    assert "WARN --- [functhread12] f.runtime.dispatcher" in formatted
    assert formatted.endswith(" : Function hello failed")
