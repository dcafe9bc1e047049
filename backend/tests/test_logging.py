import logging

from dealership.core.logging import StructuredFormatter, get_logger, setup_logging


def test_records_render_as_one_pipe_separated_line():
    record = logging.LogRecord(
        "dealership.auth", logging.WARNING, __file__, 42, "Login failed for %s", ("u@x.com",), None,
        func="login",
    )

    line = StructuredFormatter().format(record)

    timestamp, level, origin, message = line.split(" | ")
    assert timestamp.endswith("+00:00")
    assert level.strip() == "WARNING"
    assert origin == "dealership.auth:login:42"
    assert message == "Login failed for u@x.com"


def test_setup_logging_installs_a_single_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        setup_logging()
        setup_logging()
        structured = [h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]
        assert len(structured) == 1
    finally:
        root.handlers[:] = before


def test_get_logger_namespace():
    assert get_logger("accounts").name == "dealership.accounts"
