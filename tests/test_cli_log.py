import io
import logging
import re

from wings.cli_log import CliHandler, format_stacktrace, level_label


class TtyStream(io.StringIO):
    def isatty(self):
        return True


def _record(msg, level=logging.INFO, fields=None):
    data = {"msg": msg, "levelno": level, "levelname": logging.getLevelName(level)}
    if fields is not None:
        data["fields"] = fields
    return logging.makeLogRecord(data)


def test_level_labels():
    assert level_label(logging.DEBUG) == "DEBUG"
    assert level_label(logging.INFO) == " INFO"
    assert level_label(logging.WARNING) == " WARN"
    assert level_label(logging.ERROR) == "ERROR"
    assert level_label(logging.CRITICAL) == "FATAL"


def test_level_labels_are_fixed_width():
    widths = {len(level_label(level)) for level in (10, 20, 30, 40, 50)}
    assert widths == {5}


def test_emit_line_layout():
    stream = io.StringIO()
    handler = CliHandler(stream)
    handler.handle(_record("hello", fields={"b": 2, "a": 1, "source": "x"}))
    output = stream.getvalue()
    assert output.startswith(" INFO: [")
    assert output.endswith("\n")
    assert "hello".ljust(25) in output
    assert output.rstrip("\n").endswith(" a=1 b=2")
    assert "source" not in output
    assert re.search(r"\[[A-Z][a-z]{2} [ \d]\d \d{2}:\d{2}:\d{2}\.\d{3}\]", output)


def test_emit_without_colors_on_plain_stream():
    stream = io.StringIO()
    handler = CliHandler(stream, use_colors=True)
    handler.handle(_record("plain"))
    assert "\x1b[" not in stream.getvalue()


def test_emit_with_colors_on_terminal():
    stream = TtyStream()
    handler = CliHandler(stream, use_colors=True)
    handler.handle(_record("coloured", level=logging.WARNING))
    output = stream.getvalue()
    assert "\x1b[1m" in output
    assert " WARN" in output


def test_colors_can_be_disabled_on_terminal():
    stream = TtyStream()
    handler = CliHandler(stream, use_colors=False)
    handler.handle(_record("quiet"))
    assert "\x1b[" not in stream.getvalue()


def test_error_field_prints_stacktrace():
    try:
        raise ValueError("boom")
    except ValueError as exc:
        err = exc
    stream = io.StringIO()
    handler = CliHandler(stream)
    handler.handle(_record("failed", level=logging.ERROR, fields={"error": err}))
    output = stream.getvalue()
    assert output.startswith("ERROR: [")
    assert " error=boom" in output
    assert "Stacktrace:" in output
    assert "Traceback (most recent call last):" in output
    assert "ValueError: boom" in output


def test_non_exception_error_field_has_no_stacktrace():
    stream = io.StringIO()
    CliHandler(stream).handle(_record("x", fields={"error": "text"}))
    assert "Stacktrace:" not in stream.getvalue()


def test_format_stacktrace_separates_sections():
    text = (
        "Traceback (most recent call last):\n"
        '  File "a.py", line 1, in f\n'
        "    raise ValueError('boom')\n"
        "ValueError: boom\n"
        "The above exception was the direct cause of the following exception:"
    )
    expected = (
        "Traceback (most recent call last):\n"
        '  File "a.py", line 1, in f\n'
        "    raise ValueError('boom')\n"
        "ValueError: boom\n"
        "\n"
        "The above exception was the direct cause of the following exception:"
    )
    assert format_stacktrace(text) == expected


def test_format_stacktrace_leaves_existing_blank_line():
    text = (
        "Traceback (most recent call last):\n"
        '  File "a.py", line 1, in f\n'
        "ValueError: boom\n"
        "\n"
        "next"
    )
    assert format_stacktrace(text) == text


def test_format_stacktrace_without_frames_is_unchanged():
    text = "\nStacktrace:\nValueError: boom\n\n"
    assert format_stacktrace(text) == text