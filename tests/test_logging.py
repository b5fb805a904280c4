import logging

from gemrelay.core.logging import RedactingFormatter, redact, setup_logging

GOOGLE_KEY = "AIza" + "Sy" + "x" * 33


def test_redact_masks_google_keys_and_query_keys():
    assert redact(f"using {GOOGLE_KEY} now") == "using *** now"
    assert redact("GET /v1beta/models/m:generateContent?key=secret123&alt=sse") == (
        "GET /v1beta/models/m:generateContent?key=***&alt=sse"
    )
    assert redact("nothing to hide") == "nothing to hide"


def test_formatter_redacts_args_and_tracebacks():
    formatter = RedactingFormatter(fmt="%(levelname)s %(message)s")
    record = logging.LogRecord("t", logging.ERROR, __file__, 1, "key is %s", (GOOGLE_KEY,), None)
    assert formatter.format(record) == "ERROR key is ***"

    try:
        raise RuntimeError(f"bad key {GOOGLE_KEY}")
    except RuntimeError as e:
        record = logging.LogRecord("t", logging.ERROR, __file__, 1, "failed", (), (type(e), e, e.__traceback__))
    output = formatter.format(record)
    assert GOOGLE_KEY not in output
    assert "bad key ***" in output


def test_setup_logging_accepts_level_names():
    setup_logging("debug")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, RedactingFormatter)

    setup_logging("not-a-level")
    assert logging.getLogger().level == logging.INFO
