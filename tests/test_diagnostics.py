import logging

from mantelagraph.diagnostics import (
    CrawlDiagnostic, FetchResult, FetchStatus,
    dump_crawl_summary, dump_fetch_summary, setup_logging,
)
from mantelagraph.models import Descriptor


def _ok(url="https://a.example/mantela.json"):
    return FetchResult(url=url, descriptor=Descriptor(), http_status=200,
                       duration_ms=12.0, depth=0)


def _failed(url="https://b.example/mantela.json"):
    return FetchResult(url=url, status=FetchStatus.HTTP_ERROR, http_status=404,
                       error_message="HTTP 404 Not Found", depth=1)


def test_fetch_result_ok_needs_descriptor():
    assert _ok().ok
    assert not FetchResult(url="x").ok
    assert not _failed().ok


def test_describe_failure():
    assert _failed().describe() == "Error: HTTP 404 Not Found"
    assert FetchResult(url="x", status=FetchStatus.JSON_ERROR).describe() == \
        "Error: json-error"


def test_crawl_diagnostic_summary():
    diag = CrawlDiagnostic(start_url="https://a.example/mantela.json")
    diag.fetches += [_ok(), _failed()]
    diag.skipped.append("https://a.example/mantela.json (visited)")
    diag.abandoned.append("https://c.example/mantela.json")

    summary = diag.to_dict()["summary"]
    assert summary == {
        "total_fetches": 2, "failed_fetches": 1, "skipped": 1, "abandoned": 1,
    }
    assert diag.failed_fetches() == [diag.fetches[1]]


def test_dump_fetch_summary_lines():
    assert dump_fetch_summary(_ok()).startswith("[✓] hop 0: https://a.example")
    line = dump_fetch_summary(_failed())
    assert "http-error" in line
    assert "HTTP 404 Not Found" in line


def test_dump_crawl_summary():
    diag = CrawlDiagnostic(start_url="https://a.example/mantela.json",
                           cancelled=True)
    diag.fetches.append(_failed())
    diag.abandoned.append("https://c.example/mantela.json")
    text = dump_crawl_summary(diag)
    assert "Failed: 1" in text
    assert "no aboutMe" in text
    assert "CANCELLED" in text


def test_setup_logging_null_handler_by_default():
    logger = setup_logging()
    assert logger.name == "mantelagraph"
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.NullHandler)


def test_setup_logging_file_and_stderr(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging(log_file=str(log_file), verbose=True)
    kinds = sorted(type(h).__name__ for h in logger.handlers)
    assert kinds == ["FileHandler", "StreamHandler"]

    logger.info("hello")
    for h in logger.handlers:
        h.flush()
    assert "hello" in log_file.read_text()

    setup_logging()


def test_setup_logging_closes_replaced_file_handler(tmp_path):
    logger = setup_logging(log_file=str(tmp_path / "first.log"))
    (old,) = logger.handlers
    assert old.stream is not None

    setup_logging(log_file=str(tmp_path / "second.log"))
    assert old.stream is None
    assert old not in logger.handlers

    setup_logging()
