"""Tests for the line-by-line match pipeline."""
import io
import logging

from urlgrep.config import FilterConfig, build_config
from urlgrep.pipeline import LineState, classify_line, filter_lines, transform


def run(lines, tokens=(), raw=False):
    return list(filter_lines(lines, build_config(list(tokens), raw=raw)))


class TestClassifyLine:
    def test_states(self):
        config = build_config(["domain", "example"])
        seen: set[str] = set()
        assert classify_line("http://exa mple.com", config, seen) is LineState.PARSE_FAILED
        assert classify_line("https://other.org/", config, seen) is LineState.CONDITION_FAILED
        assert classify_line("https://example.com/", config, seen) is LineState.EMITTED
        assert classify_line("https://example.com/", config, seen) is LineState.DUPLICATE
        assert seen == {"https://example.com/"}

    def test_failed_lines_are_not_remembered(self):
        config = build_config(["scheme", "^https$"])
        seen: set[str] = set()
        classify_line("http://example.com/", config, seen)
        assert seen == set()


class TestFilterLines:
    def test_no_conditions_emits_every_parseable_line(self):
        lines = ["a.example.com\n", "http://bad host\n", "b.example.com\n"]
        assert run(lines) == ["a.example.com", "b.example.com"]

    def test_dedup_keeps_first_position(self):
        lines = ["https://b.com/", "https://a.com/", "https://b.com/", "https://c.com/"]
        assert run(lines) == ["https://b.com/", "https://a.com/", "https://c.com/"]

    def test_dedup_is_on_exact_text(self):
        lines = ["https://a.com/", "https://A.com/", "https://a.com/"]
        assert run(lines) == ["https://a.com/", "https://A.com/"]

    def test_line_endings_are_stripped(self):
        lines = ["https://a.com/x.js\r\n", "https://a.com/x.js\n", "https://a.com/y.js"]
        assert run(lines, ["ext", "js"]) == ["https://a.com/x.js", "https://a.com/y.js"]

    def test_and_of_conditions(self):
        lines = [
            "https://example.com/app.js",
            "http://example.com/app.js",
            "https://example.com/site.css",
        ]
        assert run(lines, ["scheme", "^https$", "ext", "^js$"]) == [lines[0]]
        assert run(lines, ["ext", "^js$"]) == lines[:2]

    def test_negated_ext(self):
        lines = ["https://e.com/a.css", "https://e.com/a.js", "https://e.com/"]
        assert run(lines, ["ext:not", "css"]) == lines[1:]
        assert run(lines, ["ext", "css"]) == lines[:1]

    def test_raw_mode(self):
        lines = ["https://e.com/?a=%2F"]
        assert run(lines, ["value", "/"]) == lines
        assert run(lines, ["value", "/"], raw=True) == []
        assert run(lines, ["value", "%2F"]) == []
        assert run(lines, ["value", "%2F"], raw=True) == lines

    def test_empty_query_key_value_matches_in_standard_mode(self):
        line = "https://e.com/?=secret"
        assert run([line], ["value", "secret"]) == [line]
        assert run([line], ["keypairs", "^=secret$"]) == [line]
        assert run([line], ["value", "secret"], raw=True) == []

    def test_output_is_verbatim(self):
        assert run(["Example.COM/Path"]) == ["Example.COM/Path"]

    def test_stats(self):
        stats = {"lines_in": 0, "lines_out": 0, "parse_failed": 0,
                 "condition_failed": 0, "duplicates": 0}
        lines = ["https://a.com/", "https://a.com/", "http://b c/", "ftp://a.com/"]
        config = build_config(["scheme", "https"])
        list(filter_lines(lines, config, stats))
        assert stats == {"lines_in": 4, "lines_out": 1, "parse_failed": 1,
                         "condition_failed": 1, "duplicates": 1}

    def test_verbose_logs_parse_failures(self, caplog):
        caplog.set_level(logging.INFO, logger="urlgrep.pipeline")
        list(filter_lines(["http://b c/"], FilterConfig(verbose=True)))
        assert "parse failure" in caplog.text

    def test_quiet_by_default(self, caplog):
        caplog.set_level(logging.INFO, logger="urlgrep.pipeline")
        list(filter_lines(["http://b c/"], FilterConfig()))
        assert caplog.text == ""


class _FailingInput:
    def __iter__(self):
        yield "https://a.com/\n"
        raise OSError("device gone")


class TestTransform:
    def test_writes_matching_lines(self):
        inp = io.StringIO("https://a.com/x.css\nhttps://a.com/x.js\nhttps://a.com/x.js\n")
        out = io.StringIO()
        stats = transform(inp, out, build_config(["ext", "js"]))
        assert out.getvalue() == "https://a.com/x.js\n"
        assert stats["lines_in"] == 3
        assert stats["lines_out"] == 1

    def test_read_error_keeps_emitted_output(self, caplog):
        out = io.StringIO()
        stats = transform(_FailingInput(), out, FilterConfig())
        assert out.getvalue() == "https://a.com/\n"
        assert stats["read_error"] == "device gone"
        assert "read error" in caplog.text
