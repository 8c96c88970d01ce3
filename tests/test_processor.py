import io
import json

import pytest

from rexfields.config import Config
from rexfields.errors import FragmentParseError, MissingFieldError, NoMatchError
from rexfields.output import OutputFormat
from rexfields.processor import Processor


def make_processor(regex, matches, fmt="json", strict=False):
    cfg = Config(regex=regex, matches=matches)
    extractor = cfg.compile()
    return Processor(extractor=extractor, output_format=cfg.output_format(extractor, fmt=fmt), strict=strict)


def run(processor, text):
    dst = io.StringIO()
    stats = processor.process_stream(io.StringIO(text), dst)
    return dst.getvalue(), stats


def test_first_last_scenario():
    processor = make_processor(r"^(\w+) (\w+)$", {"1": "first", "2": "last"})
    out, stats = run(processor, "Jane Doe\n")
    assert out == '{"first":"Jane","last":"Doe"}\n'
    assert (stats.lines, stats.emitted, stats.skipped) == (1, 1, 0)


def test_fragment_scenario():
    processor = make_processor(r"^(\w+) (.*)$", {"1": "first", "2": "json"})
    out, _ = run(processor, 'Jane {"age":30}\n')
    assert json.loads(out) == {"first": "Jane", "age": "30"}


def test_keys_equal_mapped_names_without_fragment():
    processor = make_processor(r"^(\w+)(?: (\{.*\}))?$", {"1": "first", "2": "json"})
    out, _ = run(processor, "Jane\n")
    assert json.loads(out) == {"first": "Jane"}


def test_single_field_format():
    processor = make_processor(r"^(\w+) (\w+)$", {"1": "first", "2": "last"}, fmt="last")
    out, _ = run(processor, "Jane Doe\nJohn Roe\n")
    assert out == "Doe\nRoe\n"


def test_unmatched_lines_are_skipped(caplog):
    processor = make_processor(r"^(\w+) (\w+)$", {"1": "first", "2": "last"})
    with caplog.at_level("DEBUG"):
        out, stats = run(processor, "Jane Doe\nnope\nJohn Roe\n")
    assert out.splitlines() == ['{"first":"Jane","last":"Doe"}', '{"first":"John","last":"Roe"}']
    assert stats.skipped == 1
    assert "line 2" in caplog.text


def test_strict_mode_aborts_on_no_match():
    processor = make_processor(r"^(\w+) (\w+)$", {"1": "first", "2": "last"}, strict=True)
    dst = io.StringIO()
    with pytest.raises(NoMatchError) as excinfo:
        processor.process_stream(io.StringIO("Jane Doe\nnope\nJohn Roe\n"), dst)
    assert excinfo.value.line == "nope"
    assert excinfo.value.line_no == 2
    assert dst.getvalue() == '{"first":"Jane","last":"Doe"}\n'


def test_bad_fragment_skipped_with_warning(caplog):
    processor = make_processor(r"^(\w+) (.*)$", {"1": "first", "2": "json"})
    with caplog.at_level("WARNING"):
        out, stats = run(processor, "Jane {broken\nJohn {}\n")
    assert out == '{"first":"John"}\n'
    assert stats.skipped == 1
    assert "invalid JSON fragment" in caplog.text


def test_bad_fragment_strict():
    processor = make_processor(r"^(\w+) (.*)$", {"1": "first", "2": "json"}, strict=True)
    with pytest.raises(FragmentParseError):
        run(processor, "Jane [1]\n")


def test_missing_field_is_per_line():
    processor = make_processor(r"^(\w+)(?: (.*))?$", {"1": "first", "2": "json"}, fmt="first")
    processor = Processor(extractor=processor.extractor, output_format=OutputFormat(name="age"))
    out, stats = run(processor, 'Jane {"age":30}\nJohn\n')
    assert out == "30\n"
    assert stats.skipped == 1

    processor.strict = True
    with pytest.raises(MissingFieldError):
        run(processor, "John\n")


def test_line_endings_are_stripped():
    processor = make_processor(r"^(.*)$", {"1": "line"})
    out, _ = run(processor, "a\r\nb")
    assert out == '{"line":"a"}\n{"line":"b"}\n'
