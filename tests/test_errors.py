from pathlib import Path

from m8_sample_manager.errors import (
    CompositeError,
    DecodeFailure,
    ErrorAggregator,
    FileIOFailure,
    MissingSample,
    PathFailure,
    combine,
    error_lines,
)


def test_empty_aggregate_collapses_to_none():
    assert ErrorAggregator().collapse() is None


def test_single_error_is_returned_unwrapped():
    err = DecodeFailure(Path("a.m8s"), "bad header")
    errors = ErrorAggregator()
    errors.add(err)
    assert errors.collapse() is err


def test_many_errors_make_a_flat_composite():
    a = DecodeFailure(Path("a.m8s"), "bad header")
    b = FileIOFailure(Path("b.m8s"), "read file", "Permission denied")
    c = PathFailure("does not exist", Path("c"))

    inner = ErrorAggregator()
    inner.add(a)
    inner.add(b)
    outer = ErrorAggregator()
    outer.add(inner.collapse())
    outer.add(c)

    result = outer.collapse()
    assert isinstance(result, CompositeError)
    assert list(result) == [a, b, c]
    assert not any(isinstance(e, CompositeError) for e in result)


def test_combine_follows_collapse_rules():
    a = MissingSample(1, "/x.wav")
    b = MissingSample(2, "/y.wav")
    assert combine(None, None) is None
    assert combine(a, None) is a
    assert combine(None, b) is b
    both = combine(a, b)
    assert isinstance(both, CompositeError) and len(both) == 2
    three = combine(both, MissingSample(3, "/z.wav"))
    assert len(three) == 3


def test_error_lines_one_per_failure():
    a = MissingSample(10, "/x.wav")
    b = PathFailure("outside root")
    assert error_lines(None) == []
    assert error_lines(a) == ["Missing sample '/x.wav' used by instrument 0A"]
    assert error_lines(combine(a, b)) == [str(a), str(b)]


def test_composite_to_dict_lists_every_error():
    data = combine(MissingSample(0, "/a.wav"), MissingSample(1, "/b.wav")).to_dict()
    assert data["type"] == "CompositeError"
    assert [e["type"] for e in data["errors"]] == ["MissingSample", "MissingSample"]
