import pytest

from respkit.wildcard import END_WITH_ESCAPE, compile_pattern


def test_empty():
    assert compile_pattern("").is_match("")


def test_literal():
    p = compile_pattern("a")
    assert p.is_match("a")
    assert not p.is_match("b")


def test_question_mark():
    p = compile_pattern("a?")
    assert p.is_match("ab")
    assert not p.is_match("a")
    assert not p.is_match("abb")
    assert not p.is_match("bb")


def test_star():
    p = compile_pattern("a*")
    assert p.is_match("ab")
    assert p.is_match("a")
    assert p.is_match("abb")
    assert not p.is_match("bb")


def test_brackets():
    p = compile_pattern("a[ab[]")
    assert p.is_match("ab")
    assert p.is_match("aa")
    assert p.is_match("a[")
    assert not p.is_match("abb")
    assert not p.is_match("bb")


def test_bracket_range():
    p = compile_pattern("h[a-c]llo")
    assert p.is_match("hallo")
    assert p.is_match("hbllo")
    assert p.is_match("hcllo")
    assert not p.is_match("hdllo")
    assert not p.is_match("hello")


def test_negated_brackets():
    p = compile_pattern("h[^ab]llo")
    assert not p.is_match("hallo")
    assert not p.is_match("hbllo")
    assert p.is_match("hcllo")

    p = compile_pattern("[^ab]c")
    assert not p.is_match("abc")
    assert p.is_match("1c")


def test_literal_caret():
    assert compile_pattern("1^2").is_match("1^2")
    assert compile_pattern(r"\[^1]2").is_match("[^1]2")
    assert compile_pattern("^1").is_match("^1")


def test_escape():
    assert compile_pattern(r"\\\\").is_match(r"\\")
    p = compile_pattern("\\*")
    assert p.is_match("*")
    assert not p.is_match("a")


def test_special_characters_are_literal():
    p = compile_pattern("a.b+c$")
    assert p.is_match("a.b+c$")
    assert not p.is_match("axb+c$")


def test_end_with_escape():
    with pytest.raises(ValueError) as info:
        compile_pattern("\\")
    assert str(info.value) == END_WITH_ESCAPE