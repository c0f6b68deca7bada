# tests/test_classify.py
"""Reference candidate classification."""

import pytest

from gdblint.classify import (
    Classifier,
    Verdict,
    is_floating_point,
    is_func_arg,
    is_history_var,
    is_number,
)


class TestPredicates:

    @pytest.mark.parametrize("token", ["$", "$$", "$1", "$$2", "$$10", "7"])
    def test_history(self, token):
        assert is_history_var(token)

    @pytest.mark.parametrize("token", ["$x", "$$$", "$1a", "x1"])
    def test_not_history(self, token):
        assert not is_history_var(token)

    @pytest.mark.parametrize("token", ["arg0", "arg10", "$arg3"])
    def test_func_arg(self, token):
        assert is_func_arg(token)

    @pytest.mark.parametrize("token", ["arg", "args", "$$arg1", "argc"])
    def test_not_func_arg(self, token):
        assert not is_func_arg(token)

    @pytest.mark.parametrize("token", ["0", "42", "-7", "+3"])
    def test_integer(self, token):
        assert is_number(token)

    @pytest.mark.parametrize("token", ["3.14", "-0.5", ".5", "+1.0"])
    def test_float(self, token):
        assert is_floating_point(token)

    @pytest.mark.parametrize("token", ["5.", "1.2.3", "1e5", "-", "."])
    def test_not_float(self, token):
        assert not is_floating_point(token)


class TestClassifier:

    @pytest.mark.parametrize("token", [
        "$1", "$$", "$$2", "arg3", "$arg3", "42", "-7", "3.14", "-0.5",
    ])
    def test_rejects_non_symbols(self, token):
        assert not Classifier().is_valid_reference(token)

    @pytest.mark.parametrize("token", ["my_var", "greet", "1.2.3", "5.", "x-y"])
    def test_accepts_symbols(self, token):
        assert Classifier().is_valid_reference(token)

    @pytest.mark.parametrize("token", ["if", "else", "while", "end",
                                       "loop_break", "loop_continue"])
    def test_keywords(self, token):
        assert Classifier().classify(token) is Verdict.KEYWORD

    def test_break_is_not_a_keyword(self):
        assert Classifier().classify("break") is Verdict.REFERENCE

    def test_registered_command(self, commands):
        classifier = Classifier(commands)
        assert classifier.classify("break") is Verdict.COMMAND
        assert classifier.is_valid_reference("brea")

    def test_abbreviations(self, commands):
        classifier = Classifier(commands, abbreviations=True)
        assert classifier.classify("brea") is Verdict.COMMAND
        assert classifier.is_valid_reference("breakx")

    def test_check_order(self, commands):
        commands.insert("42")
        assert Classifier(commands).classify("42") is Verdict.HISTORY
        commands.insert("arg1")
        assert Classifier(commands).classify("arg1") is Verdict.FUNC_ARG

    def test_callable(self):
        assert Classifier()("foo")
        assert not Classifier()("$1")
