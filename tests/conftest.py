"""
Shared fixtures for Toolbox tests.
"""

import io

import pytest

from toolbox.state import Store
from toolbox.tui.terminal import make_console


class KeyScript:
    """Feeds scripted raw keys to a menu; running out of keys is a test bug."""

    def __init__(self, *keys: str):
        self.keys = list(keys)
        self.reads = 0

    def __call__(self) -> str:
        if not self.keys:
            raise AssertionError("menu asked for more keys than the test scripted")
        self.reads += 1
        return self.keys.pop(0)


class Answers:
    """Feeds scripted answers to text prompts and records the questions."""

    def __init__(self, *answers: str):
        self.answers = list(answers)
        self.questions = []

    def __call__(self, question: str) -> str:
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {question}")
        return self.answers.pop(0)


@pytest.fixture
def store(tmp_path):
    """Empty store in a temporary directory."""
    return Store(tmp_path / "commands.json", tmp_path / "exports")


@pytest.fixture
def console():
    """Plain console writing to a buffer."""
    return make_console(file=io.StringIO(), width=100)


@pytest.fixture
def terminal_console(monkeypatch):
    """Console that behaves like a terminal (control codes, no colors)."""
    monkeypatch.setenv("TERM", "xterm-256color")
    return make_console(file=io.StringIO(), width=100, force_terminal=True, color_system=None)


@pytest.fixture
def keys():
    """Factory for scripted key readers: keys("j", "\\r")."""
    return KeyScript


@pytest.fixture
def answers():
    """Factory for scripted prompt answers: answers("build", "make")."""
    return Answers
