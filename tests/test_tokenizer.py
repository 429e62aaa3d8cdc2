"""
Tests for the token estimate.
"""

from paradoc import tokenizer


class FakeEncoding:
    def __init__(self):
        self.calls = []

    def encode(self, text, disallowed_special=()):
        self.calls.append(text)
        return text.split()


def test_empty_text_has_no_tokens():
    assert tokenizer.estimate_tokens("") == 0


def test_length_estimate_when_encoding_is_unavailable():
    assert tokenizer.estimate_tokens("x" * 17) == 3


def test_encoding_is_used_for_small_texts(monkeypatch):
    enc = FakeEncoding()
    monkeypatch.setattr(tokenizer, "_get_encoding", lambda: enc)

    assert tokenizer.estimate_tokens("a b c d") == 4
    assert enc.calls == ["a b c d"]


def test_large_texts_skip_exact_tokenization(monkeypatch):
    enc = FakeEncoding()
    monkeypatch.setattr(tokenizer, "_get_encoding", lambda: enc)
    text = "y" * (tokenizer.MAX_EXACT_BYTES + 8)

    assert tokenizer.estimate_tokens(text) == (tokenizer.MAX_EXACT_BYTES + 8) // 8
    assert enc.calls == []
