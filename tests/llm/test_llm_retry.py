"""Tests for the retry and backoff behaviour of LLMClient."""

from unittest.mock import MagicMock

import pytest

from unit_editor.llm import base
from unit_editor.llm.base import LLMClient, LLMError


class FakeClient(LLMClient):
    def __init__(self, responses, **kwargs):
        super().__init__(**kwargs)
        self.responses = list(responses)
        self.calls = 0

    def _generate(self, prompt):
        self.calls += 1
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def _stream(self, prompt):
        for item in self.responses:
            if isinstance(item, Exception):
                raise item
            yield item


@pytest.fixture
def sleep(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(base.time, "sleep", fake)
    return fake


class TestComplete:
    def test_first_try(self, sleep):
        client = FakeClient(["ok"])
        assert client.complete("p") == "ok"
        sleep.assert_not_called()

    def test_retries_after_error(self, sleep):
        client = FakeClient([RuntimeError("timeout"), "ok"], retry_delay=1.0)
        assert client.complete("p") == "ok"
        assert client.calls == 2
        assert sleep.call_count == 1

    def test_rate_limit_waits_longer(self, sleep):
        client = FakeClient([RuntimeError("HTTP 429"), "ok"], retry_delay=1.0)
        client.complete("p")
        assert sleep.call_args[0][0] >= 2.0

    def test_empty_response_retried(self, sleep):
        client = FakeClient(["  ", "ok"])
        assert client.complete("p") == "ok"

    def test_gives_up(self, sleep):
        client = FakeClient([RuntimeError("a"), RuntimeError("b"), RuntimeError("c")],
                            max_retries=3)
        with pytest.raises(LLMError, match="after 3 retries"):
            client.complete("p")
        assert client.calls == 3

    def test_all_empty(self, sleep):
        client = FakeClient(["", "", ""], max_retries=3)
        with pytest.raises(LLMError, match="empty"):
            client.complete("p")


class TestBackoff:
    def test_grows_exponentially(self):
        client = FakeClient([], retry_delay=1.0)
        assert 1.0 <= client._backoff(1) <= 1.1
        assert 4.0 <= client._backoff(3) <= 4.4


class TestCompleteStream:
    def test_skips_empty_fragments(self):
        assert list(FakeClient(["a", "", "b"]).complete_stream("p")) == ["a", "b"]

    def test_wraps_errors(self):
        client = FakeClient(["a", RuntimeError("reset")])
        stream = client.complete_stream("p")
        assert next(stream) == "a"
        with pytest.raises(LLMError, match="reset"):
            next(stream)
