# tests/unit/llm/test_unit_retry.py - v1
"""Tests for llm/retry.py - RetryPolicy and error classification."""

from __future__ import annotations

import asyncio

import pytest

from dealscope.llm.retry import NO_RETRY, RetryPolicy, classify_error
from dealscope.pipeline.errors import AgentExecutionError


class TestClassifyError:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (RuntimeError("429 Too Many Requests"), "rate_limit"),
            (RuntimeError("request timed out"), "timeout"),
            (RuntimeError("503 Service Unavailable"), "server_error"),
            (ValueError("JSON decode error"), "parse_error"),
            (RuntimeError("max token limit exceeded"), "token_limit"),
            (KeyError("x"), "unknown"),
        ],
    )
    def test_classify(self, error, expected):
        assert classify_error(error) == expected


class TestRetryPolicy:
    def test_default_is_no_retry(self):
        assert NO_RETRY.max_attempts == 1
        assert not NO_RETRY.should_retry(RuntimeError("503"), 1)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)
        with pytest.raises(ValueError):
            RetryPolicy(base_delay_s=-0.1)

    def test_bounded(self):
        policy = RetryPolicy(max_retries=2)
        err = RuntimeError("503")
        assert policy.should_retry(err, 1)
        assert policy.should_retry(err, 2)
        assert not policy.should_retry(err, 3)

    def test_unwraps_cause(self):
        policy = RetryPolicy(max_retries=1)
        wrapped = AgentExecutionError("a", "LLM call failed", cause=RuntimeError("429"))
        assert policy.should_retry(wrapped, 1)
        parse = AgentExecutionError("a", "bad", cause=ValueError("json parse"))
        assert not policy.should_retry(parse, 1)

    def test_timeout_needs_flag(self):
        assert not RetryPolicy(max_retries=1).should_retry(asyncio.TimeoutError(), 1)
        assert RetryPolicy(max_retries=1, retry_on_timeout=True).should_retry(
            asyncio.TimeoutError(), 1
        )

    def test_backoff_without_jitter(self):
        policy = RetryPolicy(max_retries=3, base_delay_s=1.0, backoff_factor=2.0, jitter=False)
        assert [policy.compute_delay(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_jitter_bounds(self):
        policy = RetryPolicy(max_retries=1, base_delay_s=2.0)
        for _ in range(50):
            assert 1.0 <= policy.compute_delay(1) <= 3.0
