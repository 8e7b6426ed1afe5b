"""Tests for livecoder.cancellation — per-run cancellation token."""

from __future__ import annotations

from livecoder.cancellation import CancellationToken


class TestCancellationToken:
    def test_starts_uncancelled(self):
        token = CancellationToken()
        assert token.cancelled is False

    def test_cancel_sets_flag(self):
        token = CancellationToken()
        token.cancel()
        assert token.cancelled is True

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled is True

    def test_run_ids_are_distinct(self):
        assert CancellationToken().run_id != CancellationToken().run_id

    def test_repr_includes_state(self):
        token = CancellationToken()
        assert "cancelled=False" in repr(token)
