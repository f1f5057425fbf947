"""Tests for access data types."""

import pytest

from periodical_archive.access.data_types import (
    AccessHandle,
    AccessOutcome,
    CancellationToken,
    OutcomeKind,
)
from periodical_archive.exceptions import AccessCancelled


class TestAccessOutcome:
    """Tests for AccessOutcome constructors."""

    def test_granted_carries_locator(self, make_document):
        doc = make_document('a', '2023-05-02', locator='uploads/pdfs/a.pdf')

        outcome = AccessOutcome.granted(doc)

        assert outcome.kind == OutcomeKind.GRANTED
        assert outcome.is_granted
        assert outcome.content_locator == 'uploads/pdfs/a.pdf'
        assert outcome.document_id == 'a'

    def test_denials_have_fixed_status(self):
        assert AccessOutcome.authentication_required('a').status_code == 401
        assert AccessOutcome.subscription_required('a', preview={'title': 'A'}).status_code == 403

    def test_cancelled(self):
        outcome = AccessOutcome.cancelled('a')

        assert outcome.is_cancelled
        assert not outcome.is_granted


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_cancel_once(self):
        token = CancellationToken()

        assert token.cancel() is True
        assert token.cancel() is False
        assert token.is_cancelled

    def test_callbacks_run_once(self):
        token = CancellationToken()
        calls = []
        token.add_callback(lambda: calls.append(1))

        token.cancel()
        token.cancel()

        assert calls == [1]

    def test_callback_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        calls = []

        token.add_callback(lambda: calls.append(1))

        assert calls == [1]

    def test_failing_callback_does_not_stop_others(self):
        token = CancellationToken()
        calls = []

        def broken():
            raise RuntimeError("boom")

        token.add_callback(broken)
        token.add_callback(lambda: calls.append(1))
        token.cancel()

        assert calls == [1]

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled('a')

        token.cancel()
        with pytest.raises(AccessCancelled) as exc_info:
            token.raise_if_cancelled('a')
        assert exc_info.value.document_id == 'a'


class TestAccessHandle:
    """Tests for AccessHandle."""

    def test_request_ids_increase(self):
        first = AccessHandle('a')
        second = AccessHandle('b')

        assert second.request_id > first.request_id

    def test_cancel_pending(self):
        handle = AccessHandle('a')

        assert handle.cancel() is True
        assert handle.is_cancelled
        assert handle.outcome.is_cancelled

    def test_cancel_after_resolve_is_noop(self):
        handle = AccessHandle('a')
        handle.resolve(AccessOutcome.authentication_required('a'))

        assert handle.cancel() is False
        assert handle.outcome.kind == OutcomeKind.AUTHENTICATION_REQUIRED
        assert not handle.is_cancelled

    def test_resolve_once(self):
        handle = AccessHandle('a')

        assert handle.resolve(AccessOutcome.authentication_required('a')) is True
        assert handle.resolve(AccessOutcome.transient_error('a', 'x')) is False
        assert handle.outcome.kind == OutcomeKind.AUTHENTICATION_REQUIRED

    def test_resolve_after_cancel_rejected(self):
        handle = AccessHandle('a')
        handle.cancel()

        assert handle.resolve(AccessOutcome.transient_error('a', 'late')) is False
        assert handle.outcome.is_cancelled

    def test_context_manager_cancels(self):
        with AccessHandle('a') as handle:
            pass

        assert handle.is_cancelled

    def test_wait_returns_outcome(self):
        handle = AccessHandle('a')
        handle.resolve(AccessOutcome.authentication_required('a'))

        assert handle.wait(0.1).kind == OutcomeKind.AUTHENTICATION_REQUIRED

    def test_wait_times_out(self):
        assert AccessHandle('a').wait(0.01) is None
