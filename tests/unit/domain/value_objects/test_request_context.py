from dataclasses import fields
from datetime import datetime

import pytest

from src.core.exceptions import OperationCancelledError
from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.request_context import CancellationToken, RequestContext


class TestRequestContext:
    def test_defaults(self):
        context = RequestContext(correlation_id="req-1")
        assert context.caller_tier is AccessTier.READ_ONLY
        assert context.created_at.tzinfo is not None
        assert not context.cancellation.is_cancelled

    def test_carries_only_call_identity_and_control(self):
        assert [f.name for f in fields(RequestContext)] == [
            "correlation_id",
            "caller_tier",
            "cancellation",
            "created_at",
        ]

    @pytest.mark.parametrize("correlation_id", ["", "   "])
    def test_rejects_empty_correlation_id(self, correlation_id):
        with pytest.raises(ValueError):
            RequestContext(correlation_id=correlation_id)

    def test_rejects_naive_timestamp(self):
        with pytest.raises(ValueError):
            RequestContext(correlation_id="req-1", created_at=datetime(2024, 1, 1))

    def test_rejects_non_tier(self):
        with pytest.raises(ValueError):
            RequestContext(correlation_id="req-1", caller_tier="ADMIN")


class TestCancellationToken:
    def test_cancel_is_one_way(self):
        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel()
        token.cancel()
        assert token.is_cancelled
        with pytest.raises(OperationCancelledError):
            token.raise_if_cancelled()
