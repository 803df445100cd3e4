"""
Tests for the retry decorator used around checkout.

Run with: pytest tests/unit/test_concurrency.py -v
"""

from unittest.mock import Mock

import pytest
from django.db import OperationalError

from core.exceptions import Conflict
from marketplace.services.concurrency import retry_on_failure


class TestRetryOnFailure:

    def test_returns_after_transient_failure(self):
        func = Mock(side_effect=[OperationalError('locked'), 'ok'])
        func.__name__ = 'func'

        wrapped = retry_on_failure(max_retries=3, base_delay=0)(func)

        assert wrapped() == 'ok'
        assert func.call_count == 2

    def test_exhausted_retries_raise_replacement(self):
        func = Mock(side_effect=OperationalError('locked'))
        func.__name__ = 'func'

        def on_exhausted(exc):
            raise Conflict('busy') from exc

        wrapped = retry_on_failure(max_retries=2, base_delay=0, on_exhausted=on_exhausted)(func)

        with pytest.raises(Conflict):
            wrapped()
        assert func.call_count == 3

    def test_non_retryable_error_propagates_immediately(self):
        func = Mock(side_effect=ValueError('bad'))
        func.__name__ = 'func'

        wrapped = retry_on_failure(max_retries=3, base_delay=0)(func)

        with pytest.raises(ValueError):
            wrapped()
        assert func.call_count == 1

    def test_callable_settings_are_read_per_call(self):
        func = Mock(side_effect=OperationalError('locked'))
        func.__name__ = 'func'
        limits = {'retries': 0}

        wrapped = retry_on_failure(max_retries=lambda: limits['retries'], base_delay=lambda: 0)(func)

        with pytest.raises(OperationalError):
            wrapped()
        assert func.call_count == 1

        limits['retries'] = 1
        func.reset_mock()
        with pytest.raises(OperationalError):
            wrapped()
        assert func.call_count == 2
