"""
Tests for structured logging, metrics, health checks and request IDs.
"""

import json
import logging
import uuid
from unittest.mock import MagicMock

import pytest

from apps.core.middleware import (
    RequestIDFilter,
    _coerce_request_id,
    celery_request_id_headers,
    clear_request_context,
    get_request_id,
    set_request_context,
    setup_celery_request_context,
)
from apps.core.observability import (
    HealthCheckResult,
    HealthStatus,
    LogContext,
    get_logger,
    health_checker,
    metrics,
    record_transition_metrics,
    record_vote_metrics,
    timed,
)


@pytest.fixture
def request_context():
    yield
    clear_request_context()


@pytest.fixture
def extra_checks():
    """Restore the registered health checks after the test."""
    saved = dict(health_checker._checks)
    yield health_checker
    health_checker._checks.clear()
    health_checker._checks.update(saved)


# ============================================================================
# Structured logging
# ============================================================================

class TestStructuredLogger:

    def test_json_line_with_context(self):
        log = get_logger('tests.structured', component='engine')
        log._logger = MagicMock()

        log.info('Vote recorded', LogContext(component='engine', operation='submit_vote', article_id='a1'), weight='40.00')

        payload = json.loads(log._logger.info.call_args.args[0])
        assert payload['message'] == 'Vote recorded'
        assert payload['operation'] == 'submit_vote'
        assert payload['article_id'] == 'a1'
        assert payload['weight'] == '40.00'
        assert payload['level'] == 'INFO'

    def test_picks_up_request_id(self, request_context):
        log = get_logger('tests.structured')
        log._logger = MagicMock()
        set_request_context('rid-1')

        log.warning('Slow commit')

        payload = json.loads(log._logger.warning.call_args.args[0])
        assert payload['correlation_id'] == 'rid-1'

    def test_context_stack(self):
        log = get_logger('tests.structured', component='engine')
        log._logger = MagicMock()

        with log.context(LogContext(component='engine', operation='retry', extra={'attempt': 2})):
            log.debug('Retrying')
        log.debug('Done')

        first, second = [json.loads(c.args[0]) for c in log._logger.debug.call_args_list]
        assert first['attempt'] == 2
        assert 'attempt' not in second


# ============================================================================
# Metrics
# ============================================================================

class TestMetrics:

    def test_counters_with_tags(self):
        metrics.increment('workflow.votes', tags={'decision': 'approved'})
        metrics.increment('workflow.votes', tags={'decision': 'approved'})

        assert metrics.get_counter('workflow.votes', tags={'decision': 'approved'}) == 2
        assert metrics.get_counter('workflow.votes', tags={'decision': 'rejected'}) == 0

    def test_gauge(self):
        metrics.gauge('workflow.pending', 3)

        assert metrics.get_gauge('workflow.pending') == 3

    def test_timed_decorator(self):
        @timed('tests.work')
        def work():
            return 42

        assert work() == 42
        assert metrics.get_counter('tests.work_count') == 1
        assert metrics.get_histogram_stats('tests.work_duration_ms')['count'] == 1

    def test_record_helpers(self):
        record_vote_metrics('EDITOR', 'APPROVED', published=True)
        record_transition_metrics('in_review', 'published')

        assert metrics.get_counter('workflow.votes', tags={'decision': 'approved'}) == 1
        assert metrics.get_counter('workflow.votes_by_role', tags={'role': 'EDITOR'}) == 1
        assert metrics.get_counter('workflow.articles_published') == 1
        assert metrics.get_counter('workflow.transitions', tags={'from': 'in_review', 'to': 'published'}) == 1

    def test_empty_histogram(self):
        assert metrics.get_histogram_stats('never.recorded')['count'] == 0


# ============================================================================
# Health checks
# ============================================================================

class TestHealthChecker:

    def test_unknown_check(self):
        result = health_checker.check('nope')

        assert result.status == HealthStatus.UNHEALTHY

    def test_failing_check_is_unhealthy(self, extra_checks):
        def explode():
            raise ConnectionError('broker down')

        extra_checks.register('broker', explode)

        result = extra_checks.check('broker')
        assert result.status == HealthStatus.UNHEALTHY
        assert result.message == 'broker down'

    def test_degraded_rolls_up(self, extra_checks):
        extra_checks._checks.clear()
        extra_checks.register('ok', lambda: HealthCheckResult('ok', HealthStatus.HEALTHY))
        extra_checks.register('slow', lambda: HealthCheckResult('slow', HealthStatus.DEGRADED))

        report = extra_checks.check_all()

        assert report['status'] == 'degraded'
        assert set(report['checks']) == {'ok', 'slow'}


@pytest.mark.django_db
class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get('/api/health/')

        assert response.status_code == 200
        body = response.json()
        assert body['status'] == 'healthy'
        assert set(body['checks']) >= {'database', 'cache'}

    def test_single_check(self, client):
        response = client.get('/api/health/database/')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    def test_unknown_single_check(self, client):
        assert client.get('/api/health/nope/').status_code == 503

    def test_liveness_and_readiness(self, client):
        assert client.get('/api/livez/').json() == {'status': 'alive'}
        assert client.get('/api/readyz/').json() == {'status': 'ready'}

    def test_metrics(self, client):
        metrics.increment('workflow.votes', tags={'decision': 'approved'})

        body = client.get('/api/metrics/').json()

        assert body['counters'] == {'workflow.votes[decision=approved]': 1}


# ============================================================================
# Request IDs
# ============================================================================

class TestRequestIds:

    def test_valid_header_is_kept(self):
        value = str(uuid.uuid4())
        assert _coerce_request_id(value.upper()) == value

    @pytest.mark.parametrize('value', [None, '', 'not-a-uuid'])
    def test_invalid_header_is_replaced(self, value):
        minted = _coerce_request_id(value)
        assert str(uuid.UUID(minted)) == minted

    def test_celery_headers(self, request_context):
        assert celery_request_id_headers() == {}

        set_request_context('rid-2')

        assert celery_request_id_headers() == {'request_id': 'rid-2'}

    def test_worker_restores_context(self, request_context):
        setup_celery_request_context({'request_id': 'rid-3'})
        assert get_request_id() == 'rid-3'

        setup_celery_request_context(None)
        assert get_request_id() not in (None, 'rid-3')

    def test_log_filter(self, request_context):
        record = logging.LogRecord('x', logging.INFO, __file__, 1, 'msg', None, None)

        RequestIDFilter().filter(record)
        assert record.request_id == '-'

        set_request_context('rid-4')
        RequestIDFilter().filter(record)
        assert record.request_id == 'rid-4'

    @pytest.mark.django_db
    def test_response_header(self, client):
        response = client.get('/api/livez/')

        assert uuid.UUID(response['X-Request-ID'])
