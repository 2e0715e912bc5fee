"""
Tests for the state change notifier.
"""

from decimal import Decimal

import pytest

from apps.articles.ledger import ArticleSnapshot
from apps.articles.notifier import StateChangeNotifier, observer_name
from apps.articles.states import ArticleStatus


@pytest.fixture
def article():
    return ArticleSnapshot(
        id='a1',
        title='Economy 2025',
        author_id='1',
        status=ArticleStatus.PUBLISHED,
        approval_percentage=Decimal('100.00'),
        review_cycle=1,
    )


class Recorder:
    def __init__(self, label, calls):
        self.name = label
        self.calls = calls

    def on_state_change(self, article, old_state, new_state, message):
        self.calls.append((self.name, article.id, old_state, new_state, message))


class Failing:
    def on_state_change(self, article, old_state, new_state, message):
        raise ValueError('boom')


class TestStateChangeNotifier:

    def test_observers_are_called_in_subscription_order(self, article):
        calls = []
        notifier = StateChangeNotifier([Recorder('first', calls), Recorder('second', calls)])

        failures = notifier.notify(article, 'in_review', 'published', 'done')

        assert failures == []
        assert [call[0] for call in calls] == ['first', 'second']
        assert calls[0][1:] == ('a1', 'in_review', 'published', 'done')

    def test_failure_is_reported_and_others_still_run(self, article):
        calls = []
        notifier = StateChangeNotifier([Failing(), Recorder('after', calls)])

        failures = notifier.notify(article, 'in_review', 'published', 'done')

        assert len(calls) == 1
        [failure] = failures
        assert failure.observer == 'Failing'
        assert failure.article_id == 'a1'
        assert failure.old_state == 'in_review'
        assert failure.new_state == 'published'
        assert failure.error == 'ValueError: boom'

    def test_notify_without_observers(self, article):
        assert StateChangeNotifier().notify(article, 'draft', 'in_review', 'sent') == []

    def test_subscribe_rejects_objects_without_handler(self):
        with pytest.raises(TypeError):
            StateChangeNotifier().subscribe(object())

    def test_observer_list_is_a_copy(self):
        notifier = StateChangeNotifier([Failing()])
        notifier.observers.clear()
        assert notifier.observer_count == 1

    def test_observer_name_prefers_name_attribute(self):
        assert observer_name(Recorder('audit', [])) == 'audit'
        assert observer_name(Failing()) == 'Failing'
