"""
Tests for timing A/B tests and recent timing correlation.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import connection

from timing.exceptions import ExperimentNotActive, InvalidResponseType
from timing.models import TimingExperiment
from timing.tests.fixtures import (
    TimingExperimentFactory,
    UserFactory,
    fixed_clock,
    metrics_at,
    utc,
)
from timing.timing_analytics import (
    NEXT_STEPS,
    TimingAnalyticsService,
    approximate_p_value,
    chi_square_statistic,
)


class TestChiSquare:

    def test_equal_rates_are_never_significant(self):
        assert chi_square_statistic(10, 100, 10, 100) == 0
        assert chi_square_statistic(500, 1000, 500, 1000) == 0

    def test_large_gap_is_significant(self):
        chi2 = chi_square_statistic(2, 100, 20, 100)
        assert chi2 == pytest.approx(16.547, rel=1e-3)
        assert chi2 > 3.84

    def test_empty_table(self):
        assert chi_square_statistic(0, 0, 0, 0) == 0

    @pytest.mark.parametrize('chi2,expected', [(0.5, 0.3), (2, 0.05), (5, 0.01), (10, 0.001)])
    def test_p_value_buckets(self, chi2, expected):
        assert approximate_p_value(chi2) == expected


@pytest.mark.django_db
class TestABTests:

    def setup_method(self):
        self.user = UserFactory()
        self.now = utc(2024, 2, 1, 12, 0)
        self.service = TimingAnalyticsService(clock=fixed_clock(self.now))

    def _experiment(self, control=(0, 0, 0), variant=(0, 0, 0), **kwargs):
        return TimingExperimentFactory(
            user=self.user,
            control_submissions=control[0],
            control_responses=control[1],
            control_interviews=control[2],
            variant_submissions=variant[0],
            variant_responses=variant[1],
            variant_interviews=variant[2],
            **kwargs
        )

    def test_create_uses_defaults(self):
        result = self.service.create_ab_test(self.user, 'Morning vs afternoon', 'Tuesday 9 AM', 'Tuesday 2 PM')

        experiment = TimingExperiment.objects.get(id=result['test_id'])
        assert result['status'] == 'active'
        assert experiment.test_duration_days == 30
        assert experiment.minimum_sample_size == 20
        assert experiment.started_at == self.now

    def test_record_submission_increments_one_group(self):
        experiment = self._experiment()

        self.service.record_test_submission(self.user, experiment.id, True, application_id=1)
        result = self.service.record_test_submission(self.user, experiment.id, True, application_id=2)

        assert result['current_progress'] == {'control': 2, 'variant': 0}
        experiment.refresh_from_db()
        assert experiment.control_submissions == 2
        assert experiment.variant_submissions == 0

    def test_record_response_updates_counters_and_rates(self):
        experiment = self._experiment(variant=(4, 0, 0))

        self.service.record_test_response(self.user, experiment.id, False, 'interview')
        self.service.record_test_response(self.user, experiment.id, False, 'rejection')

        experiment.refresh_from_db()
        assert experiment.variant_responses == 2
        assert experiment.variant_interviews == 1
        assert experiment.variant_response_rate == 50
        assert experiment.variant_interview_rate == 25
        assert experiment.control_responses == 0

    def test_response_rate_is_zero_without_submissions(self):
        experiment = self._experiment()

        self.service.record_test_response(self.user, experiment.id, True, 'follow_up')

        experiment.refresh_from_db()
        assert experiment.control_responses == 1
        assert experiment.control_response_rate == 0

    def test_invalid_response_type(self):
        experiment = self._experiment()

        with pytest.raises(InvalidResponseType):
            self.service.record_test_response(self.user, experiment.id, True, 'ghosted')

    def test_closed_experiment_rejects_updates(self):
        experiment = self._experiment(status=TimingExperiment.STATUS_COMPLETED)

        with pytest.raises(ExperimentNotActive):
            self.service.record_test_submission(self.user, experiment.id, True, application_id=1)
        with pytest.raises(ExperimentNotActive):
            self.service.record_test_response(self.user, experiment.id, True, 'interview')

    def test_other_users_experiment_is_not_found(self):
        experiment = TimingExperimentFactory()

        with pytest.raises(TimingExperiment.DoesNotExist):
            self.service.record_test_submission(self.user, experiment.id, True, application_id=1)

    def test_variant_wins(self):
        experiment = self._experiment(control=(20, 2, 1), variant=(20, 10, 6), minimum_sample_size=20)

        result = self.service.analyze_test_results(self.user, experiment.id)

        assert result['winning_variant'] == 'variant'
        assert result['improvement'] == pytest.approx(40)
        assert result['interview_rate_improvement'] == pytest.approx(25)
        assert result['is_significant'] is True
        assert result['p_value'] == 0.001
        assert result['implementation_confidence'] == 1
        assert 'Variant timing (Tuesday 9-11 AM)' in result['recommendation']

        experiment.refresh_from_db()
        assert experiment.winning_variant == 'variant'
        assert experiment.is_statistically_significant is True
        assert experiment.response_rate_improvement == pytest.approx(40)
        assert experiment.status == TimingExperiment.STATUS_ACTIVE

    def test_control_wins(self):
        experiment = self._experiment(control=(10, 5, 2), variant=(10, 4, 1))

        result = self.service.analyze_test_results(self.user, experiment.id)

        assert result['winning_variant'] == 'control'
        assert result['is_significant'] is False
        assert result['implementation_confidence'] == pytest.approx(0.5)

    def test_equal_rates_are_inconclusive(self):
        experiment = self._experiment(control=(100, 10, 5), variant=(100, 10, 5))

        result = self.service.analyze_test_results(self.user, experiment.id)

        assert result['winning_variant'] == 'inconclusive'
        assert result['is_significant'] is False
        assert result['p_value'] == 0.3

    def test_complete_significant_test(self):
        experiment = self._experiment(control=(100, 2, 1), variant=(100, 20, 8))

        result = self.service.complete_test(self.user, experiment.id)

        assert result['status'] == TimingExperiment.STATUS_COMPLETED
        assert result['ended_at'] == self.now
        assert result['recommendation']['next_steps'] == NEXT_STEPS['variant']
        experiment.refresh_from_db()
        assert experiment.status == TimingExperiment.STATUS_COMPLETED
        assert experiment.ended_at == self.now

        with pytest.raises(ExperimentNotActive):
            self.service.record_test_submission(self.user, experiment.id, False, application_id=3)

    def test_complete_without_significance_is_inconclusive(self):
        experiment = self._experiment(control=(5, 1, 0), variant=(5, 1, 0))

        result = self.service.complete_test(self.user, experiment.id)

        assert result['status'] == TimingExperiment.STATUS_INCONCLUSIVE
        assert result['recommendation']['next_steps'] == NEXT_STEPS['inconclusive']

    def test_completing_twice_is_rejected(self):
        experiment = self._experiment(control=(100, 2, 1), variant=(100, 20, 8))
        self.service.complete_test(self.user, experiment.id)
        later = TimingAnalyticsService(clock=fixed_clock(self.now + timedelta(days=3)))

        with pytest.raises(ExperimentNotActive):
            later.complete_test(self.user, experiment.id)

        experiment.refresh_from_db()
        assert experiment.status == TimingExperiment.STATUS_COMPLETED
        assert experiment.ended_at == self.now

    def test_history_and_active_tests(self):
        older = self._experiment(started_at=utc(2024, 1, 1, 8, 0), status=TimingExperiment.STATUS_COMPLETED)
        newer = self._experiment(started_at=utc(2024, 1, 20, 8, 0))
        TimingExperimentFactory()

        history = self.service.get_test_history(self.user)
        active = self.service.get_active_tests(self.user)

        assert [t['test_id'] for t in history] == [newer.id, older.id]
        assert [t['test_id'] for t in active] == [newer.id]
        assert active[0]['progress']['target_sample_size'] == 20


@pytest.mark.django_db(transaction=True)
class TestExperimentRowLocking:
    """Counter and analysis writes lock the experiment row inside a transaction."""

    def setup_method(self):
        self.user = UserFactory()
        self.service = TimingAnalyticsService(clock=fixed_clock(utc(2024, 2, 1, 12, 0)))
        self.experiment = TimingExperimentFactory(user=self.user, control_submissions=2)

    def _locked_calls(self, action):
        original = TimingExperiment.objects.select_for_update
        in_transaction = []

        def spy(*args, **kwargs):
            in_transaction.append(connection.in_atomic_block)
            return original(*args, **kwargs)

        with patch.object(TimingExperiment.objects, 'select_for_update', side_effect=spy):
            action()
        return in_transaction

    def test_submission_locks_row(self):
        calls = self._locked_calls(
            lambda: self.service.record_test_submission(self.user, self.experiment.id, True, application_id=1)
        )

        assert calls == [True]

    def test_response_locks_row(self):
        calls = self._locked_calls(
            lambda: self.service.record_test_response(self.user, self.experiment.id, True, 'interview')
        )

        assert calls == [True]

    def test_analysis_and_completion_lock_row(self):
        calls = self._locked_calls(lambda: self.service.analyze_test_results(self.user, self.experiment.id))
        calls += self._locked_calls(lambda: self.service.complete_test(self.user, self.experiment.id))

        assert calls == [True, True]
        self.experiment.refresh_from_db()
        assert self.experiment.status == TimingExperiment.STATUS_INCONCLUSIVE


@pytest.mark.django_db
class TestRecentTimingCorrelation:

    def setup_method(self):
        self.user = UserFactory()
        self.now = utc(2024, 1, 31, 12, 0)
        self.service = TimingAnalyticsService(clock=fixed_clock(self.now))

    def test_insufficient_data(self):
        metrics_at(self.user, self.now - timedelta(days=1), 4, interviews=4)
        metrics_at(self.user, self.now - timedelta(days=60), 10, interviews=10)

        result = self.service.track_timing_correlation(self.user)

        assert result['sufficient_data'] is False
        assert result['current'] == 4

    def test_ranks_slots_by_success_rate(self):
        metrics_at(self.user, utc(2024, 1, 24, 14, 0), 3, interviews=3)  # Wednesday
        metrics_at(self.user, utc(2024, 1, 29, 9, 0), 3, interviews=1)   # Monday
        metrics_at(self.user, utc(2023, 12, 1, 9, 0), 5, interviews=0)

        result = self.service.track_timing_correlation(self.user)

        assert result['sufficient_data'] is True
        assert result['period'] == 'Last 30 days'
        assert result['total_submissions'] == 6
        assert result['best_timing'] == {'timing': 'Wednesday-14:00', 'success_rate': 100.0, 'submissions': 3}
        assert [t['timing'] for t in result['all_timings']] == ['Wednesday-14:00', 'Monday-9:00']
        assert result['all_timings'][1]['success_rate'] == 33.3
        assert result['overall_success_rate'] == 66.7

    def test_ties_keep_first_seen_order(self):
        metrics_at(self.user, utc(2024, 1, 22, 10, 0), 3, interviews=1)  # Monday
        metrics_at(self.user, utc(2024, 1, 26, 15, 0), 3, interviews=1)  # Friday

        result = self.service.track_timing_correlation(self.user, days=14)

        assert [t['timing'] for t in result['all_timings']] == ['Monday-10:00', 'Friday-15:00']
        assert result['period'] == 'Last 14 days'
