# backend/timing/timing_analytics.py
"""
Timing A/B tests.

Tracks control/variant submission timings, tests the difference in response
rates for significance with a 2x2 chi-square test, and turns the outcome into
guidance.
"""

import logging
from collections import OrderedDict
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from timing.exceptions import ExperimentNotActive, InvalidResponseType
from timing.models import SubmissionMetric, TimingExperiment
from timing.timing_analysis import insufficient_data, min_correlation_samples

logger = logging.getLogger(__name__)

RESPONSE_TYPES = ('interview', 'rejection', 'follow_up')

# Critical value for one degree of freedom at p = 0.05
CHI_SQUARE_CRITICAL = 3.84

NEXT_STEPS = {
    'variant': [
        'Update your submission schedule to use the winning timing',
        'Create a new A/B test to validate results with a different industry',
        'Apply this timing strategy to all future applications',
    ],
    'control': [
        'Continue with your current submission timing strategy',
        'Monitor for any seasonal changes that may affect optimal timing',
        'Consider testing timing by industry for more targeted optimization',
    ],
    'inconclusive': [
        'Collect more data before making timing strategy changes',
        'Run the test for a longer period (30+ days)',
        'Increase sample size to ensure statistical significance',
    ],
}


def chi_square_statistic(control_successes, control_total, variant_successes, variant_total):
    """Pearson chi-square for the 2x2 successes/failures table of two groups."""
    a, b = control_successes, control_total - control_successes
    c, d = variant_successes, variant_total - variant_successes
    n = control_total + variant_total
    denominator = control_total * variant_total * (a + c) * (b + d)
    if denominator == 0:
        denominator = 1
    return ((a * d - b * c) ** 2) * n / denominator


def approximate_p_value(chi2):
    """Bucketed p-value for one degree of freedom. Not an exact CDF."""
    if chi2 < 1:
        return 0.3
    if chi2 < CHI_SQUARE_CRITICAL:
        return 0.05
    if chi2 < 6.63:
        return 0.01
    return 0.001


def _percent(part, whole):
    return (part / whole) * 100 if whole > 0 else 0


def _clamp(value, lower, upper):
    return max(lower, min(value, upper))


def group_metrics(experiment, prefix):
    submissions = getattr(experiment, f'{prefix}_submissions')
    responses = getattr(experiment, f'{prefix}_responses')
    interviews = getattr(experiment, f'{prefix}_interviews')
    return {
        'submissions': submissions,
        'responses': responses,
        'interviews': interviews,
        'response_rate': _percent(responses, submissions),
        'interview_rate': _percent(interviews, submissions),
        'avg_response_time': getattr(experiment, f'{prefix}_avg_response_time') or 0,
    }


def serialize_experiment(experiment):
    return {
        'test_id': experiment.id,
        'test_name': experiment.test_name,
        'status': experiment.status,
        'control_timing': experiment.control_timing,
        'variant_timing': experiment.variant_timing,
        'progress': {
            'control_submissions': experiment.control_submissions,
            'variant_submissions': experiment.variant_submissions,
            'target_sample_size': experiment.minimum_sample_size,
        },
        'results': {
            'control_response_rate': experiment.control_response_rate,
            'variant_response_rate': experiment.variant_response_rate,
            'improvement': experiment.response_rate_improvement,
            'is_significant': experiment.is_statistically_significant,
            'winning_variant': experiment.winning_variant or None,
        },
        'period': {
            'started_at': experiment.started_at,
            'ended_at': experiment.ended_at,
        },
    }


class TimingAnalyticsService:
    """Manages timing A/B tests for a user."""

    def __init__(self, clock=None):
        self.clock = clock or timezone.now

    def create_ab_test(self, user, test_name, control_timing, variant_timing,
                       test_duration_days=None, minimum_sample_size=None):
        experiment = TimingExperiment.objects.create(
            user=user,
            test_name=test_name,
            control_timing=control_timing,
            variant_timing=variant_timing,
            test_duration_days=test_duration_days or 30,
            minimum_sample_size=minimum_sample_size or 20,
            status=TimingExperiment.STATUS_ACTIVE,
            started_at=self.clock(),
        )
        logger.info(f"Started timing A/B test {experiment.id} ({test_name}) for user {user.pk}")
        return {
            'test_id': experiment.id,
            'test_name': experiment.test_name,
            'status': experiment.status,
            'started_at': experiment.started_at,
            'message': 'A/B test started. Monitor your application submissions to track results.',
        }

    def get_active_tests(self, user):
        tests = TimingExperiment.objects.filter(
            user=user,
            status=TimingExperiment.STATUS_ACTIVE,
        ).order_by('-started_at', '-id')
        return [serialize_experiment(test) for test in tests]

    def _lock_active(self, user, test_id):
        experiment = TimingExperiment.objects.select_for_update().get(id=test_id, user=user)
        if not experiment.is_active:
            raise ExperimentNotActive(f'A/B test {test_id} is {experiment.status}.')
        return experiment

    def _refresh_rates(self, experiment, prefix):
        metrics = group_metrics(experiment, prefix)
        setattr(experiment, f'{prefix}_response_rate', metrics['response_rate'])
        setattr(experiment, f'{prefix}_interview_rate', metrics['interview_rate'])
        return [f'{prefix}_response_rate', f'{prefix}_interview_rate']

    def record_test_submission(self, user, test_id, is_control_group, application_id):
        prefix = 'control' if is_control_group else 'variant'
        # Row lock serializes concurrent increments on the same experiment
        with transaction.atomic():
            experiment = self._lock_active(user, test_id)
            field = f'{prefix}_submissions'
            setattr(experiment, field, getattr(experiment, field) + 1)
            update_fields = [field] + self._refresh_rates(experiment, prefix)
            experiment.save(update_fields=update_fields)

        logger.info(f"Recorded {prefix} submission for test {test_id} (application {application_id})")
        return {
            'test_id': experiment.id,
            'group': prefix,
            'submission_recorded': True,
            'current_progress': {
                'control': experiment.control_submissions,
                'variant': experiment.variant_submissions,
            },
        }

    def record_test_response(self, user, test_id, is_control_group, response_type):
        if response_type not in RESPONSE_TYPES:
            raise InvalidResponseType()

        prefix = 'control' if is_control_group else 'variant'
        with transaction.atomic():
            experiment = self._lock_active(user, test_id)
            responses_field = f'{prefix}_responses'
            interviews_field = f'{prefix}_interviews'
            setattr(experiment, responses_field, getattr(experiment, responses_field) + 1)
            if response_type == 'interview':
                setattr(experiment, interviews_field, getattr(experiment, interviews_field) + 1)
            update_fields = [responses_field, interviews_field] + self._refresh_rates(experiment, prefix)
            experiment.save(update_fields=update_fields)

        return {
            'test_id': experiment.id,
            'response_recorded': True,
            'message': f'Response recorded for {prefix} group',
        }

    def analyze_test_results(self, user, test_id):
        with transaction.atomic():
            experiment = TimingExperiment.objects.select_for_update().get(id=test_id, user=user)
            return self._analyze(experiment)

    def _analyze(self, experiment):
        control = group_metrics(experiment, 'control')
        variant = group_metrics(experiment, 'variant')

        response_rate_improvement = variant['response_rate'] - control['response_rate']
        interview_rate_improvement = variant['interview_rate'] - control['interview_rate']

        chi2 = chi_square_statistic(
            control['responses'], control['submissions'],
            variant['responses'], variant['submissions'],
        )
        is_significant = chi2 > CHI_SQUARE_CRITICAL
        p_value = approximate_p_value(chi2)

        if variant['response_rate'] > control['response_rate']:
            winning_variant = 'variant'
            recommendation = (
                f"Variant timing ({experiment.variant_timing}) shows {response_rate_improvement:.1f}% "
                "better response rate. Consider adopting this timing for future applications."
            )
        elif control['response_rate'] > variant['response_rate']:
            winning_variant = 'control'
            recommendation = (
                f"Control timing ({experiment.control_timing}) performs better. Continue with current approach."
            )
        else:
            winning_variant = 'inconclusive'
            recommendation = 'No significant difference detected. More data needed for conclusive results.'

        total = control['submissions'] + variant['submissions']
        implementation_confidence = _clamp(
            total / (experiment.minimum_sample_size * 2) if experiment.minimum_sample_size else 0,
            0,
            1,
        )

        experiment.control_response_rate = control['response_rate']
        experiment.control_interview_rate = control['interview_rate']
        experiment.variant_response_rate = variant['response_rate']
        experiment.variant_interview_rate = variant['interview_rate']
        experiment.response_rate_improvement = response_rate_improvement
        experiment.interview_rate_improvement = interview_rate_improvement
        experiment.p_value = p_value
        experiment.is_statistically_significant = is_significant
        experiment.winning_variant = winning_variant
        experiment.recommendation_text = recommendation
        experiment.implementation_confidence = implementation_confidence
        experiment.save(update_fields=[
            'control_response_rate',
            'control_interview_rate',
            'variant_response_rate',
            'variant_interview_rate',
            'response_rate_improvement',
            'interview_rate_improvement',
            'p_value',
            'is_statistically_significant',
            'winning_variant',
            'recommendation_text',
            'implementation_confidence',
        ])

        logger.info(
            f"Analyzed test {experiment.id}: chi2={chi2:.2f}, significant={is_significant}, winner={winning_variant}"
        )
        return {
            'test_id': experiment.id,
            'control_metrics': control,
            'variant_metrics': variant,
            'improvement': response_rate_improvement,
            'interview_rate_improvement': interview_rate_improvement,
            'chi_square': chi2,
            'p_value': p_value,
            'is_significant': is_significant,
            'winning_variant': winning_variant,
            'implementation_confidence': implementation_confidence,
            'recommendation': recommendation,
        }

    def complete_test(self, user, test_id):
        """Close an active test as completed or inconclusive. A closed test raises ExperimentNotActive."""
        with transaction.atomic():
            experiment = self._lock_active(user, test_id)
            analysis = self._analyze(experiment)

            status = TimingExperiment.STATUS_COMPLETED if analysis['is_significant'] else TimingExperiment.STATUS_INCONCLUSIVE
            ended_at = self.clock()
            experiment.status = status
            experiment.ended_at = ended_at
            experiment.save(update_fields=['status', 'ended_at'])

        logger.info(f"Completed timing A/B test {test_id} as {status}")

        return {
            'test_id': analysis['test_id'],
            'status': status,
            'ended_at': ended_at,
            'analysis': analysis,
            'recommendation': {
                'winning_variant': analysis['winning_variant'],
                'confidence_level': analysis['implementation_confidence'],
                'next_steps': list(NEXT_STEPS[analysis['winning_variant']]),
            },
        }

    def get_test_history(self, user):
        tests = TimingExperiment.objects.filter(user=user).order_by('-started_at', '-id')
        return [serialize_experiment(test) for test in tests]

    def track_timing_correlation(self, user, days=30):
        """Rank (day, hour) submission slots by interview rate over the last ``days`` days."""
        since = self.clock() - timedelta(days=days)
        metrics = list(
            SubmissionMetric.objects.filter(user=user, submitted_at__gte=since).order_by('submitted_at', 'id')
        )

        minimum = min_correlation_samples()
        if len(metrics) < minimum:
            return insufficient_data(len(metrics), minimum)

        groups = OrderedDict()
        for metric in metrics:
            key = f'{metric.day_of_week}-{metric.hour_of_day}:00'
            bucket = groups.setdefault(key, {'total': 0, 'responses': 0})
            bucket['total'] += 1
            if metric.got_interview:
                bucket['responses'] += 1

        correlations = [
            {
                'timing': timing,
                'success_rate': round(_percent(data['responses'], data['total']), 1),
                'submissions': data['total'],
            }
            for timing, data in groups.items()
        ]
        correlations.sort(key=lambda item: item['success_rate'], reverse=True)

        interviews = sum(1 for m in metrics if m.got_interview)
        return {
            'sufficient_data': True,
            'period': f'Last {days} days',
            'best_timing': correlations[0],
            'all_timings': correlations,
            'total_submissions': len(metrics),
            'overall_success_rate': round(_percent(interviews, len(metrics)), 1),
        }
