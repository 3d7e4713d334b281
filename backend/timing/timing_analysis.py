# backend/timing/timing_analysis.py
"""
Historical submission-timing analysis.

Derives per-segment (industry, company size) timing patterns from
SubmissionMetric rows and measures how a user's own submission timing
correlates with interview invitations.
"""

import logging
from collections import OrderedDict

from django.conf import settings
from django.db import transaction
from timing.models import IndustryTimingPattern, SubmissionMetric
from timing.weekdays import (
    DAY_NAMES,
    WEEKEND_DAYS,
    format_hour_range,
    parse_hour_range,
    time_zone_considerations,
)

logger = logging.getLogger(__name__)

BASELINE_RESPONSE_RATE = 15
BAD_DAY_THRESHOLD = 0.7
WINDOW_HOURS = 3
DEFAULT_WINDOW_START = 9

SEASONAL_AVOID_REASONS = [
    'End of month - budget constraints',
    'End of quarter - hiring freezes',
    'Holiday periods - reduced staffing',
]

FRIDAY_REASON = 'Friday evenings - low hiring team availability'
WEEKEND_REASON = 'Weekends - emails often missed by recruiters'
MONDAY_REASON = 'Monday mornings - high email volume'


def min_correlation_samples():
    return getattr(settings, 'TIMING_MIN_CORRELATION_SAMPLES', 5)


def insufficient_data(count, minimum=None):
    """Soft-fail payload returned when there are too few samples to analyze."""
    minimum = minimum if minimum is not None else min_correlation_samples()
    return {
        'sufficient_data': False,
        'message': 'Insufficient data for correlation analysis',
        'min_required': minimum,
        'current': count,
        'next_step': f'Track at least {minimum - count} more submission(s) to unlock timing insights.',
    }


def _rate(responses, submissions):
    return (responses / submissions) * 100 if submissions > 0 else 0


def default_pattern(industry, company_size):
    """Pattern used for segments with no history at all."""
    return {
        'industry': industry,
        'company_size': company_size,
        'best_day_of_week': 'Tuesday',
        'best_hour_range': '9-11 AM',
        'best_hour_start': DEFAULT_WINDOW_START,
        'avg_response_rate': BASELINE_RESPONSE_RATE,
        'submissions': 0,
        'bad_days': ['Friday', 'Saturday', 'Sunday'],
        'avoid_reasons': [
            FRIDAY_REASON,
            WEEKEND_REASON,
            'End of month - budget constraints',
        ],
        'avg_response_time': 48,
        'time_zone_considerations': time_zone_considerations(),
        'source': 'default',
    }


def group_by_day(metrics):
    days = OrderedDict(
        (day, {'day': day, 'submissions': 0, 'responses': 0}) for day in DAY_NAMES
    )
    for metric in metrics:
        bucket = days.get(metric.day_of_week)
        if bucket is None:
            continue
        bucket['submissions'] += 1
        if metric.got_interview:
            bucket['responses'] += 1
    for bucket in days.values():
        bucket['response_rate'] = _rate(bucket['responses'], bucket['submissions'])
    return list(days.values())


def group_by_hour(metrics):
    hours = [{'hour': hour, 'submissions': 0, 'responses': 0} for hour in range(24)]
    for metric in metrics:
        if metric.hour_of_day is None or not 0 <= metric.hour_of_day < 24:
            continue
        bucket = hours[metric.hour_of_day]
        bucket['submissions'] += 1
        if metric.got_interview:
            bucket['responses'] += 1
    for bucket in hours:
        bucket['response_rate'] = _rate(bucket['responses'], bucket['submissions'])
    return hours


def find_best_day(day_metrics):
    best = day_metrics[0]
    for current in day_metrics[1:]:
        # strict comparison keeps the earliest day on ties
        if current['response_rate'] > best['response_rate']:
            best = current
    return best


def find_best_window(hour_metrics, width=WINDOW_HOURS):
    """Start hour and mean rate of the best ``width``-hour window."""
    best_start, best_rate = DEFAULT_WINDOW_START, 0
    for start in range(len(hour_metrics) - width + 1):
        window = hour_metrics[start:start + width]
        rate = sum(h['response_rate'] for h in window) / width
        if rate > best_rate:
            best_start, best_rate = start, rate
    return {'start': best_start, 'response_rate': best_rate}


def identify_bad_days(day_metrics):
    mean_rate = sum(d['response_rate'] for d in day_metrics) / len(day_metrics)
    return [d for d in day_metrics if d['response_rate'] < mean_rate * BAD_DAY_THRESHOLD]


def avoid_reasons_for(bad_days):
    reasons = []
    for day in bad_days:
        if day == 'Friday' and FRIDAY_REASON not in reasons:
            reasons.append(FRIDAY_REASON)
        if day in WEEKEND_DAYS and WEEKEND_REASON not in reasons:
            reasons.append(WEEKEND_REASON)
        if day == 'Monday' and MONDAY_REASON not in reasons:
            reasons.append(MONDAY_REASON)
    reasons.extend(SEASONAL_AVOID_REASONS)
    return reasons


def average_response_time(metrics):
    times = [m.response_time_hours for m in metrics if m.response_time_hours is not None]
    if not times:
        return 0
    return round(sum(times) / len(times))


def calculate_patterns(metrics, industry, company_size):
    """Compute a timing pattern from a non-empty list of SubmissionMetric rows."""
    metrics = list(metrics)
    day_metrics = group_by_day(metrics)
    hour_metrics = group_by_hour(metrics)

    best_day = find_best_day(day_metrics)
    best_window = find_best_window(hour_metrics)
    bad_days = [d['day'] for d in identify_bad_days(day_metrics)]
    interviews = sum(1 for m in metrics if m.got_interview)

    return {
        'industry': industry,
        'company_size': company_size,
        'best_day_of_week': best_day['day'],
        'best_hour_range': format_hour_range(best_window['start']),
        'best_hour_start': best_window['start'],
        'avg_response_rate': _rate(interviews, len(metrics)),
        'submissions': len(metrics),
        'bad_days': bad_days,
        'avoid_reasons': avoid_reasons_for(bad_days),
        'avg_response_time': average_response_time(metrics),
        'time_zone_considerations': time_zone_considerations(),
        'day_metrics': day_metrics,
        'source': 'calculated',
    }


def _ratio_by(metrics, key):
    buckets = OrderedDict()
    for metric in metrics:
        bucket = buckets.setdefault(key(metric), {'total': 0, 'success': 0})
        bucket['total'] += 1
        if metric.got_interview:
            bucket['success'] += 1
    return OrderedDict(
        (slot, round(data['success'] / data['total'], 2)) for slot, data in buckets.items()
    )


def _best_slot(ratios):
    best_slot, best_ratio = None, -1
    for slot, ratio in ratios.items():
        if ratio > best_ratio:
            best_slot, best_ratio = slot, ratio
    return best_slot, best_ratio


class TimingAnalysisService:
    """Analyzes historical submission timing by segment and per user."""

    def analyze_industry_patterns(self, industry, company_size):
        precomputed = IndustryTimingPattern.objects.filter(
            industry=industry,
            company_size=company_size,
        ).first()
        if precomputed:
            return self._serialize_pattern(precomputed)

        metrics = list(SubmissionMetric.objects.filter(industry=industry, company_size=company_size))
        if not metrics:
            logger.info("No timing history for %s/%s, using default pattern", industry, company_size)
            return default_pattern(industry, company_size)

        return calculate_patterns(metrics, industry, company_size)

    def track_submission(self, user, application_id, submitted_at, industry='', company_size='',
                         got_interview=False, response_time_hours=None):
        metric = SubmissionMetric.objects.create(
            user=user,
            application_id=application_id,
            submitted_at=submitted_at,
            industry=industry or '',
            company_size=company_size or '',
            got_interview=got_interview,
            response_time_hours=response_time_hours,
        )
        logger.info(
            "Tracked submission metric %s for application %s (%s %s:00)",
            metric.id, application_id, metric.day_of_week, metric.hour_of_day,
        )
        return metric

    def calculate_timing_correlation(self, user, industry=None):
        metrics = SubmissionMetric.objects.filter(user=user)
        if industry:
            metrics = metrics.filter(industry=industry)
        metrics = list(metrics.order_by('submitted_at'))

        minimum = min_correlation_samples()
        if len(metrics) < minimum:
            return insufficient_data(len(metrics), minimum)

        day_ratios = _ratio_by(
            sorted(metrics, key=lambda m: DAY_NAMES.index(m.day_of_week)),
            lambda m: m.day_of_week,
        )
        hour_ratios = _ratio_by(
            sorted(metrics, key=lambda m: m.hour_of_day),
            lambda m: m.hour_of_day,
        )
        best_day, best_day_ratio = _best_slot(day_ratios)
        best_hour, best_hour_ratio = _best_slot(hour_ratios)

        return {
            'sufficient_data': True,
            'day_of_week_correlation': dict(day_ratios),
            'hour_of_day_correlation': dict(hour_ratios),
            'ranked_days': sorted(day_ratios.items(), key=lambda item: item[1], reverse=True),
            'ranked_hours': sorted(hour_ratios.items(), key=lambda item: item[1], reverse=True),
            'best_day': best_day,
            'best_hour': best_hour,
            'sample_size': len(metrics),
            'recommendation': (
                f"Based on your history, best submit on {best_day} around {best_hour}:00. "
                f"Success rate on that day/time: {best_day_ratio * 100:.1f}%"
            ),
        }

    def precompute_industry_patterns(self):
        """Recompute and store patterns for every segment present in the metrics."""
        segments = (
            SubmissionMetric.objects
            .exclude(industry='')
            .order_by()
            .values_list('industry', 'company_size')
            .distinct()
        )
        refreshed = 0
        for industry, company_size in segments:
            metrics = SubmissionMetric.objects.filter(industry=industry, company_size=company_size)
            pattern = calculate_patterns(metrics, industry, company_size)
            with transaction.atomic():
                IndustryTimingPattern.objects.update_or_create(
                    industry=industry,
                    company_size=company_size,
                    defaults={
                        'best_day_of_week': pattern['best_day_of_week'],
                        'best_hour_range': pattern['best_hour_range'],
                        'avg_response_rate': pattern['avg_response_rate'],
                        'submission_count': pattern['submissions'],
                        'bad_days': pattern['bad_days'],
                        'avoid_reasons': pattern['avoid_reasons'],
                        'avg_response_time_hours': pattern['avg_response_time'],
                    },
                )
            refreshed += 1
        logger.info("Refreshed %s industry timing patterns", refreshed)
        return {'refreshed': refreshed}

    def _serialize_pattern(self, pattern):
        return {
            'industry': pattern.industry,
            'company_size': pattern.company_size,
            'best_day_of_week': pattern.best_day_of_week,
            'best_hour_range': pattern.best_hour_range,
            'best_hour_start': parse_hour_range(pattern.best_hour_range),
            'avg_response_rate': pattern.avg_response_rate,
            'submissions': pattern.submission_count,
            'bad_days': list(pattern.bad_days or []),
            'avoid_reasons': list(pattern.avoid_reasons or []),
            'avg_response_time': pattern.avg_response_time_hours,
            'time_zone_considerations': time_zone_considerations(),
            'source': 'precomputed',
        }
