"""
Test fixtures and factories for creating test data.
Uses factory_boy for consistent test data generation.
"""
from datetime import datetime, timezone as dt_timezone

import factory
from factory.django import DjangoModelFactory
from django.contrib.auth import get_user_model

from timing.models import (
    IndustryTimingPattern,
    ScheduledSubmission,
    SubmissionMetric,
    TimingExperiment,
)

User = get_user_model()


def utc(*args):
    """Aware UTC datetime shorthand used throughout the timing tests."""
    return datetime(*args, tzinfo=dt_timezone.utc)


def fixed_clock(moment):
    """Clock callable that always returns ``moment``."""
    return lambda: moment


class UserFactory(DjangoModelFactory):
    """Factory for creating test users"""
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f'user{n}')
    email = factory.Sequence(lambda n: f'user{n}@example.com')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    is_active = True


class SubmissionMetricFactory(DjangoModelFactory):
    """Factory for submission timing history"""
    class Meta:
        model = SubmissionMetric

    user = factory.SubFactory(UserFactory)
    application_id = factory.Sequence(lambda n: n + 1)
    # 2024-01-03 is a Wednesday
    submitted_at = utc(2024, 1, 3, 10, 0)
    industry = 'Technology'
    company_size = 'Medium'
    got_interview = False
    response_time_hours = None


class IndustryTimingPatternFactory(DjangoModelFactory):
    class Meta:
        model = IndustryTimingPattern

    industry = 'Finance'
    company_size = 'Large'
    best_day_of_week = 'Thursday'
    best_hour_range = '10-12 AM'
    avg_response_rate = 22.5
    submission_count = 40
    bad_days = factory.LazyFunction(lambda: ['Saturday', 'Sunday'])
    avoid_reasons = factory.LazyFunction(lambda: ['Weekends - emails often missed by recruiters'])
    avg_response_time_hours = 36


class ScheduledSubmissionFactory(DjangoModelFactory):
    """Factory for scheduled submissions"""
    class Meta:
        model = ScheduledSubmission

    user = factory.SubFactory(UserFactory)
    application_id = factory.Sequence(lambda n: n + 100)
    scheduled_submit_time = factory.LazyFunction(lambda: utc(2024, 1, 10, 9, 0))
    status = ScheduledSubmission.STATUS_SCHEDULED
    send_reminder = True
    reminder_minutes_before = 30


class TimingExperimentFactory(DjangoModelFactory):
    """Factory for timing A/B tests"""
    class Meta:
        model = TimingExperiment

    user = factory.SubFactory(UserFactory)
    test_name = factory.Sequence(lambda n: f'Timing test {n}')
    control_timing = 'Monday 9-11 AM'
    variant_timing = 'Tuesday 9-11 AM'
    status = TimingExperiment.STATUS_ACTIVE
    started_at = factory.LazyFunction(lambda: utc(2024, 1, 1, 8, 0))


def metrics_at(user, moment, count, interviews=0, **kwargs):
    """Create ``count`` metrics at ``moment``, the first ``interviews`` of which got an interview."""
    return [
        SubmissionMetricFactory(
            user=user,
            submitted_at=moment,
            got_interview=index < interviews,
            **kwargs
        )
        for index in range(count)
    ]
