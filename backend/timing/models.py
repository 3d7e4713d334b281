# backend/timing/models.py
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from timing.weekdays import DAY_NAMES, day_name

DAY_CHOICES = [(day, day) for day in DAY_NAMES]


class SubmissionMetric(models.Model):
    """
    Historical record of when an application was submitted and whether it led
    to an interview. Rows are written once and never edited.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='submission_metrics'
    )
    application_id = models.PositiveIntegerField()
    submitted_at = models.DateTimeField()
    day_of_week = models.CharField(
        max_length=10,
        choices=DAY_CHOICES,
        blank=True,
        help_text='Derived from submitted_at'
    )
    hour_of_day = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text='Hour of day when submitted (0-23), derived from submitted_at'
    )
    industry = models.CharField(max_length=120, blank=True)
    company_size = models.CharField(max_length=50, blank=True)
    got_interview = models.BooleanField(default=False)
    response_time_hours = models.FloatField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-submitted_at']
        indexes = [
            models.Index(fields=['industry', 'company_size'], name='timing_metric_segment_idx'),
            models.Index(fields=['user', 'submitted_at'], name='timing_metric_user_time_idx'),
            models.Index(fields=['user', 'industry'], name='timing_metric_user_ind_idx'),
        ]

    def __str__(self):
        return f"Submission metric for application {self.application_id} ({self.day_of_week} {self.hour_of_day}:00)"

    def save(self, *args, **kwargs):
        # Timing buckets always follow the submission timestamp
        if self.submitted_at:
            local = timezone.localtime(self.submitted_at) if timezone.is_aware(self.submitted_at) else self.submitted_at
            self.day_of_week = day_name(self.submitted_at)
            self.hour_of_day = local.hour
        super().save(*args, **kwargs)


class IndustryTimingPattern(models.Model):
    """Precomputed timing pattern for an (industry, company size) segment."""
    industry = models.CharField(max_length=120)
    company_size = models.CharField(max_length=50)
    best_day_of_week = models.CharField(max_length=10, choices=DAY_CHOICES)
    best_hour_range = models.CharField(max_length=20)
    avg_response_rate = models.FloatField(default=0, help_text='Percent (0-100)')
    submission_count = models.PositiveIntegerField(default=0)
    bad_days = models.JSONField(default=list, blank=True)
    avoid_reasons = models.JSONField(default=list, blank=True)
    avg_response_time_hours = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['industry', 'company_size']
        constraints = [
            models.UniqueConstraint(fields=['industry', 'company_size'], name='uniq_timing_pattern_segment'),
        ]

    def __str__(self):
        return f"{self.industry} / {self.company_size}: {self.best_day_of_week} {self.best_hour_range}"


class TimingRecommendation(models.Model):
    """A personalized submission-timing recommendation, valid for a limited window."""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='timing_recommendations'
    )
    recommended_day_of_week = models.CharField(max_length=10, choices=DAY_CHOICES)
    recommended_time_range = models.CharField(max_length=20)
    recommended_hour_start = models.FloatField()
    recommended_hour_end = models.FloatField()
    based_on_industry = models.CharField(max_length=120, blank=True)
    current_recommendation = models.CharField(max_length=255, blank=True)
    time_until_optimal = models.PositiveIntegerField(default=0, help_text='Minutes')
    reasoning = models.TextField(blank=True)
    warnings = models.JSONField(default=list, blank=True)
    confidence_level = models.FloatField(default=0)
    estimated_response_rate_improvement = models.FloatField(default=0)
    historical_success_rate = models.FloatField(default=0)

    created_at = models.DateTimeField(default=timezone.now)
    valid_until = models.DateTimeField()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='timing_rec_user_created_idx'),
            models.Index(fields=['user', 'valid_until'], name='timing_rec_user_valid_idx'),
        ]

    def __str__(self):
        return f"Recommendation for {self.user}: {self.recommended_day_of_week} {self.recommended_time_range}"

    def save(self, *args, **kwargs):
        if not self.valid_until:
            valid_days = getattr(settings, 'TIMING_RECOMMENDATION_VALID_DAYS', 7)
            self.valid_until = self.created_at + timedelta(days=valid_days)
        super().save(*args, **kwargs)

    def is_valid(self, now=None):
        return self.valid_until > (now or timezone.now())


class ScheduledSubmission(models.Model):
    """
    Application submission scheduled for a future date/time.

    Status only moves forward out of ``scheduled``: a submission is either
    submitted by the periodic processor or cancelled by its owner.
    """
    STATUS_SCHEDULED = 'scheduled'
    STATUS_SUBMITTED = 'submitted'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_SUBMITTED, 'Submitted'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='scheduled_submissions'
    )
    application_id = models.PositiveIntegerField()

    # Scheduling details
    scheduled_submit_time = models.DateTimeField(
        help_text='When to submit the application'
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_SCHEDULED
    )
    scheduling_reason = models.TextField(blank=True)

    # Rescheduling
    previous_scheduled_time = models.DateTimeField(null=True, blank=True)
    is_rescheduled = models.BooleanField(default=False)

    # Reminders
    send_reminder = models.BooleanField(default=True)
    reminder_minutes_before = models.PositiveIntegerField(default=30)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)

    actual_submit_time = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['scheduled_submit_time']
        indexes = [
            models.Index(fields=['user', 'status'], name='timing_sched_user_status_idx'),
            models.Index(fields=['scheduled_submit_time', 'status'], name='timing_sched_time_status_idx'),
            models.Index(fields=['status', 'send_reminder'], name='timing_sched_reminder_idx'),
        ]

    def __str__(self):
        return f"Scheduled submission for application {self.application_id} at {self.scheduled_submit_time}"

    @property
    def is_terminal(self):
        return self.status != self.STATUS_SCHEDULED


class TimingExperiment(models.Model):
    """
    A/B test comparing two submission timings.

    Counters are updated incrementally while the test is active; analysis
    results are written back onto the row.
    """
    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_INCONCLUSIVE = 'inconclusive'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_INCONCLUSIVE, 'Inconclusive'),
    ]

    WINNER_CHOICES = [
        ('control', 'Control'),
        ('variant', 'Variant'),
        ('inconclusive', 'Inconclusive'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='timing_experiments'
    )
    test_name = models.CharField(max_length=200)
    control_timing = models.CharField(max_length=120)
    variant_timing = models.CharField(max_length=120)
    test_duration_days = models.PositiveIntegerField(default=30)
    minimum_sample_size = models.PositiveIntegerField(default=20)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    # Control group
    control_submissions = models.PositiveIntegerField(default=0)
    control_responses = models.PositiveIntegerField(default=0)
    control_interviews = models.PositiveIntegerField(default=0)
    control_response_rate = models.FloatField(default=0)
    control_interview_rate = models.FloatField(default=0)
    control_avg_response_time = models.FloatField(default=0)

    # Variant group
    variant_submissions = models.PositiveIntegerField(default=0)
    variant_responses = models.PositiveIntegerField(default=0)
    variant_interviews = models.PositiveIntegerField(default=0)
    variant_response_rate = models.FloatField(default=0)
    variant_interview_rate = models.FloatField(default=0)
    variant_avg_response_time = models.FloatField(default=0)

    # Analysis
    response_rate_improvement = models.FloatField(null=True, blank=True)
    interview_rate_improvement = models.FloatField(null=True, blank=True)
    p_value = models.FloatField(null=True, blank=True)
    is_statistically_significant = models.BooleanField(default=False)
    winning_variant = models.CharField(max_length=20, choices=WINNER_CHOICES, blank=True)
    recommendation_text = models.TextField(blank=True)
    implementation_confidence = models.FloatField(default=0)

    started_at = models.DateTimeField(default=timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-started_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='timing_exp_user_status_idx'),
            models.Index(fields=['user', '-started_at'], name='timing_exp_user_started_idx'),
        ]

    def __str__(self):
        return f"{self.test_name} ({self.status})"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE
