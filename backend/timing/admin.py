from django.contrib import admin
from .models import (
    SubmissionMetric, IndustryTimingPattern, TimingRecommendation,
    ScheduledSubmission, TimingExperiment,
)


# Timing history
@admin.register(SubmissionMetric)
class SubmissionMetricAdmin(admin.ModelAdmin):
    list_display = ['user', 'application_id', 'submitted_at', 'day_of_week', 'hour_of_day', 'industry', 'got_interview']
    list_filter = ['day_of_week', 'industry', 'company_size', 'got_interview']
    search_fields = ['user__username', 'user__email', 'industry']


@admin.register(IndustryTimingPattern)
class IndustryTimingPatternAdmin(admin.ModelAdmin):
    list_display = ['industry', 'company_size', 'best_day_of_week', 'best_hour_range', 'avg_response_rate', 'submission_count', 'updated_at']
    list_filter = ['best_day_of_week']
    search_fields = ['industry', 'company_size']


@admin.register(TimingRecommendation)
class TimingRecommendationAdmin(admin.ModelAdmin):
    list_display = ['user', 'recommended_day_of_week', 'recommended_time_range', 'based_on_industry', 'confidence_level', 'created_at', 'valid_until']
    list_filter = ['recommended_day_of_week', 'created_at']
    search_fields = ['user__username', 'based_on_industry']


# Scheduling
@admin.register(ScheduledSubmission)
class ScheduledSubmissionAdmin(admin.ModelAdmin):
    list_display = ['user', 'application_id', 'scheduled_submit_time', 'status', 'is_rescheduled', 'reminder_sent_at', 'actual_submit_time']
    list_filter = ['status', 'send_reminder', 'is_rescheduled']
    search_fields = ['user__username', 'user__email']


# Experiments
@admin.register(TimingExperiment)
class TimingExperimentAdmin(admin.ModelAdmin):
    list_display = ['user', 'test_name', 'status', 'control_submissions', 'variant_submissions', 'winning_variant', 'is_statistically_significant', 'started_at']
    list_filter = ['status', 'winning_variant', 'is_statistically_significant']
    search_fields = ['user__username', 'test_name']
