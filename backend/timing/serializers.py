"""
Serializers for the timing API.
"""
from rest_framework import serializers

from timing.models import ScheduledSubmission, SubmissionMetric, TimingRecommendation
from timing.recommendation_engine import normalize_quality_score


class SubmissionMetricSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubmissionMetric
        fields = [
            'id', 'application_id', 'submitted_at', 'day_of_week', 'hour_of_day',
            'industry', 'company_size', 'got_interview', 'response_time_hours',
            'created_at',
        ]
        read_only_fields = ['id', 'day_of_week', 'hour_of_day', 'created_at']


class RecommendationRequestSerializer(serializers.Serializer):
    """Inputs accepted when asking for a timing recommendation."""
    industry = serializers.CharField(max_length=120)
    company_size = serializers.CharField(max_length=50)
    quality_score = serializers.FloatField(required=False, allow_null=True)
    timezone = serializers.CharField(max_length=10, required=False, allow_blank=True)
    is_remote = serializers.BooleanField(required=False, default=False)
    persist = serializers.BooleanField(required=False, default=False)

    def validate_quality_score(self, value):
        return normalize_quality_score(value)

    def validate_timezone(self, value):
        # Unknown codes are accepted and treated as EST by the engine
        return value.upper() if value else None


class TimingRecommendationSerializer(serializers.ModelSerializer):
    class Meta:
        model = TimingRecommendation
        fields = [
            'id', 'recommended_day_of_week', 'recommended_time_range',
            'recommended_hour_start', 'recommended_hour_end', 'based_on_industry',
            'current_recommendation', 'time_until_optimal', 'reasoning', 'warnings',
            'confidence_level', 'estimated_response_rate_improvement',
            'historical_success_rate', 'created_at', 'valid_until',
        ]
        read_only_fields = fields


class ScheduledSubmissionSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = ScheduledSubmission
        fields = [
            'id', 'application_id', 'scheduled_submit_time', 'status', 'status_display',
            'scheduling_reason', 'previous_scheduled_time', 'is_rescheduled',
            'send_reminder', 'reminder_minutes_before', 'reminder_sent_at',
            'actual_submit_time', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ScheduledSubmissionCreateSerializer(serializers.Serializer):
    application_id = serializers.IntegerField(min_value=1)
    scheduled_submit_time = serializers.DateTimeField()
    send_reminder = serializers.BooleanField(required=False, default=True)
    reminder_minutes_before = serializers.IntegerField(required=False, min_value=1, allow_null=True)
    scheduling_reason = serializers.CharField(required=False, allow_blank=True, default='')


class RescheduleSerializer(serializers.Serializer):
    new_submit_time = serializers.DateTimeField()


class ABTestCreateSerializer(serializers.Serializer):
    test_name = serializers.CharField(max_length=200)
    control_timing = serializers.CharField(max_length=120)
    variant_timing = serializers.CharField(max_length=120)
    test_duration_days = serializers.IntegerField(required=False, min_value=1, allow_null=True)
    minimum_sample_size = serializers.IntegerField(required=False, min_value=1, allow_null=True)


class ABTestSubmissionSerializer(serializers.Serializer):
    is_control_group = serializers.BooleanField()
    application_id = serializers.IntegerField(min_value=1)


class ABTestResponseSerializer(serializers.Serializer):
    is_control_group = serializers.BooleanField()
    response_type = serializers.CharField(max_length=20)
