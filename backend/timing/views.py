"""
API views for the application timing optimizer.

Views stay thin: they validate input, call a service and return its result.
Domain errors and owner-scoped misses are turned into error responses by
timing.exceptions.custom_exception_handler.
"""
import logging

from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from timing.notifications import EmailSubmissionDispatcher
from timing.recommendation_engine import RecommendationEngineService
from timing.scheduling import SchedulingService
from timing.serializers import (
    ABTestCreateSerializer,
    ABTestResponseSerializer,
    ABTestSubmissionSerializer,
    RecommendationRequestSerializer,
    RescheduleSerializer,
    ScheduledSubmissionCreateSerializer,
    ScheduledSubmissionSerializer,
    SubmissionMetricSerializer,
    TimingRecommendationSerializer,
)
from timing.timing_analysis import TimingAnalysisService
from timing.timing_analytics import TimingAnalyticsService

logger = logging.getLogger(__name__)


class SegmentQuerySerializer(serializers.Serializer):
    industry = serializers.CharField(max_length=120)
    company_size = serializers.CharField(max_length=50)


class CalendarQuerySerializer(serializers.Serializer):
    month = serializers.IntegerField(min_value=1, max_value=12)
    year = serializers.IntegerField(min_value=1970, max_value=9999)


class CorrelationWindowSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, required=False, default=30)


# ========================================
# Pattern analysis
# ========================================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def industry_patterns(request):
    """GET: Timing pattern for an (industry, company_size) segment."""
    query = SegmentQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    pattern = TimingAnalysisService().analyze_industry_patterns(
        query.validated_data['industry'],
        query.validated_data['company_size'],
    )
    return Response(pattern)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def track_submission(request):
    """POST: Record when an application was submitted and how it went."""
    serializer = SubmissionMetricSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    metric = TimingAnalysisService().track_submission(request.user, **serializer.validated_data)
    return Response(SubmissionMetricSerializer(metric).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def timing_correlation(request):
    """GET: How the user's submission day/hour correlates with interviews."""
    industry = request.query_params.get('industry') or None
    return Response(TimingAnalysisService().calculate_timing_correlation(request.user, industry=industry))


# ========================================
# Recommendations
# ========================================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def generate_recommendation(request):
    """
    POST: Generate a timing recommendation.

    Pass ``persist: true`` to store it as the user's latest recommendation.
    """
    serializer = RecommendationRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    engine = RecommendationEngineService()
    recommendation = engine.generate_recommendation(
        request.user,
        data['industry'],
        data['company_size'],
        quality_score=data.get('quality_score'),
        timezone_code=data.get('timezone'),
        is_remote=data.get('is_remote', False),
    )
    if data.get('persist'):
        saved = engine.save_recommendation(request.user, recommendation, data['industry'])
        recommendation['id'] = saved.id
        recommendation['valid_until'] = saved.valid_until
    return Response(recommendation)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def latest_recommendation(request):
    """GET: The user's newest unexpired recommendation (null when there is none)."""
    latest = RecommendationEngineService().get_latest_recommendation(request.user)
    payload = TimingRecommendationSerializer(latest).data if latest else None
    return Response({'recommendation': payload})


# ========================================
# Scheduled submissions
# ========================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def scheduled_submissions(request):
    """
    GET: List all scheduled submissions for the authenticated user
    POST: Create a new scheduled submission
    """
    service = SchedulingService()

    if request.method == 'GET':
        schedules = service.get_user_scheduled_submissions(request.user)
        return Response(ScheduledSubmissionSerializer(schedules, many=True).data)

    serializer = ScheduledSubmissionCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    schedule = service.schedule_submission(request.user, **serializer.validated_data)
    return Response(ScheduledSubmissionSerializer(schedule).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def upcoming_submissions(request):
    schedules = SchedulingService().get_upcoming_submissions(request.user)
    return Response(ScheduledSubmissionSerializer(schedules, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reschedule_submission(request, schedule_id):
    serializer = RescheduleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    schedule = SchedulingService().reschedule_submission(
        request.user,
        schedule_id,
        serializer.validated_data['new_submit_time'],
    )
    return Response(ScheduledSubmissionSerializer(schedule).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_submission(request, schedule_id):
    return Response(SchedulingService().cancel_schedule(request.user, schedule_id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def scheduling_calendar(request):
    """GET: A month of scheduled submissions grouped by day (?month=1-12&year=YYYY)."""
    query = CalendarQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    return Response(SchedulingService().get_calendar_view(
        request.user,
        query.validated_data['month'],
        query.validated_data['year'],
    ))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def scheduling_statistics(request):
    return Response(SchedulingService().get_scheduling_statistics(request.user))


@api_view(['POST'])
@permission_classes([IsAdminUser])
def process_due_submissions(request):
    """POST: Run one pass of due-submission processing and reminders (staff only)."""
    service = SchedulingService(dispatcher=EmailSubmissionDispatcher())
    processed = service.process_scheduled_submissions()
    reminders = service.send_reminders()
    logger.info(f"Manual scheduling pass by user {request.user.pk}")
    return Response({'processing': processed, 'reminders': reminders})


# ========================================
# A/B tests
# ========================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def ab_tests(request):
    """
    GET: The user's A/B test history, newest first
    POST: Start a new timing A/B test
    """
    service = TimingAnalyticsService()

    if request.method == 'GET':
        return Response(service.get_test_history(request.user))

    serializer = ABTestCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = service.create_ab_test(request.user, **serializer.validated_data)
    return Response(result, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def active_ab_tests(request):
    return Response(TimingAnalyticsService().get_active_tests(request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_ab_test_submission(request, test_id):
    serializer = ABTestSubmissionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = TimingAnalyticsService().record_test_submission(
        request.user,
        test_id,
        serializer.validated_data['is_control_group'],
        serializer.validated_data['application_id'],
    )
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_ab_test_response(request, test_id):
    serializer = ABTestResponseSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = TimingAnalyticsService().record_test_response(
        request.user,
        test_id,
        serializer.validated_data['is_control_group'],
        serializer.validated_data['response_type'],
    )
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ab_test_results(request, test_id):
    return Response(TimingAnalyticsService().analyze_test_results(request.user, test_id))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete_ab_test(request, test_id):
    return Response(TimingAnalyticsService().complete_test(request.user, test_id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recent_timing_correlation(request):
    """GET: Success rate by submission day and hour over the last ``days`` days."""
    query = CorrelationWindowSerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    return Response(TimingAnalyticsService().track_timing_correlation(
        request.user,
        days=query.validated_data['days'],
    ))
