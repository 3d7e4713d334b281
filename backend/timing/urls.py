from django.urls import path

from timing import views

app_name = 'timing'

urlpatterns = [
    # Pattern analysis
    path('patterns/', views.industry_patterns, name='industry-patterns'),
    path('metrics/', views.track_submission, name='track-submission'),
    path('correlation/', views.timing_correlation, name='timing-correlation'),

    # Recommendations
    path('recommendations/', views.generate_recommendation, name='generate-recommendation'),
    path('recommendations/latest/', views.latest_recommendation, name='latest-recommendation'),

    # Scheduled submissions
    path('scheduled-submissions/', views.scheduled_submissions, name='scheduled-submissions'),
    path('scheduled-submissions/upcoming/', views.upcoming_submissions, name='upcoming-submissions'),
    path('scheduled-submissions/calendar/', views.scheduling_calendar, name='scheduling-calendar'),
    path('scheduled-submissions/statistics/', views.scheduling_statistics, name='scheduling-statistics'),
    path('scheduled-submissions/process/', views.process_due_submissions, name='process-due-submissions'),
    path('scheduled-submissions/<int:schedule_id>/reschedule/', views.reschedule_submission, name='reschedule-submission'),
    path('scheduled-submissions/<int:schedule_id>/cancel/', views.cancel_submission, name='cancel-submission'),

    # A/B tests
    path('ab-tests/', views.ab_tests, name='ab-tests'),
    path('ab-tests/active/', views.active_ab_tests, name='active-ab-tests'),
    path('ab-tests/correlation/', views.recent_timing_correlation, name='recent-timing-correlation'),
    path('ab-tests/<int:test_id>/submissions/', views.record_ab_test_submission, name='ab-test-submission'),
    path('ab-tests/<int:test_id>/responses/', views.record_ab_test_response, name='ab-test-response'),
    path('ab-tests/<int:test_id>/results/', views.ab_test_results, name='ab-test-results'),
    path('ab-tests/<int:test_id>/complete/', views.complete_ab_test, name='complete-ab-test'),
]
