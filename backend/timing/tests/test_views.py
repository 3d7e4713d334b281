"""
API tests for the timing endpoints.
"""
from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from timing.models import ScheduledSubmission, SubmissionMetric, TimingExperiment
from timing.tests.fixtures import (
    ScheduledSubmissionFactory,
    TimingExperimentFactory,
    UserFactory,
)


@pytest.mark.django_db
class TestTimingAPI:

    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)

    def test_requires_authentication(self):
        response = APIClient().get(reverse('timing:scheduled-submissions'))

        assert response.status_code == 401
        assert response.data['error']['code'] == 'not_authenticated'

    def test_industry_patterns(self):
        response = self.client.get(
            reverse('timing:industry-patterns'),
            {'industry': 'Technology', 'company_size': 'Medium'},
        )

        assert response.status_code == 200
        assert response.data['best_day_of_week'] == 'Tuesday'

    def test_industry_patterns_requires_segment(self):
        response = self.client.get(reverse('timing:industry-patterns'), {'industry': 'Technology'})

        assert response.status_code == 400
        assert 'company_size' in response.data['error']['details']

    def test_track_submission(self):
        response = self.client.post(reverse('timing:track-submission'), {
            'application_id': 12,
            'submitted_at': '2024-01-05T16:30:00Z',
            'industry': 'Technology',
            'company_size': 'Startup',
            'got_interview': True,
        }, format='json')

        assert response.status_code == 201
        assert response.data['day_of_week'] == 'Friday'
        assert response.data['hour_of_day'] == 16
        assert SubmissionMetric.objects.get().user == self.user

    def test_correlation_with_little_data(self):
        response = self.client.get(reverse('timing:timing-correlation'))

        assert response.status_code == 200
        assert response.data['sufficient_data'] is False

    def test_generate_and_persist_recommendation(self):
        response = self.client.post(reverse('timing:generate-recommendation'), {
            'industry': 'Technology',
            'company_size': 'Medium',
            'quality_score': 100,
            'timezone': 'pst',
            'persist': True,
        }, format='json')

        assert response.status_code == 200
        assert response.data['recommended_hour_start'] == 12
        assert response.data['estimated_improvement_rate'] == 15
        assert 'id' in response.data

        latest = self.client.get(reverse('timing:latest-recommendation'))
        assert latest.data['recommendation']['id'] == response.data['id']

    def test_latest_recommendation_empty(self):
        response = self.client.get(reverse('timing:latest-recommendation'))

        assert response.status_code == 200
        assert response.data == {'recommendation': None}

    def test_schedule_and_list(self):
        when = timezone.now() + timedelta(days=1)
        response = self.client.post(reverse('timing:scheduled-submissions'), {
            'application_id': 5,
            'scheduled_submit_time': when.isoformat(),
            'reminder_minutes_before': 60,
        }, format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'scheduled'
        assert response.data['reminder_minutes_before'] == 60

        listing = self.client.get(reverse('timing:scheduled-submissions'))
        assert [item['id'] for item in listing.data] == [response.data['id']]

        upcoming = self.client.get(reverse('timing:upcoming-submissions'))
        assert len(upcoming.data) == 1

    def test_reschedule(self):
        schedule = ScheduledSubmissionFactory(user=self.user)
        new_time = timezone.now() + timedelta(days=3)

        response = self.client.post(
            reverse('timing:reschedule-submission', args=[schedule.id]),
            {'new_submit_time': new_time.isoformat()},
            format='json',
        )

        assert response.status_code == 200
        assert response.data['is_rescheduled'] is True

    def test_cancel_twice_conflicts(self):
        schedule = ScheduledSubmissionFactory(user=self.user)
        url = reverse('timing:cancel-submission', args=[schedule.id])

        first = self.client.post(url)
        second = self.client.post(url)

        assert first.status_code == 200
        assert first.data['message'] == 'Submission cancelled successfully'
        assert second.status_code == 409
        assert second.data['error']['code'] == 'invalid_schedule_state'

    def test_other_users_schedule_is_404(self):
        schedule = ScheduledSubmissionFactory()

        response = self.client.post(reverse('timing:cancel-submission', args=[schedule.id]))

        assert response.status_code == 404
        assert response.data['error']['code'] == 'not_found'
        schedule.refresh_from_db()
        assert schedule.status == ScheduledSubmission.STATUS_SCHEDULED

    def test_calendar_validates_month(self):
        response = self.client.get(reverse('timing:scheduling-calendar'), {'month': 13, 'year': 2024})

        assert response.status_code == 400

    def test_calendar_and_statistics(self):
        ScheduledSubmissionFactory(user=self.user)

        calendar = self.client.get(reverse('timing:scheduling-calendar'), {'month': 1, 'year': 2024})
        stats = self.client.get(reverse('timing:scheduling-statistics'))

        assert calendar.status_code == 200
        assert calendar.data['summary']['total_scheduled'] == 1
        assert stats.data['total_scheduled'] == 1

    def test_process_endpoint_is_staff_only(self):
        response = self.client.post(reverse('timing:process-due-submissions'))
        assert response.status_code == 403

        staff = UserFactory(is_staff=True)
        self.client.force_authenticate(user=staff)
        response = self.client.post(reverse('timing:process-due-submissions'))
        assert response.status_code == 200
        assert response.data['processing']['processed'] == 0


@pytest.mark.django_db
class TestABTestAPI:

    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)

    def test_full_test_flow(self):
        created = self.client.post(reverse('timing:ab-tests'), {
            'test_name': 'Tuesday vs Thursday',
            'control_timing': 'Tuesday 9-11 AM',
            'variant_timing': 'Thursday 9-11 AM',
        }, format='json')
        assert created.status_code == 201
        test_id = created.data['test_id']

        submission = self.client.post(
            reverse('timing:ab-test-submission', args=[test_id]),
            {'is_control_group': False, 'application_id': 9},
            format='json',
        )
        assert submission.data['current_progress'] == {'control': 0, 'variant': 1}

        response = self.client.post(
            reverse('timing:ab-test-response', args=[test_id]),
            {'is_control_group': False, 'response_type': 'interview'},
            format='json',
        )
        assert response.data['response_recorded'] is True

        results = self.client.get(reverse('timing:ab-test-results', args=[test_id]))
        assert results.data['winning_variant'] == 'variant'

        completed = self.client.post(reverse('timing:complete-ab-test', args=[test_id]))
        assert completed.data['status'] == TimingExperiment.STATUS_INCONCLUSIVE
        again = self.client.post(reverse('timing:complete-ab-test', args=[test_id]))
        assert again.status_code == 409
        assert again.data['error']['code'] == 'experiment_not_active'

        history = self.client.get(reverse('timing:ab-tests'))
        assert [t['test_id'] for t in history.data] == [test_id]
        assert self.client.get(reverse('timing:active-ab-tests')).data == []

    def test_invalid_response_type(self):
        experiment = TimingExperimentFactory(user=self.user)

        response = self.client.post(
            reverse('timing:ab-test-response', args=[experiment.id]),
            {'is_control_group': True, 'response_type': 'ghosted'},
            format='json',
        )

        assert response.status_code == 400
        assert response.data['error']['code'] == 'invalid_response_type'

    def test_recording_on_closed_test_conflicts(self):
        experiment = TimingExperimentFactory(user=self.user, status=TimingExperiment.STATUS_COMPLETED)

        response = self.client.post(
            reverse('timing:ab-test-submission', args=[experiment.id]),
            {'is_control_group': True, 'application_id': 1},
            format='json',
        )

        assert response.status_code == 409

    def test_recent_correlation(self):
        response = self.client.get(reverse('timing:recent-timing-correlation'), {'days': 7})

        assert response.status_code == 200
        assert response.data['sufficient_data'] is False
