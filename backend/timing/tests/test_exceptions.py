"""
Tests for the API exception handler's error payloads.
"""
import pytest
from django.core.exceptions import PermissionDenied
from django.http import Http404

from timing.exceptions import ExperimentNotActive, custom_exception_handler
from timing.models import ScheduledSubmission


class TestCustomExceptionHandler:

    def test_django_404_gets_not_found_code(self):
        response = custom_exception_handler(Http404(), {})

        assert response.status_code == 404
        assert response.data['error']['code'] == 'not_found'

    def test_django_permission_denied(self):
        response = custom_exception_handler(PermissionDenied(), {})

        assert response.status_code == 403
        assert response.data['error']['code'] == 'permission_denied'

    def test_missing_row_is_404(self):
        response = custom_exception_handler(ScheduledSubmission.DoesNotExist('No such schedule'), {})

        assert response.status_code == 404
        assert response.data['error'] == {
            'code': 'not_found',
            'message': 'No such schedule',
            'messages': ['No such schedule'],
        }

    def test_domain_error_keeps_its_code(self):
        response = custom_exception_handler(ExperimentNotActive('A/B test 3 is completed.'), {})

        assert response.status_code == 409
        assert response.data['error']['code'] == 'experiment_not_active'
        assert response.data['error']['message'] == 'A/B test 3 is completed.'

    @pytest.mark.parametrize('exc', [ValueError('boom'), KeyError('missing')])
    def test_unhandled_errors_become_500(self, exc):
        response = custom_exception_handler(exc, {})

        assert response.status_code == 500
        assert response.data['error']['code'] == 'internal_server_error'
