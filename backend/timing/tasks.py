"""Periodic timing tasks.

Each task has a plain ``_sync`` function that does the work so management
commands and tests can run it without a broker; the Celery wrappers are what
beat schedules.
"""
import logging

from celery import shared_task

from timing.notifications import EmailSubmissionDispatcher
from timing.scheduling import SchedulingService
from timing.timing_analysis import TimingAnalysisService

logger = logging.getLogger(__name__)


def _process_scheduled_submissions_sync():
    """Submit every scheduled submission whose time has arrived."""
    service = SchedulingService(dispatcher=EmailSubmissionDispatcher())
    result = service.process_scheduled_submissions()
    # Per-item results stay in the logs; the task result only carries counts
    return {key: result[key] for key in ('processed', 'submitted', 'failed')}


def _send_submission_reminders_sync():
    service = SchedulingService(dispatcher=EmailSubmissionDispatcher())
    result = service.send_reminders()
    return {'reminders_sent': result['reminders_sent'], 'failed': len(result['failed'])}


def _refresh_industry_patterns_sync():
    return TimingAnalysisService().precompute_industry_patterns()


@shared_task
def process_scheduled_submissions():
    """Process scheduled submissions that are due."""
    return _process_scheduled_submissions_sync()


@shared_task
def send_submission_reminders():
    """Send reminders for submissions entering their reminder window."""
    return _send_submission_reminders_sync()


@shared_task
def refresh_industry_patterns():
    """Recompute the stored timing pattern for every industry segment."""
    return _refresh_industry_patterns_sync()
