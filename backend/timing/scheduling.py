# backend/timing/scheduling.py
"""
Scheduled application submissions.

Users schedule submissions for a future time; an external periodic trigger
(Celery beat or the management command) calls process_scheduled_submissions
and send_reminders to move due items forward.
"""

import calendar
import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone

from timing.exceptions import InvalidScheduleState
from timing.models import ScheduledSubmission

logger = logging.getLogger(__name__)


def _default_reminder_minutes():
    return getattr(settings, 'TIMING_DEFAULT_REMINDER_MINUTES', 30)


class SchedulingService:
    """Creates, updates and processes scheduled submissions."""

    def __init__(self, clock=None, dispatcher=None):
        self.clock = clock or timezone.now
        self.dispatcher = dispatcher

    def schedule_submission(self, user, application_id, scheduled_submit_time, send_reminder=True,
                            reminder_minutes_before=None, scheduling_reason=''):
        if reminder_minutes_before is None:
            reminder_minutes_before = _default_reminder_minutes()

        schedule = ScheduledSubmission.objects.create(
            user=user,
            application_id=application_id,
            scheduled_submit_time=scheduled_submit_time,
            status=ScheduledSubmission.STATUS_SCHEDULED,
            send_reminder=send_reminder is not False,
            reminder_minutes_before=reminder_minutes_before,
            scheduling_reason=scheduling_reason or '',
        )
        logger.info(f"Scheduled application {application_id} for {scheduled_submit_time} (schedule {schedule.id})")
        return schedule

    def get_user_scheduled_submissions(self, user):
        return list(
            ScheduledSubmission.objects
            .filter(user=user)
            .order_by('scheduled_submit_time', 'id')
        )

    def get_upcoming_submissions(self, user):
        """Scheduled submissions due within the upcoming window (7 days by default)."""
        now = self.clock()
        window = timedelta(days=getattr(settings, 'TIMING_UPCOMING_WINDOW_DAYS', 7))
        return list(
            ScheduledSubmission.objects.filter(
                user=user,
                status=ScheduledSubmission.STATUS_SCHEDULED,
                scheduled_submit_time__gte=now,
                scheduled_submit_time__lte=now + window,
            ).order_by('scheduled_submit_time', 'id')
        )

    def _get_owned(self, user, schedule_id):
        return ScheduledSubmission.objects.get(id=schedule_id, user=user)

    def reschedule_submission(self, user, schedule_id, new_submit_time):
        schedule = self._get_owned(user, schedule_id)
        if schedule.is_terminal:
            raise InvalidScheduleState(f'Cannot reschedule a submission with status: {schedule.status}')

        schedule.previous_scheduled_time = schedule.scheduled_submit_time
        schedule.scheduled_submit_time = new_submit_time
        schedule.is_rescheduled = True
        # A new time means a fresh reminder window
        schedule.reminder_sent_at = None
        schedule.save(update_fields=[
            'previous_scheduled_time',
            'scheduled_submit_time',
            'is_rescheduled',
            'reminder_sent_at',
            'updated_at',
        ])
        logger.info(
            f"Rescheduled submission {schedule.id} from {schedule.previous_scheduled_time} to {new_submit_time}"
        )
        return schedule

    def cancel_schedule(self, user, schedule_id):
        schedule = self._get_owned(user, schedule_id)
        if schedule.is_terminal:
            raise InvalidScheduleState(f'Cannot cancel a submission with status: {schedule.status}')

        schedule.status = ScheduledSubmission.STATUS_CANCELLED
        schedule.save(update_fields=['status', 'updated_at'])
        logger.info(f"Cancelled scheduled submission {schedule.id}")
        return {
            'id': schedule.id,
            'status': schedule.status,
            'message': 'Submission cancelled successfully',
        }

    def _due_submissions(self, now):
        return list(
            ScheduledSubmission.objects.filter(
                status=ScheduledSubmission.STATUS_SCHEDULED,
                scheduled_submit_time__lte=now,
            ).select_related('user').order_by('scheduled_submit_time', 'id')
        )

    def _reminder_candidates(self):
        return list(
            ScheduledSubmission.objects.filter(
                status=ScheduledSubmission.STATUS_SCHEDULED,
                send_reminder=True,
                reminder_sent_at__isnull=True,
            ).select_related('user').order_by('scheduled_submit_time', 'id')
        )

    def process_scheduled_submissions(self):
        """
        Submit every scheduled item whose time has come.

        Each row is claimed with a conditional update before anything is sent, so
        a row that changed state in the meantime is skipped. A dispatch failure
        releases the claim, is recorded, and the batch carries on.
        """
        now = self.clock()
        due_submissions = self._due_submissions(now)

        results = []
        submitted_count = 0
        failed_count = 0

        for submission in due_submissions:
            logger.info(f"Processing scheduled submission {submission.id} for application {submission.application_id}")
            claimed = ScheduledSubmission.objects.filter(
                id=submission.id,
                status=ScheduledSubmission.STATUS_SCHEDULED,
            ).update(
                status=ScheduledSubmission.STATUS_SUBMITTED,
                actual_submit_time=now,
                updated_at=now,
            )
            if not claimed:
                logger.info(f"Scheduled submission {submission.id} was already handled")
                results.append({'id': submission.id, 'status': 'skipped'})
                continue

            try:
                if self.dispatcher:
                    self.dispatcher.send_submitted(submission, now)
            except Exception as e:
                logger.exception(f"Failed to process submission {submission.id}: {e}")
                # Hand the row back so the next run retries it
                ScheduledSubmission.objects.filter(
                    id=submission.id,
                    status=ScheduledSubmission.STATUS_SUBMITTED,
                    actual_submit_time=now,
                ).update(
                    status=ScheduledSubmission.STATUS_SCHEDULED,
                    actual_submit_time=None,
                )
                failed_count += 1
                results.append({'id': submission.id, 'status': 'error', 'error': str(e)})
                continue

            submitted_count += 1
            results.append({'id': submission.id, 'status': ScheduledSubmission.STATUS_SUBMITTED, 'timestamp': now})

        logger.info(f"Processed {len(results)} submissions, {submitted_count} submitted, {failed_count} failed")
        return {
            'processed': len(results),
            'submitted': submitted_count,
            'failed': failed_count,
            'results': results,
        }

    def send_reminders(self):
        """Send one reminder per scheduled submission once it enters its reminder window."""
        now = self.clock()
        candidates = self._reminder_candidates()

        sent = []
        failed = []

        for submission in candidates:
            minutes_until = (submission.scheduled_submit_time - now).total_seconds() / 60
            if not (0 < minutes_until <= submission.reminder_minutes_before):
                continue

            marked = ScheduledSubmission.objects.filter(
                id=submission.id,
                status=ScheduledSubmission.STATUS_SCHEDULED,
                send_reminder=True,
                reminder_sent_at__isnull=True,
            ).update(reminder_sent_at=now, updated_at=now)
            if not marked:
                continue

            try:
                if self.dispatcher:
                    self.dispatcher.send_reminder(submission, int(round(minutes_until)))
            except Exception as e:
                logger.exception(f"Failed to send reminder for schedule {submission.id}: {e}")
                ScheduledSubmission.objects.filter(
                    id=submission.id,
                    reminder_sent_at=now,
                ).update(reminder_sent_at=None)
                failed.append({'schedule_id': submission.id, 'error': str(e)})
                continue

            sent.append({
                'schedule_id': submission.id,
                'application_id': submission.application_id,
                'minutes_until_submission': int(round(minutes_until)),
                'reminder_sent': True,
            })

        logger.info(f"Sent {len(sent)} reminders, {len(failed)} failed")
        return {
            'reminders_sent': len(sent),
            'details': sent,
            'failed': failed,
        }

    def get_calendar_view(self, user, month, year):
        """Group a month's submissions (month is 1-12) by day of month."""
        if not 1 <= month <= 12:
            raise ValueError('month must be between 1 and 12')

        tz = timezone.get_current_timezone()
        start = timezone.make_aware(datetime(year, month, 1), tz)
        if month == 12:
            end = timezone.make_aware(datetime(year + 1, 1, 1), tz)
        else:
            end = timezone.make_aware(datetime(year, month + 1, 1), tz)

        submissions = ScheduledSubmission.objects.filter(
            user=user,
            scheduled_submit_time__gte=start,
            scheduled_submit_time__lt=end,
        ).order_by('scheduled_submit_time', 'id')

        calendar_data = {}
        total = 0
        for submission in submissions:
            local_time = timezone.localtime(submission.scheduled_submit_time)
            calendar_data.setdefault(local_time.day, []).append({
                'id': submission.id,
                'application_id': submission.application_id,
                'time': local_time.strftime('%I:%M %p'),
                'status': submission.status,
            })
            total += 1

        return {
            'month': month,
            'year': year,
            'month_name': calendar.month_name[month],
            'calendar': calendar_data,
            'summary': {
                'total_scheduled': total,
                'days_with_submissions': len(calendar_data),
            },
        }

    def get_scheduling_statistics(self, user):
        now = self.clock()
        schedules = list(ScheduledSubmission.objects.filter(user=user))

        scheduled = [s for s in schedules if s.status == ScheduledSubmission.STATUS_SCHEDULED]
        submitted = [s for s in schedules if s.status == ScheduledSubmission.STATUS_SUBMITTED]
        cancelled = [s for s in schedules if s.status == ScheduledSubmission.STATUS_CANCELLED]
        upcoming = [s for s in scheduled if s.scheduled_submit_time > now]
        overdue = [s for s in scheduled if s.scheduled_submit_time <= now]

        denominator = len(scheduled) + len(submitted)
        conversion_rate = (len(submitted) / denominator * 100) if denominator > 0 else 0

        return {
            'total_scheduled': len(scheduled),
            'total_submitted': len(submitted),
            'upcoming': len(upcoming),
            'overdue': len(overdue),
            'cancelled': len(cancelled),
            'conversion_rate': round(conversion_rate, 2),
        }
