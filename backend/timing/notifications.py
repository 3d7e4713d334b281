"""Delivery of submission reminders and submission notices by email."""
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

logger = logging.getLogger(__name__)


class EmailSubmissionDispatcher:
    """Sends scheduler notifications to the submission owner's email address."""

    def _recipient(self, schedule):
        email = getattr(schedule.user, 'email', '')
        if not email:
            logger.warning(f"No email for user {schedule.user_id}, skipping notification for schedule {schedule.id}")
        return email

    def send_reminder(self, schedule, minutes_until):
        to_email = self._recipient(schedule)
        if not to_email:
            return False

        local_time = timezone.localtime(schedule.scheduled_submit_time)
        frontend_base = getattr(settings, 'FRONTEND_URL', 'http://localhost:3000').rstrip('/')
        message = (
            f"Your application #{schedule.application_id} is scheduled to be submitted in about "
            f"{minutes_until} minutes ({local_time.strftime('%A, %B %d at %I:%M %p %Z')}).\n\n"
            f"Review it before it goes out: {frontend_base}/timing/schedule?highlight={schedule.id}"
        )
        send_mail(
            subject=f"Reminder: application #{schedule.application_id} submits in {minutes_until} minutes",
            message=message,
            from_email=getattr(settings, 'DEFAULT_FROM_EMAIL', 'no-reply@example.com'),
            recipient_list=[to_email],
            fail_silently=False,
        )
        logger.info(f"Reminder email sent to {to_email} for schedule {schedule.id}")
        return True

    def send_submitted(self, schedule, submitted_at):
        to_email = self._recipient(schedule)
        if not to_email:
            return False

        send_mail(
            subject=f"Application #{schedule.application_id} submitted",
            message=(
                f"Your scheduled application #{schedule.application_id} was submitted at "
                f"{timezone.localtime(submitted_at).strftime('%I:%M %p %Z')}."
            ),
            from_email=getattr(settings, 'DEFAULT_FROM_EMAIL', 'no-reply@example.com'),
            recipient_list=[to_email],
            fail_silently=False,
        )
        return True
