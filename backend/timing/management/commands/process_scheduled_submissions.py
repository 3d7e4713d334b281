from django.core.management.base import BaseCommand
from django.utils import timezone

from timing.models import ScheduledSubmission
from timing.notifications import EmailSubmissionDispatcher
from timing.scheduling import SchedulingService


class Command(BaseCommand):
    help = 'Submit scheduled applications that are due and send pending submission reminders.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-reminders',
            action='store_true',
            help='Only process due submissions; do not send reminders.'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List due submissions without sending emails or mutating records.'
        )

    def handle(self, *args, **options):
        dry_run = options.get('dry_run', False)

        if dry_run:
            now = timezone.now()
            due = ScheduledSubmission.objects.filter(
                status=ScheduledSubmission.STATUS_SCHEDULED,
                scheduled_submit_time__lte=now,
            ).order_by('scheduled_submit_time', 'id')
            for schedule in due:
                self.stdout.write(
                    f"  would submit #{schedule.id} (application {schedule.application_id}, "
                    f"due {schedule.scheduled_submit_time:%Y-%m-%d %H:%M})"
                )
            self.stdout.write(self.style.WARNING(f"[dry-run] {due.count()} submission(s) due"))
            return

        service = SchedulingService(dispatcher=EmailSubmissionDispatcher())
        result = service.process_scheduled_submissions()
        summary = (
            f"Processed {result['processed']} submission(s): "
            f"{result['submitted']} submitted, {result['failed']} failed"
        )

        if not options.get('skip_reminders'):
            reminders = service.send_reminders()
            summary += f"; reminders sent={reminders['reminders_sent']}, failed={len(reminders['failed'])}"

        style = self.style.ERROR if result['failed'] else self.style.SUCCESS
        self.stdout.write(style(summary))
