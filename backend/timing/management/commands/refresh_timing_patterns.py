from django.core.management.base import BaseCommand

from timing.models import IndustryTimingPattern
from timing.timing_analysis import TimingAnalysisService


class Command(BaseCommand):
    help = 'Recompute stored timing patterns for every (industry, company size) segment.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing precomputed patterns before refreshing.'
        )

    def handle(self, *args, **options):
        if options.get('clear'):
            deleted, _ = IndustryTimingPattern.objects.all().delete()
            self.stdout.write(f"Removed {deleted} stored pattern(s)")

        result = TimingAnalysisService().precompute_industry_patterns()
        self.stdout.write(self.style.SUCCESS(f"Refreshed {result['refreshed']} timing pattern(s)"))
