import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'jobtracker.settings')
app = Celery('jobtracker')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

# Periodic triggers for the submission scheduler and pattern cache
app.conf.beat_schedule = {
    'process-scheduled-submissions': {
        'task': 'timing.tasks.process_scheduled_submissions',
        'schedule': crontab(minute='*/5'),  # Every 5 minutes
    },
    'send-submission-reminders': {
        'task': 'timing.tasks.send_submission_reminders',
        'schedule': crontab(minute='*/5'),
    },
    'refresh-industry-patterns': {
        'task': 'timing.tasks.refresh_industry_patterns',
        'schedule': crontab(hour=3, minute=0),  # Nightly at 3 AM
    },
}


@app.task(bind=True)
def debug_task(self):
    print(f'Request: {self.request!r}')
