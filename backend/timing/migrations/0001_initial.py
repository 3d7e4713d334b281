from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


DAY_CHOICES = [('Sunday', 'Sunday'), ('Monday', 'Monday'), ('Tuesday', 'Tuesday'), ('Wednesday', 'Wednesday'), ('Thursday', 'Thursday'), ('Friday', 'Friday'), ('Saturday', 'Saturday')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='IndustryTimingPattern',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('industry', models.CharField(max_length=120)),
                ('company_size', models.CharField(max_length=50)),
                ('best_day_of_week', models.CharField(choices=DAY_CHOICES, max_length=10)),
                ('best_hour_range', models.CharField(max_length=20)),
                ('avg_response_rate', models.FloatField(default=0, help_text='Percent (0-100)')),
                ('submission_count', models.PositiveIntegerField(default=0)),
                ('bad_days', models.JSONField(blank=True, default=list)),
                ('avoid_reasons', models.JSONField(blank=True, default=list)),
                ('avg_response_time_hours', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['industry', 'company_size'],
            },
        ),
        migrations.AddConstraint(
            model_name='industrytimingpattern',
            constraint=models.UniqueConstraint(fields=('industry', 'company_size'), name='uniq_timing_pattern_segment'),
        ),
        migrations.CreateModel(
            name='SubmissionMetric',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('application_id', models.PositiveIntegerField()),
                ('submitted_at', models.DateTimeField()),
                ('day_of_week', models.CharField(blank=True, choices=DAY_CHOICES, help_text='Derived from submitted_at', max_length=10)),
                ('hour_of_day', models.PositiveSmallIntegerField(blank=True, help_text='Hour of day when submitted (0-23), derived from submitted_at', null=True)),
                ('industry', models.CharField(blank=True, max_length=120)),
                ('company_size', models.CharField(blank=True, max_length=50)),
                ('got_interview', models.BooleanField(default=False)),
                ('response_time_hours', models.FloatField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='submission_metrics', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-submitted_at'],
            },
        ),
        migrations.AddIndex(
            model_name='submissionmetric',
            index=models.Index(fields=['industry', 'company_size'], name='timing_metric_segment_idx'),
        ),
        migrations.AddIndex(
            model_name='submissionmetric',
            index=models.Index(fields=['user', 'submitted_at'], name='timing_metric_user_time_idx'),
        ),
        migrations.AddIndex(
            model_name='submissionmetric',
            index=models.Index(fields=['user', 'industry'], name='timing_metric_user_ind_idx'),
        ),
        migrations.CreateModel(
            name='TimingRecommendation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('recommended_day_of_week', models.CharField(choices=DAY_CHOICES, max_length=10)),
                ('recommended_time_range', models.CharField(max_length=20)),
                ('recommended_hour_start', models.FloatField()),
                ('recommended_hour_end', models.FloatField()),
                ('based_on_industry', models.CharField(blank=True, max_length=120)),
                ('current_recommendation', models.CharField(blank=True, max_length=255)),
                ('time_until_optimal', models.PositiveIntegerField(default=0, help_text='Minutes')),
                ('reasoning', models.TextField(blank=True)),
                ('warnings', models.JSONField(blank=True, default=list)),
                ('confidence_level', models.FloatField(default=0)),
                ('estimated_response_rate_improvement', models.FloatField(default=0)),
                ('historical_success_rate', models.FloatField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('valid_until', models.DateTimeField()),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='timing_recommendations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='timingrecommendation',
            index=models.Index(fields=['user', '-created_at'], name='timing_rec_user_created_idx'),
        ),
        migrations.AddIndex(
            model_name='timingrecommendation',
            index=models.Index(fields=['user', 'valid_until'], name='timing_rec_user_valid_idx'),
        ),
        migrations.CreateModel(
            name='ScheduledSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('application_id', models.PositiveIntegerField()),
                ('scheduled_submit_time', models.DateTimeField(help_text='When to submit the application')),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('submitted', 'Submitted'), ('cancelled', 'Cancelled')], default='scheduled', max_length=20)),
                ('scheduling_reason', models.TextField(blank=True)),
                ('previous_scheduled_time', models.DateTimeField(blank=True, null=True)),
                ('is_rescheduled', models.BooleanField(default=False)),
                ('send_reminder', models.BooleanField(default=True)),
                ('reminder_minutes_before', models.PositiveIntegerField(default=30)),
                ('reminder_sent_at', models.DateTimeField(blank=True, null=True)),
                ('actual_submit_time', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scheduled_submissions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['scheduled_submit_time'],
            },
        ),
        migrations.AddIndex(
            model_name='scheduledsubmission',
            index=models.Index(fields=['user', 'status'], name='timing_sched_user_status_idx'),
        ),
        migrations.AddIndex(
            model_name='scheduledsubmission',
            index=models.Index(fields=['scheduled_submit_time', 'status'], name='timing_sched_time_status_idx'),
        ),
        migrations.AddIndex(
            model_name='scheduledsubmission',
            index=models.Index(fields=['status', 'send_reminder'], name='timing_sched_reminder_idx'),
        ),
        migrations.CreateModel(
            name='TimingExperiment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('test_name', models.CharField(max_length=200)),
                ('control_timing', models.CharField(max_length=120)),
                ('variant_timing', models.CharField(max_length=120)),
                ('test_duration_days', models.PositiveIntegerField(default=30)),
                ('minimum_sample_size', models.PositiveIntegerField(default=20)),
                ('status', models.CharField(choices=[('active', 'Active'), ('completed', 'Completed'), ('inconclusive', 'Inconclusive')], default='active', max_length=20)),
                ('control_submissions', models.PositiveIntegerField(default=0)),
                ('control_responses', models.PositiveIntegerField(default=0)),
                ('control_interviews', models.PositiveIntegerField(default=0)),
                ('control_response_rate', models.FloatField(default=0)),
                ('control_interview_rate', models.FloatField(default=0)),
                ('control_avg_response_time', models.FloatField(default=0)),
                ('variant_submissions', models.PositiveIntegerField(default=0)),
                ('variant_responses', models.PositiveIntegerField(default=0)),
                ('variant_interviews', models.PositiveIntegerField(default=0)),
                ('variant_response_rate', models.FloatField(default=0)),
                ('variant_interview_rate', models.FloatField(default=0)),
                ('variant_avg_response_time', models.FloatField(default=0)),
                ('response_rate_improvement', models.FloatField(blank=True, null=True)),
                ('interview_rate_improvement', models.FloatField(blank=True, null=True)),
                ('p_value', models.FloatField(blank=True, null=True)),
                ('is_statistically_significant', models.BooleanField(default=False)),
                ('winning_variant', models.CharField(blank=True, choices=[('control', 'Control'), ('variant', 'Variant'), ('inconclusive', 'Inconclusive')], max_length=20)),
                ('recommendation_text', models.TextField(blank=True)),
                ('implementation_confidence', models.FloatField(default=0)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ended_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='timing_experiments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-started_at'],
            },
        ),
        migrations.AddIndex(
            model_name='timingexperiment',
            index=models.Index(fields=['user', 'status'], name='timing_exp_user_status_idx'),
        ),
        migrations.AddIndex(
            model_name='timingexperiment',
            index=models.Index(fields=['user', '-started_at'], name='timing_exp_user_started_idx'),
        ),
    ]
