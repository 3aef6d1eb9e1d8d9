import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('projects', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255, verbose_name='title')),
                ('description', models.TextField(blank=True, verbose_name='description')),
                ('type', models.CharField(choices=[('CLIENT', 'Client'), ('INTERNAL', 'Internal'), ('RESEARCH', 'Research'), ('ADMIN', 'Admin')], default='CLIENT', max_length=16)),
                ('priority', models.CharField(choices=[('URGENT_IMPORTANT', 'Urgent & important'), ('IMPORTANT_NOT_URGENT', 'Important, not urgent'), ('URGENT_NOT_IMPORTANT', 'Urgent, not important'), ('NEITHER', 'Neither')], default='IMPORTANT_NOT_URGENT', max_length=32)),
                ('status', models.CharField(choices=[('TODO', 'To do'), ('IN_PROGRESS', 'In progress'), ('IN_REVIEW', 'In review'), ('DONE', 'Done')], db_index=True, default='TODO', max_length=16)),
                ('start_date', models.DateTimeField(verbose_name='start date')),
                ('deadline', models.DateTimeField(verbose_name='deadline')),
                ('emergency', models.BooleanField(default=False, verbose_name='emergency')),
                ('estimated_hours', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ('todo_since', models.DateTimeField(blank=True, null=True)),
                ('status_changed_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('is_frozen', models.BooleanField(default=False, help_text='While set, display_score is held at its last value.')),
                ('raw_score', models.FloatField(default=0.0, verbose_name='raw score')),
                ('display_score', models.FloatField(db_index=True, default=0.0, verbose_name='display score')),
                ('score_breakdown', models.JSONField(blank=True, default=dict)),
                ('scored_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='owned_tasks', to=settings.AUTH_USER_MODEL, verbose_name='owner')),
                ('project', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks', to='projects.project', verbose_name='project')),
                ('reviewer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='review_tasks', to=settings.AUTH_USER_MODEL, verbose_name='reviewer')),
            ],
            options={
                'verbose_name': 'Task',
                'verbose_name_plural': 'Tasks',
                'ordering': ['-display_score', 'deadline', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ReviewAuditEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('old_status', models.CharField(choices=[('TODO', 'To do'), ('IN_PROGRESS', 'In progress'), ('IN_REVIEW', 'In review'), ('DONE', 'Done')], max_length=16)),
                ('new_status', models.CharField(choices=[('TODO', 'To do'), ('IN_PROGRESS', 'In progress'), ('IN_REVIEW', 'In review'), ('DONE', 'Done')], max_length=16)),
                ('requested_status', models.CharField(max_length=32)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='audit_entries', to='tasks.task')),
            ],
            options={
                'verbose_name': 'Review audit entry',
                'verbose_name_plural': 'Review audit entries',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('REVIEW_REQUEST', 'Review requested'), ('TASK_ASSIGNED', 'Task assigned'), ('EMERGENCY_TASK', 'Emergency task'), ('SCORE_FREEZE', 'Scores frozen')], max_length=32)),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField(blank=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('task', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='tasks.task')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
