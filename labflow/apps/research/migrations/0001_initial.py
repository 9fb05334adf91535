import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _lab_fk():
    return models.ForeignKey(
        on_delete=django.db.models.deletion.CASCADE,
        related_name="+",
        to="labs.lab",
        verbose_name="Lab",
    )


def _user_fk(related_name, verbose_name):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
        verbose_name=verbose_name,
    )


def _record_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("lab", _lab_fk()),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("labs", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Bucket",
            fields=_record_fields() + [
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("created_by", _user_fk("created_buckets", "Created by")),
            ],
            options={"verbose_name": "Bucket", "verbose_name_plural": "Buckets", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Study",
            fields=_record_fields() + [
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PLANNING", "Planning"),
                            ("ACTIVE", "Active"),
                            ("ON_HOLD", "On hold"),
                            ("COMPLETED", "Completed"),
                            ("ARCHIVED", "Archived"),
                        ],
                        default="PLANNING",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                (
                    "bucket",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="studies",
                        to="research.bucket",
                        verbose_name="Bucket",
                    ),
                ),
                ("created_by", _user_fk("created_studies", "Created by")),
            ],
            options={"verbose_name": "Study", "verbose_name_plural": "Studies", "ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="Task",
            fields=_record_fields() + [
                ("title", models.CharField(max_length=300, verbose_name="Title")),
                ("due_date", models.DateField(blank=True, null=True, verbose_name="Due date")),
                ("assignee", _user_fk("assigned_research_tasks", "Assignee")),
                ("created_by", _user_fk("created_research_tasks", "Created by")),
                (
                    "study",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="research.study",
                        verbose_name="Study",
                    ),
                ),
            ],
            options={"verbose_name": "Task", "verbose_name_plural": "Tasks", "ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="Idea",
            fields=_record_fields() + [
                ("title", models.CharField(max_length=300, verbose_name="Title")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("proposed_by", _user_fk("proposed_ideas", "Proposed by")),
            ],
            options={"verbose_name": "Idea", "verbose_name_plural": "Ideas", "ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="Deadline",
            fields=_record_fields() + [
                ("title", models.CharField(max_length=300, verbose_name="Title")),
                ("due_at", models.DateTimeField(verbose_name="Due")),
                ("created_by", _user_fk("created_deadlines", "Created by")),
                (
                    "study",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="deadlines",
                        to="research.study",
                        verbose_name="Study",
                    ),
                ),
            ],
            options={"verbose_name": "Deadline", "verbose_name_plural": "Deadlines", "ordering": ["due_at"]},
        ),
    ]
