import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="NotificationAuditRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "timestamp",
                    models.DateTimeField(auto_now_add=True, db_index=True, help_text="Server-assigned time of the step"),
                ),
                ("step", models.CharField(db_index=True, help_text="Pipeline step name", max_length=100)),
                (
                    "notification_type",
                    models.CharField(
                        default="unknown",
                        help_text="Notification type tag (follow, comment, test, ...)",
                        max_length=100,
                    ),
                ),
                (
                    "target_user_id",
                    models.CharField(
                        db_index=True,
                        default="unknown",
                        help_text="Target user identity, or 'unknown'",
                        max_length=255,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("in_progress", "In progress"),
                            ("success", "Success"),
                            ("failed", "Failed"),
                            ("skipped", "Skipped"),
                            ("error", "Error"),
                        ],
                        default="in_progress",
                        help_text="Outcome of the step",
                        max_length=20,
                    ),
                ),
                (
                    "additional_info",
                    models.TextField(
                        blank=True, default="", help_text="Free-text context, truncated to a bounded length"
                    ),
                ),
                (
                    "platform",
                    models.CharField(blank=True, default="", help_text="Platform tag of the writer", max_length=50),
                ),
            ],
            options={
                "db_table": "notifications_audit_log",
                "ordering": ["timestamp", "id"],
                "indexes": [
                    models.Index(fields=["target_user_id", "-timestamp"], name="audit_target_time_idx"),
                    models.Index(fields=["step", "status"], name="audit_step_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InAppNotification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                ("notification_type", models.CharField(help_text="Notification type tag", max_length=100)),
                (
                    "target_user_id",
                    models.CharField(db_index=True, help_text="Identity of the recipient", max_length=255),
                ),
                ("title", models.CharField(max_length=500)),
                ("body", models.TextField(blank=True, default="")),
                ("custom_data", models.JSONField(blank=True, default=dict, help_text="Type-specific payload")),
            ],
            options={
                "db_table": "notifications_in_app",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PendingDeviceToken",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                ("token", models.CharField(help_text="Delivery token value", max_length=512, unique=True)),
                (
                    "associated",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Whether the token has been associated with a user"
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        help_text="User the token was associated with",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="pending_device_tokens",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "notifications_pending_token",
                "ordering": ["-created_at"],
            },
        ),
    ]
