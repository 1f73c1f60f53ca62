import uuid

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import app.matches.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
        ("gameplay", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Match",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("match_code", models.CharField(max_length=8, unique=True)),
                ("prompt_id", models.CharField(max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "pending"),
                            ("completed", "completed"),
                            ("expired", "expired"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "expires_at",
                    models.DateTimeField(default=app.matches.models.default_expires_at),
                ),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "matches",
                "indexes": [
                    models.Index(
                        fields=["status", "expires_at"], name="idx_match_status_expiry"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MatchParticipant",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("creator", "creator"), ("opponent", "opponent")],
                        max_length=10,
                    ),
                ),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "match",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="matches.match",
                    ),
                ),
                (
                    "session",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="match_participations",
                        to="gameplay.gamesession",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="match_participations",
                        to="users.user",
                    ),
                ),
            ],
            options={
                "db_table": "match_participants",
                "ordering": ["joined_at"],
                "constraints": [
                    models.UniqueConstraint(fields=["match", "role"], name="uq_match_role"),
                    models.UniqueConstraint(fields=["match", "user"], name="uq_match_user"),
                ],
            },
        ),
    ]
