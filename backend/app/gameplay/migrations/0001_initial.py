import uuid

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="GameSession",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("prompt_id", models.CharField(max_length=64)),
                ("prompt_scenario", models.TextField()),
                ("prompt_category", models.CharField(max_length=50)),
                ("position_assigned", models.CharField(max_length=30)),
                ("user_response", models.TextField()),
                ("char_count", models.IntegerField(blank=True, null=True)),
                ("detected", models.BooleanField(blank=True, null=True)),
                ("score", models.IntegerField(blank=True, null=True)),
                ("feedback", models.TextField(blank=True, default="")),
                ("rubric_understanding", models.IntegerField(blank=True, null=True)),
                ("rubric_authenticity", models.IntegerField(blank=True, null=True)),
                ("rubric_execution", models.IntegerField(blank=True, null=True)),
                ("ai_comparison_response", models.TextField(blank=True, default="")),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True, default="")),
                ("duration_seconds", models.IntegerField(blank=True, null=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="users.user",
                    ),
                ),
            ],
            options={
                "db_table": "game_sessions",
                "indexes": [
                    models.Index(fields=["user", "-created_at"], name="idx_user_sessions"),
                    models.Index(fields=["prompt_id", "score"], name="idx_prompt_performance"),
                    models.Index(
                        fields=["position_assigned", "detected"],
                        name="idx_position_performance",
                    ),
                ],
            },
        ),
    ]
