import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("political_alignment", models.IntegerField(blank=True, null=True)),
                ("age_range", models.CharField(blank=True, default="", max_length=20)),
                ("country", models.CharField(default="UK", max_length=50)),
                ("total_games", models.IntegerField(default=0)),
                ("avg_score", models.FloatField(blank=True, null=True)),
            ],
            options={
                "db_table": "users",
            },
        ),
    ]
