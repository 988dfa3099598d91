import django.core.validators
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Table",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("label", models.CharField(max_length=50, unique=True)),
                ("x", models.FloatField(default=0)),
                ("y", models.FloatField(default=0)),
                (
                    "shape",
                    models.CharField(
                        choices=[("RECT", "Rectangle"), ("ROUND", "Round")],
                        default="RECT",
                        max_length=10,
                    ),
                ),
                (
                    "capacity",
                    models.PositiveIntegerField(
                        default=4,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
            ],
            options={
                "ordering": ["label"],
            },
        ),
    ]
