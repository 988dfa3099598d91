from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="order",
            name="guest_session",
            field=models.CharField(blank=True, db_index=True, max_length=64, null=True),
        ),
    ]
