from django.db import migrations


FLOOR_PLAN = (
    ("1", 50, 50, 4),
    ("2", 200, 50, 2),
    ("3", 50, 200, 6),
    ("4", 200, 200, 4),
    ("5", 350, 125, 2),
)


def seed_floor_plan(apps, schema_editor):
    Table = apps.get_model("tables", "Table")

    if Table.objects.exists():
        return

    for label, x, y, capacity in FLOOR_PLAN:
        Table.objects.create(label=label, x=x, y=y, shape="RECT", capacity=capacity)


class Migration(migrations.Migration):

    dependencies = [
        ("tables", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_floor_plan, migrations.RunPython.noop),
    ]
