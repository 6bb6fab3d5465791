from django.db import migrations


DEFAULT_PLANS = [
    ("pyq", "PYQ Access (All centres + all years)"),
    ("materials", "Study Material Access (All materials)"),
    ("combo", "Combo (PYQ + Materials)"),
]


def seed_plans(apps, schema_editor):
    Plan = apps.get_model("payments", "Plan")
    for code, name in DEFAULT_PLANS:
        Plan.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "price_paise": 0,
                "duration_days": 365,
                "status": "active",
                "is_free": True,
            },
        )


class Migration(migrations.Migration):

    dependencies = [
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_plans, migrations.RunPython.noop),
    ]
