import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="booking",
            name="returned_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.CreateModel(
            name="BoxReturn",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("confirmed_good_status", models.BooleanField(default=False)),
                ("box_front_view", models.URLField(max_length=500)),
                ("box_back_view", models.URLField(max_length=500)),
                ("closed_stand_lock", models.URLField(max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="box_return",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Box return",
                "verbose_name_plural": "Box returns",
            },
        ),
    ]
