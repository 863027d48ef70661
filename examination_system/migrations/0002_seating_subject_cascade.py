import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("examination_system", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="seatingarrangement",
            name="subject",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.CASCADE,
                related_name="seating_arrangements",
                to="examination_system.subject",
            ),
        ),
    ]
