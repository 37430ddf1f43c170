from django.db import migrations, models

import dm_core.common.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Patient",
            fields=[
                (
                    "id",
                    models.CharField(
                        default=dm_core.common.models.new_record_id,
                        editable=False,
                        max_length=64,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("position", models.PositiveIntegerField(db_index=True, default=0)),
                ("name", models.CharField(max_length=255)),
                ("medical_id", models.CharField(max_length=64)),
                ("prescription_limit_grams", models.DecimalField(decimal_places=2, max_digits=10)),
            ],
            options={
                "db_table": "patients_patient",
                "ordering": ["position", "name"],
            },
        ),
        migrations.AddIndex(
            model_name="patient",
            index=models.Index(fields=["name"], name="ix_patient_name"),
        ),
        migrations.AddConstraint(
            model_name="patient",
            constraint=models.UniqueConstraint(fields=("medical_id",), name="uq_patient_medical_id"),
        ),
        migrations.AddConstraint(
            model_name="patient",
            constraint=models.CheckConstraint(
                condition=models.Q(prescription_limit_grams__gt=0),
                name="ck_patient_limit_positive",
            ),
        ),
    ]
