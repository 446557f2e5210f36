import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Department",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("name", models.CharField(max_length=100, unique=True, verbose_name="Department Name")),
                ("code", models.CharField(max_length=10, unique=True, validators=[django.core.validators.RegexValidator(message="Code must be 2-10 uppercase letters or digits.", regex="^[A-Z0-9]{2,10}$")], verbose_name="Department Code")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="Active")),
            ],
            options={
                "verbose_name": "Department",
                "verbose_name_plural": "Departments",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SubDepartment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("name", models.CharField(max_length=100, verbose_name="Sub-Department Name")),
                ("code", models.CharField(max_length=10, validators=[django.core.validators.RegexValidator(message="Code must be 2-10 uppercase letters or digits.", regex="^[A-Z0-9]{2,10}$")], verbose_name="Sub-Department Code")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="Active")),
                ("department", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sub_departments", to="directory.department", verbose_name="Department")),
            ],
            options={
                "verbose_name": "Sub-Department",
                "verbose_name_plural": "Sub-Departments",
                "ordering": ["department", "name"],
                "constraints": [models.UniqueConstraint(fields=("department", "code"), name="uniq_subdepartment_code_per_department")],
            },
        ),
    ]
