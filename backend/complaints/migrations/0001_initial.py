import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("directory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Complaint",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("complaint_number", models.CharField(editable=False, max_length=20, unique=True, verbose_name="Complaint Number")),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(verbose_name="Description")),
                ("category", models.CharField(blank=True, default="", max_length=50, verbose_name="Category")),
                ("priority", models.CharField(choices=[("LOW", "Low"), ("MEDIUM", "Medium"), ("HIGH", "High"), ("URGENT", "Urgent")], default="MEDIUM", max_length=10, verbose_name="Priority")),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("IN_PROGRESS", "In Progress"), ("RESOLVED", "Resolved"), ("REJECTED", "Rejected")], db_index=True, default="PENDING", max_length=20, verbose_name="Status")),
                ("claimed_at", models.DateTimeField(blank=True, null=True, verbose_name="Claimed At")),
                ("transfer_history", models.JSONField(blank=True, default=list, verbose_name="Transfer History")),
                ("transfer_count", models.PositiveIntegerField(default=0, verbose_name="Transfer Count")),
                ("last_transferred_at", models.DateTimeField(blank=True, null=True, verbose_name="Last Transferred At")),
                ("assigned_officer", models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name="assigned_complaints", to=settings.AUTH_USER_MODEL, verbose_name="Assigned Officer")),
                ("citizen", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="complaints", to=settings.AUTH_USER_MODEL, verbose_name="Citizen")),
                ("department", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="complaints", to="directory.department", verbose_name="Department")),
                ("sub_department", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="complaints", to="directory.subdepartment", verbose_name="Sub-Department")),
            ],
            options={
                "verbose_name": "Complaint",
                "verbose_name_plural": "Complaints",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["department", "sub_department", "status"], name="complaint_unit_status_idx"),
                    models.Index(fields=["assigned_officer"], name="complaint_officer_idx"),
                ],
            },
        ),
    ]
