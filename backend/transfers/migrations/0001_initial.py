import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("complaints", "0001_initial"),
        ("directory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ComplaintTransfer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("transfer_type", models.CharField(choices=[("DEPARTMENT", "Department"), ("SUB_DEPARTMENT", "Sub-Department"), ("ESCALATION", "Escalation")], max_length=20, verbose_name="Transfer Type")),
                ("transfer_reason", models.CharField(choices=[("CLARIFICATION", "Clarification"), ("RE_VERIFICATION", "Re-verification"), ("FURTHER_INVESTIGATION", "Further Investigation"), ("SPECIALIZED_HANDLING", "Specialized Handling"), ("WRONG_DEPARTMENT", "Wrong Department"), ("ESCALATION", "Escalation"), ("OTHER", "Other")], max_length=30, verbose_name="Transfer Reason")),
                ("transfer_notes", models.TextField(blank=True, default="", max_length=500, verbose_name="Transfer Notes")),
                ("initiated_by_role", models.CharField(max_length=20, verbose_name="Initiator Role")),
                ("transferred_at", models.DateTimeField(db_index=True, verbose_name="Transferred At")),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("ACCEPTED", "Accepted"), ("REJECTED", "Rejected")], db_index=True, default="PENDING", max_length=10, verbose_name="Status")),
                ("accepted_at", models.DateTimeField(blank=True, null=True, verbose_name="Accepted At")),
                ("rejected_at", models.DateTimeField(blank=True, null=True, verbose_name="Rejected At")),
                ("rejection_reason", models.TextField(blank=True, default="", max_length=500, verbose_name="Rejection Reason")),
                ("complaint", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="transfers", to="complaints.complaint", verbose_name="Complaint")),
                ("from_department", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="outbound_transfers", to="directory.department", verbose_name="From Department")),
                ("from_sub_department", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="outbound_transfers", to="directory.subdepartment", verbose_name="From Sub-Department")),
                ("to_department", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="inbound_transfers", to="directory.department", verbose_name="To Department")),
                ("to_sub_department", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="inbound_transfers", to="directory.subdepartment", verbose_name="To Sub-Department")),
                ("initiated_by", models.ForeignKey(db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name="+", to=settings.AUTH_USER_MODEL, verbose_name="Initiated By")),
                ("accepted_by", models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name="+", to=settings.AUTH_USER_MODEL, verbose_name="Accepted By")),
                ("rejected_by", models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name="+", to=settings.AUTH_USER_MODEL, verbose_name="Rejected By")),
            ],
            options={
                "verbose_name": "Complaint Transfer",
                "verbose_name_plural": "Complaint Transfers",
                "ordering": ["-transferred_at", "-id"],
                "constraints": [models.UniqueConstraint(condition=models.Q(("status", "PENDING")), fields=("complaint",), name="uniq_pending_transfer_per_complaint")],
                "indexes": [
                    models.Index(fields=["to_department", "status"], name="transfer_to_dept_status_idx"),
                    models.Index(fields=["to_sub_department", "status"], name="transfer_to_sub_status_idx"),
                    models.Index(fields=["from_department", "status"], name="transfer_from_dept_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DepartmentConnection",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("connection_type", models.CharField(choices=[("TRANSFER_ENABLED", "Transfer Enabled"), ("COMMUNICATION_ENABLED", "Communication Enabled"), ("BOTH", "Both")], default="BOTH", max_length=25, verbose_name="Connection Type")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="Active")),
                ("transfer_count", models.PositiveIntegerField(default=0, verbose_name="Transfer Count")),
                ("last_transfer_at", models.DateTimeField(blank=True, null=True, verbose_name="Last Transfer At")),
                ("communication_count", models.PositiveIntegerField(default=0, verbose_name="Communication Count")),
                ("last_communication_at", models.DateTimeField(blank=True, null=True, verbose_name="Last Communication At")),
                ("notes", models.TextField(blank=True, default="", max_length=500, verbose_name="Notes")),
                ("department_a", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="directory.department", verbose_name="Department A")),
                ("department_b", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="directory.department", verbose_name="Department B")),
                ("established_by", models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name="+", to=settings.AUTH_USER_MODEL, verbose_name="Established By")),
            ],
            options={
                "verbose_name": "Department Connection",
                "verbose_name_plural": "Department Connections",
                "ordering": ["-transfer_count", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("department_a", "department_b"), name="uniq_department_connection_pair"),
                    models.CheckConstraint(condition=models.Q(("department_a__lt", models.F("department_b"))), name="department_connection_ordered_pair"),
                ],
            },
        ),
    ]
