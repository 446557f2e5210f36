import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=[("OFFICER_CREATE", "Officer Created"), ("OFFICER_TRANSFER", "Officer Transferred"), ("OFFICER_RETIRE", "Officer Retired"), ("COMPLAINT_TRANSFER_INITIATED", "Complaint Transfer Initiated"), ("COMPLAINT_TRANSFER_ACCEPTED", "Complaint Transfer Accepted"), ("COMPLAINT_TRANSFER_REJECTED", "Complaint Transfer Rejected"), ("CONNECTION_CREATE", "Connection Created"), ("CONNECTION_DEACTIVATE", "Connection Deactivated"), ("CONNECTION_REACTIVATE", "Connection Reactivated"), ("DATA_CLEANUP", "Data Cleanup")], db_index=True, max_length=40, verbose_name="Action")),
                ("actor_role", models.CharField(blank=True, default="", max_length=20, verbose_name="Actor Role")),
                ("entity_type", models.CharField(max_length=50, verbose_name="Entity Type")),
                ("entity_id", models.CharField(blank=True, default="", max_length=64, verbose_name="Entity ID")),
                ("details", models.JSONField(blank=True, default=dict, verbose_name="Details")),
                ("timestamp", models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")),
                ("actor", models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name="+", to=settings.AUTH_USER_MODEL, verbose_name="Actor")),
            ],
            options={
                "verbose_name": "Audit Log Entry",
                "verbose_name_plural": "Audit Log",
                "ordering": ["-timestamp", "-id"],
                "indexes": [models.Index(fields=["entity_type", "entity_id"], name="auditlog_entity_idx")],
            },
        ),
    ]
