"""
Transfer fixtures: officers at each desk of ``org`` and a complaint
waiting at PWD / ROADS with an assigned officer.
"""

from types import SimpleNamespace

import pytest

from transfers.models import TransferReason
from transfers.services import ConnectionService, TransferWorkflowService


@pytest.fixture()
def officers(org, create_officer):
    return SimpleNamespace(
        roads=create_officer(org.roads, full_name="Ravi Roads"),
        drain=create_officer(org.drain, full_name="Dina Drain"),
        pipes=create_officer(org.pipes, full_name="Priya Pipes"),
    )


@pytest.fixture()
def complaint(org, officers, create_complaint):
    return create_complaint(org.pwd, org.roads, assigned_officer=officers.roads)


@pytest.fixture()
def workflow():
    return TransferWorkflowService()


@pytest.fixture()
def connections():
    return ConnectionService()


@pytest.fixture()
def initiate(workflow, officers):
    """``initiate(complaint, to_department, to_sub_department=None, actor=None, **payload)``"""

    def _initiate(complaint, to_department, to_sub_department=None, actor=None, **payload):
        payload.setdefault("transfer_reason", TransferReason.WRONG_DEPARTMENT)
        payload["to_department"] = to_department.pk
        if to_sub_department is not None:
            payload["to_sub_department"] = to_sub_department.pk
        return workflow.initiate_transfer(actor or officers.roads, complaint.pk, payload)

    return _initiate
