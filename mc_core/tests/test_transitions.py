import uuid

import pytest

from mc_core.common.errors import NotFoundError
from mc_core.common.transitions import compare_and_set, load_or_404
from mc_core.consultations.models import Consultation, ConsultationStatus
from mc_core.consultations.services import ConsultationService
from mc_core.iam.models import UserRole

pytestmark = pytest.mark.django_db


@pytest.fixture
def pending(patient):
    return ConsultationService.create_consultation(
        patient_id=patient.id, provider_type=UserRole.GP, chief_complaint="Back pain"
    )


def test_only_one_guarded_update_matches(pending, gp_a, gp_b):
    guard = {"status": ConsultationStatus.PENDING}

    first = compare_and_set(Consultation, pk=pending.id, guard=guard,
                            changes={"status": ConsultationStatus.ACCEPTED, "provider_id": gp_a.id})
    second = compare_and_set(Consultation, pk=pending.id, guard=guard,
                             changes={"status": ConsultationStatus.ACCEPTED, "provider_id": gp_b.id})

    assert (first, second) == (True, False)
    pending.refresh_from_db()
    assert pending.provider_id == gp_a.id


def test_missing_row_is_a_loss_not_an_error():
    assert compare_and_set(Consultation, pk=uuid.uuid4(), guard={}, changes={"status": "accepted"}) is False


def test_malformed_pk_is_not_found():
    with pytest.raises(NotFoundError):
        compare_and_set(Consultation, pk="not-a-uuid", guard={}, changes={"status": "accepted"},
                        label="Consultation")
    with pytest.raises(NotFoundError):
        load_or_404(Consultation, pk="not-a-uuid", label="Consultation")
