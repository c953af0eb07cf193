import pytest

from mc_core.common.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from mc_core.consultations.models import ConsultationStatus
from mc_core.consultations.services import ConsultationService
from mc_core.iam.models import UserRole
from mc_core.notifications.models import Notification, NotificationType
from mc_core.prescriptions.models import Prescription, PrescriptionStatus
from mc_core.prescriptions.services import PrescriptionService

pytestmark = pytest.mark.django_db

MEDS = [
    {"name": "Amoxicillin", "dosage": "500mg", "frequency": "3x daily", "duration": "7 days"},
    {"name": "Ibuprofen", "dosage": "200mg", "frequency": "as needed", "duration": "5 days", "instructions": "After food"},
]


@pytest.fixture
def prescription(accepted_consultation, patient, gp_a):
    return PrescriptionService.create_prescription(
        consultation_id=accepted_consultation.id,
        patient_id=patient.id,
        provider_id=gp_a.id,
        medications=MEDS,
        diagnosis="Bacterial infection",
    )


def test_create_issues_unique_token_and_notifies_patient(prescription, patient):
    assert prescription.status == PrescriptionStatus.PENDING
    assert prescription.pharmacy_id is None
    assert len(prescription.qr_token) >= 32
    assert prescription.medications[1]["instructions"] == "After food"
    assert Notification.objects.filter(user=patient, type=NotificationType.PRESCRIPTION_CREATED).count() == 1


def test_create_closes_in_progress_consultation(in_progress_consultation, patient, gp_a):
    PrescriptionService.create_prescription(
        consultation_id=in_progress_consultation.id, patient_id=patient.id, provider_id=gp_a.id, medications=MEDS
    )
    in_progress_consultation.refresh_from_db()
    assert in_progress_consultation.status == ConsultationStatus.COMPLETED


def test_only_consultation_provider_can_prescribe(accepted_consultation, patient, gp_b):
    with pytest.raises(AuthorizationError):
        PrescriptionService.create_prescription(
            consultation_id=accepted_consultation.id, patient_id=patient.id, provider_id=gp_b.id, medications=MEDS
        )


def test_cannot_prescribe_for_cancelled_consultation(accepted_consultation, patient, gp_a):
    c = ConsultationService.cancel_consultation(consultation_id=accepted_consultation.id, actor_id=patient.id)
    with pytest.raises(ConflictError):
        PrescriptionService.create_prescription(
            consultation_id=c.id, patient_id=patient.id, provider_id=gp_a.id, medications=MEDS
        )
    assert Prescription.objects.count() == 0


@pytest.mark.parametrize(
    "meds",
    [
        [],
        [{"name": "Aspirin", "dosage": "100mg", "frequency": "daily"}],
        ["Aspirin"],
    ],
)
def test_medications_are_validated(accepted_consultation, patient, gp_a, meds):
    with pytest.raises(ValidationError):
        PrescriptionService.create_prescription(
            consultation_id=accepted_consultation.id, patient_id=patient.id, provider_id=gp_a.id, medications=meds
        )


def test_assign_then_qr_claim_by_other_pharmacy_conflicts(prescription, patient, pharmacy, pharmacy_b):
    PrescriptionService.assign_pharmacy(prescription_id=prescription.id, patient_id=patient.id, pharmacy_id=pharmacy.id)

    with pytest.raises(ConflictError):
        PrescriptionService.claim_by_qr(qr_token=prescription.qr_token, pharmacy_id=pharmacy_b.id)

    prescription.refresh_from_db()
    assert prescription.pharmacy_id == pharmacy.id
    assert Notification.objects.filter(user=pharmacy, type=NotificationType.PRESCRIPTION_ASSIGNED).count() == 1


def test_qr_claim_then_assign_to_other_pharmacy_conflicts(prescription, patient, pharmacy, pharmacy_b):
    p, claimed = PrescriptionService.claim_by_qr(qr_token=prescription.qr_token, pharmacy_id=pharmacy_b.id)
    assert claimed is True

    with pytest.raises(ConflictError):
        PrescriptionService.assign_pharmacy(
            prescription_id=prescription.id, patient_id=patient.id, pharmacy_id=pharmacy.id
        )

    prescription.refresh_from_db()
    assert prescription.pharmacy_id == pharmacy_b.id


def test_repeat_claim_is_idempotent(prescription, patient, pharmacy):
    _, first = PrescriptionService.claim_by_qr(qr_token=prescription.qr_token, pharmacy_id=pharmacy.id)
    _, second = PrescriptionService.claim_by_qr(qr_token=prescription.qr_token, pharmacy_id=pharmacy.id)

    assert (first, second) == (True, False)
    assert Notification.objects.filter(user=patient, type=NotificationType.PRESCRIPTION_CLAIMED).count() == 1


def test_unknown_qr_token(pharmacy):
    with pytest.raises(NotFoundError):
        PrescriptionService.claim_by_qr(qr_token="does-not-exist", pharmacy_id=pharmacy.id)


def test_only_patient_can_assign(prescription, pharmacy, make_user):
    other = make_user(role=UserRole.PATIENT)
    with pytest.raises(AuthorizationError):
        PrescriptionService.assign_pharmacy(prescription_id=prescription.id, patient_id=other.id,
                                            pharmacy_id=pharmacy.id)


def test_fulfillment_moves_forward_only(prescription, patient, pharmacy):
    PrescriptionService.claim_by_qr(qr_token=prescription.qr_token, pharmacy_id=pharmacy.id)

    p = PrescriptionService.update_fulfillment_status(
        prescription_id=prescription.id, pharmacy_id=pharmacy.id, status="preparing", notes="Packing"
    )
    assert p.status == PrescriptionStatus.PREPARING
    assert p.pharmacy_notes == "Packing"

    p = PrescriptionService.update_fulfillment_status(prescription_id=p.id, pharmacy_id=pharmacy.id, status="ready")
    with pytest.raises(ConflictError):
        PrescriptionService.update_fulfillment_status(prescription_id=p.id, pharmacy_id=pharmacy.id,
                                                      status="preparing")

    p = PrescriptionService.update_fulfillment_status(prescription_id=p.id, pharmacy_id=pharmacy.id,
                                                      status="delivered")
    assert p.status == PrescriptionStatus.DELIVERED
    assert p.fulfilled_at is not None

    with pytest.raises(ConflictError):
        PrescriptionService.update_fulfillment_status(prescription_id=p.id, pharmacy_id=pharmacy.id,
                                                      status="cancelled")

    assert Notification.objects.filter(user=patient, type=NotificationType.PRESCRIPTION_READY).count() == 1
    assert Notification.objects.filter(user=patient, type=NotificationType.PRESCRIPTION_DELIVERED).count() == 1


def test_unassigned_pharmacy_cannot_fulfill(prescription, pharmacy, pharmacy_b):
    PrescriptionService.claim_by_qr(qr_token=prescription.qr_token, pharmacy_id=pharmacy.id)
    with pytest.raises(AuthorizationError):
        PrescriptionService.update_fulfillment_status(
            prescription_id=prescription.id, pharmacy_id=pharmacy_b.id, status="preparing"
        )


def test_invalid_fulfillment_status(prescription, pharmacy):
    with pytest.raises(ValidationError):
        PrescriptionService.update_fulfillment_status(
            prescription_id=prescription.id, pharmacy_id=pharmacy.id, status="pending"
        )


def test_failed_notification_rolls_back_qr_claim(prescription, pharmacy, monkeypatch):
    from mc_core.notifications.services import NotificationService

    def boom(**kwargs):
        raise RuntimeError("notification insert failed")

    monkeypatch.setattr(NotificationService, "notify", staticmethod(boom))

    with pytest.raises(RuntimeError):
        PrescriptionService.claim_by_qr(qr_token=prescription.qr_token, pharmacy_id=pharmacy.id)

    prescription.refresh_from_db()
    assert prescription.pharmacy_id is None
    assert prescription.status == PrescriptionStatus.PENDING
