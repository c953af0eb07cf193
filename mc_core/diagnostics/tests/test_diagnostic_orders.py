from datetime import date

import pytest

from mc_core.common.errors import ConflictError, NotFoundError, ValidationError
from mc_core.diagnostics.models import DiagnosticOrderStatus
from mc_core.diagnostics.selectors import visible_orders
from mc_core.diagnostics.services import DiagnosticOrderService
from mc_core.notifications.models import Notification, NotificationType

pytestmark = pytest.mark.django_db


@pytest.fixture
def order(patient, gp_a, center_a, center_b):
    return DiagnosticOrderService.create_order(
        patient_id=patient.id,
        doctor_id=gp_a.id,
        test_types=["Complete Blood Count (CBC)", "Lipid Profile"],
        urgency="urgent",
    )


def test_unassigned_order_notifies_all_centers(order, patient, center_a, center_b):
    assert order.diagnostic_center_id is None
    assert order.status == DiagnosticOrderStatus.PENDING
    notified = set(
        Notification.objects.filter(type=NotificationType.DIAGNOSTIC_ORDER_REQUEST, entity_id=order.id)
        .values_list("user_id", flat=True)
    )
    assert notified == {center_a.id, center_b.id}
    assert Notification.objects.filter(user=patient, type=NotificationType.DIAGNOSTIC_ORDER_CREATED).count() == 1


def test_named_center_is_assigned_and_notified_alone(patient, gp_a, center_a, center_b):
    o = DiagnosticOrderService.create_order(
        patient_id=patient.id, doctor_id=gp_a.id, test_types=["X-Ray"], diagnostic_center_id=center_b.id
    )
    assert o.diagnostic_center_id == center_b.id
    assert set(
        Notification.objects.filter(type=NotificationType.DIAGNOSTIC_ORDER_REQUEST, entity_id=o.id)
        .values_list("user_id", flat=True)
    ) == {center_b.id}


def test_test_types_required(patient, gp_a):
    with pytest.raises(ValidationError):
        DiagnosticOrderService.create_order(patient_id=patient.id, doctor_id=gp_a.id, test_types=[" "])


def test_pharmacy_cannot_order(patient, pharmacy):
    with pytest.raises(NotFoundError):
        DiagnosticOrderService.create_order(patient_id=patient.id, doctor_id=pharmacy.id, test_types=["X-Ray"])


def test_first_center_claims_and_second_is_rejected(order, center_a, center_b, patient, gp_a):
    o = DiagnosticOrderService.update_status(
        order_id=order.id, center_id=center_a.id, status="scheduled", scheduled_date=date(2026, 11, 2)
    )
    assert o.diagnostic_center_id == center_a.id
    assert o.status == DiagnosticOrderStatus.SCHEDULED
    assert o.scheduled_at is not None

    with pytest.raises(ConflictError):
        DiagnosticOrderService.update_status(order_id=order.id, center_id=center_b.id, status="sample_collected")

    o.refresh_from_db()
    assert o.diagnostic_center_id == center_a.id
    assert Notification.objects.filter(user=patient, type=NotificationType.DIAGNOSTIC_ORDER_SCHEDULED).count() == 1
    assert Notification.objects.filter(user=gp_a, type=NotificationType.DIAGNOSTIC_ORDER_SCHEDULED).count() == 1


def test_schedule_requires_date(order, center_a):
    with pytest.raises(ValidationError) as exc:
        DiagnosticOrderService.update_status(order_id=order.id, center_id=center_a.id, status="scheduled")
    assert exc.value.details == {"field": "scheduled_date"}


def test_complete_requires_results_url(order, center_a):
    with pytest.raises(ValidationError):
        DiagnosticOrderService.update_status(order_id=order.id, center_id=center_a.id, status="completed")


def test_status_only_moves_forward(order, center_a):
    DiagnosticOrderService.update_status(order_id=order.id, center_id=center_a.id, status="in_progress")
    with pytest.raises(ConflictError):
        DiagnosticOrderService.update_status(
            order_id=order.id, center_id=center_a.id, status="scheduled", scheduled_date=date(2026, 11, 2)
        )

    o = DiagnosticOrderService.update_status(
        order_id=order.id, center_id=center_a.id, status="completed", results_url="https://results.example.com/1"
    )
    assert o.status == DiagnosticOrderStatus.COMPLETED
    assert o.completed_at is not None

    with pytest.raises(ConflictError):
        DiagnosticOrderService.update_status(order_id=order.id, center_id=center_a.id, status="cancelled")


def test_claimed_order_leaves_other_centers_pool(order, center_a, center_b):
    assert order.id in {o.id for o in visible_orders(user=center_b)}

    DiagnosticOrderService.update_status(order_id=order.id, center_id=center_a.id, status="sample_collected")

    assert order.id not in {o.id for o in visible_orders(user=center_b)}
    assert order.id in {o.id for o in visible_orders(user=center_a)}


def test_test_types_endpoint(patient, client_for):
    res = client_for(patient).get("/api/v1/diagnostic-orders/test-types/")
    assert res.status_code == 200
    assert "Lipid Profile" in res.json()["test_types"]


def test_center_updates_via_api(order, center_a, client_for):
    res = client_for(center_a).post(
        f"/api/v1/diagnostic-orders/{order.id}/update-status/",
        {"status": "scheduled", "scheduled_date": "2026-11-02", "scheduled_time": "09:30"},
        format="json",
    )
    assert res.status_code == 200
    assert res.json()["diagnostic_center_id"] == str(center_a.id)
    assert res.json()["scheduled_time"] == "09:30:00"


def test_failed_notification_rolls_back_claim(order, center_a, monkeypatch):
    from mc_core.notifications.services import NotificationService

    def boom(**kwargs):
        raise RuntimeError("notification insert failed")

    monkeypatch.setattr(NotificationService, "notify_many", staticmethod(boom))

    with pytest.raises(RuntimeError):
        DiagnosticOrderService.update_status(
            order_id=order.id, center_id=center_a.id, status="scheduled", scheduled_date=date(2026, 11, 2)
        )

    order.refresh_from_db()
    assert order.diagnostic_center_id is None
    assert order.status == DiagnosticOrderStatus.PENDING
    assert order.scheduled_date is None
