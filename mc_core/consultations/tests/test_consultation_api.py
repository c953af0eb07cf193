import pytest

from mc_core.consultations.models import ConsultationStatus

pytestmark = pytest.mark.django_db


def test_patient_creates_and_gp_accepts(patient, gp_a, client_for):
    res = client_for(patient).post(
        "/api/v1/consultations/",
        {"provider_type": "gp", "chief_complaint": "Sore throat", "urgency": "urgent"},
        format="json",
    )
    assert res.status_code == 201
    consultation_id = res.json()["id"]
    assert res.json()["patient_id"] == str(patient.id)

    # the open pool is visible to every GP before acceptance
    pool = client_for(gp_a).get("/api/v1/consultations/", {"status": "pending"})
    assert [row["id"] for row in pool.json()["results"]] == [consultation_id]

    res = client_for(gp_a).post(f"/api/v1/consultations/{consultation_id}/action/", {"action": "accept"}, format="json")
    assert res.status_code == 200
    assert res.json()["status"] == ConsultationStatus.ACCEPTED
    assert res.json()["provider_name"] == gp_a.name


def test_second_accept_returns_400_conflict(patient, gp_a, gp_b, client_for):
    res = client_for(patient).post(
        "/api/v1/consultations/", {"provider_type": "gp", "chief_complaint": "Fever"}, format="json"
    )
    cid = res.json()["id"]

    client_for(gp_a).post(f"/api/v1/consultations/{cid}/action/", {"action": "accept"}, format="json")
    res = client_for(gp_b).post(f"/api/v1/consultations/{cid}/action/", {"action": "accept"}, format="json")

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "conflict"


def test_patient_cannot_create_for_someone_else(patient, make_user, client_for):
    other = make_user()
    res = client_for(patient).post(
        "/api/v1/consultations/",
        {"patient_id": str(other.id), "provider_type": "gp", "chief_complaint": "Fever"},
        format="json",
    )
    assert res.status_code == 403


def test_pharmacy_cannot_list_consultations(pharmacy, client_for):
    assert client_for(pharmacy).get("/api/v1/consultations/").status_code == 403


def test_other_gp_cannot_see_accepted_consultation(accepted_consultation, gp_b, client_for):
    res = client_for(gp_b).get(f"/api/v1/consultations/{accepted_consultation.id}/")
    assert res.status_code == 403


def test_unknown_consultation_is_404(gp_a, client_for):
    res = client_for(gp_a).post(
        "/api/v1/consultations/00000000-0000-0000-0000-000000000000/action/", {"action": "accept"}, format="json"
    )
    assert res.status_code == 404
