import pytest

pytestmark = pytest.mark.django_db


def _issue(client, consultation, patient):
    return client.post(
        "/api/v1/prescriptions/create/",
        {
            "consultation_id": str(consultation.id),
            "patient_id": str(patient.id),
            "medications": [{"name": "Cetirizine", "dosage": "10mg", "frequency": "daily", "duration": "14 days"}],
        },
        format="json",
    )


def test_issue_and_fetch(accepted_consultation, patient, gp_a, client_for):
    res = _issue(client_for(gp_a), accepted_consultation, patient)
    assert res.status_code == 200
    pid = res.json()["id"]
    assert res.json()["qr_token"]

    fetched = client_for(patient).get(f"/api/v1/prescriptions/{pid}/")
    assert fetched.status_code == 200
    assert fetched.json()["medications"][0]["name"] == "Cetirizine"


def test_claim_qr_reports_claimed_flag(accepted_consultation, patient, gp_a, pharmacy, client_for):
    token = _issue(client_for(gp_a), accepted_consultation, patient).json()["qr_token"]
    c = client_for(pharmacy)

    first = c.post("/api/v1/prescriptions/claim-qr/", {"qr_token": token}, format="json")
    second = c.post("/api/v1/prescriptions/claim-qr/", {"qr_token": token}, format="json")

    assert first.status_code == second.status_code == 200
    assert first.json()["claimed"] is True
    assert second.json()["claimed"] is False
    assert second.json()["prescription"]["pharmacy_id"] == str(pharmacy.id)


def test_other_pharmacy_claim_is_rejected_as_conflict(accepted_consultation, patient, gp_a, pharmacy, pharmacy_b, client_for):
    token = _issue(client_for(gp_a), accepted_consultation, patient).json()["qr_token"]
    client_for(pharmacy).post("/api/v1/prescriptions/claim-qr/", {"qr_token": token}, format="json")

    res = client_for(pharmacy_b).post("/api/v1/prescriptions/claim-qr/", {"qr_token": token}, format="json")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "conflict"


def test_patient_cannot_issue(accepted_consultation, patient, client_for):
    res = _issue(client_for(patient), accepted_consultation, patient)
    assert res.status_code == 403
