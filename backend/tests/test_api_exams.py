"""
Tests d'intégration API pour les examens et leurs résultats.
"""

import uuid
from datetime import date
from unittest.mock import patch

from sathipasala.exceptions import DomainValidationError, DuplicateError, NotFoundError
from sathipasala.schemas.exam import ExamResponse, ExamResultResponse


def make_exam_response(**kwargs) -> ExamResponse:
    return ExamResponse(
        id=kwargs.get("id", uuid.uuid4()),
        title={"en": "Dhamma Quiz", "si": "ධර්ම ප්‍රශ්න"},
        date=date(2024, 6, 2),
        age_group="7-10",
        exam_type=kwargs.get("exam_type", "written"),
        max_score=100,
        pass_mark=40,
        created_at=None,
        updated_at=None,
    )


def make_result_response(total=75.0, passed=True) -> ExamResultResponse:
    return ExamResultResponse(
        id=uuid.uuid4(),
        exam_id=uuid.uuid4(),
        student_id=uuid.uuid4(),
        written_score=total,
        oral_score=0,
        total_score=total,
        passed=passed,
        remarks={},
        created_at=None,
        updated_at=None,
    )


def exam_payload(**overrides):
    payload = {
        "title": {"en": "Dhamma Quiz", "si": "ධර්ම ප්‍රශ්න"},
        "date": "2024-06-02",
        "age_group": "7-10",
        "max_score": 100,
        "pass_mark": 40,
    }
    payload.update(overrides)
    return payload


# ============================================================
# Examens
# ============================================================

def test_create_exam_succes(client):
    with patch("sathipasala.routers.exams.exam_service.create_exam", return_value=make_exam_response()):
        response = client.post("/api/exams", json=exam_payload())
    assert response.status_code == 201
    assert response.json()["data"]["exam_type"] == "written"


def test_create_exam_note_de_passage_trop_haute(client):
    response = client.post("/api/exams", json=exam_payload(pass_mark=120))
    assert response.status_code == 422
    assert response.json()["success"] is False


def test_list_exams_par_tranche(client):
    with patch("sathipasala.routers.exams.exam_service.get_exams", return_value=[make_exam_response()]) as mock:
        response = client.get("/api/exams?age_group=7-10")
    assert response.status_code == 200
    assert len(response.json()["data"]) == 1
    assert mock.call_args[0][1] == "7-10"


def test_get_exam_introuvable(client):
    with patch("sathipasala.routers.exams.exam_service.get_exam", return_value=None):
        response = client.get(f"/api/exams/{uuid.uuid4()}")
    assert response.status_code == 404


def test_update_exam_incoherent(client):
    with patch("sathipasala.routers.exams.exam_service.update_exam") as mock:
        mock.side_effect = DomainValidationError("La note de passage doit être comprise entre 0 et le score maximum.")
        response = client.put(f"/api/exams/{uuid.uuid4()}", json={"max_score": 10})
    assert response.status_code == 422


def test_delete_exam(client):
    with patch("sathipasala.routers.exams.exam_service.delete_exam", return_value=True):
        response = client.delete(f"/api/exams/{uuid.uuid4()}")
    assert response.status_code == 200


# ============================================================
# Résultats
# ============================================================

def test_create_result_succes(client):
    with patch("sathipasala.routers.exams.exam_service.create_result", return_value=make_result_response()):
        response = client.post(f"/api/exams/{uuid.uuid4()}/results", json={
            "student_id": str(uuid.uuid4()),
            "written_score": 75,
        })
    assert response.status_code == 201
    assert response.json()["data"]["passed"] is True


def test_create_result_doublon_409(client):
    with patch("sathipasala.routers.exams.exam_service.create_result") as mock:
        mock.side_effect = DuplicateError("Un résultat existe déjà pour cet élève à cet examen. Utilisez la mise à jour.")
        response = client.post(f"/api/exams/{uuid.uuid4()}/results", json={"student_id": str(uuid.uuid4())})

    assert response.status_code == 409
    assert "mise à jour" in response.json()["message"]


def test_create_result_examen_introuvable(client):
    with patch("sathipasala.routers.exams.exam_service.create_result") as mock:
        mock.side_effect = NotFoundError("Examen introuvable.")
        response = client.post(f"/api/exams/{uuid.uuid4()}/results", json={"student_id": str(uuid.uuid4())})
    assert response.status_code == 404


def test_create_result_score_negatif(client):
    response = client.post(f"/api/exams/{uuid.uuid4()}/results", json={
        "student_id": str(uuid.uuid4()),
        "oral_score": -5,
    })
    assert response.status_code == 422


def test_list_results(client):
    results = [make_result_response(90), make_result_response(30, passed=False)]
    with patch("sathipasala.routers.exams.exam_service.get_results", return_value=results):
        response = client.get(f"/api/exams/{uuid.uuid4()}/results")
    assert [r["passed"] for r in response.json()["data"]] == [True, False]


def test_update_result_succes(client):
    with patch("sathipasala.routers.exams.exam_service.update_result", return_value=make_result_response(55)):
        response = client.put(f"/api/exams/{uuid.uuid4()}/results/{uuid.uuid4()}", json={"written_score": 55})
    assert response.status_code == 200
    assert response.json()["data"]["total_score"] == 55


def test_update_result_absent(client):
    with patch("sathipasala.routers.exams.exam_service.update_result", return_value=None):
        response = client.put(f"/api/exams/{uuid.uuid4()}/results/{uuid.uuid4()}", json={"written_score": 55})
    assert response.status_code == 404
