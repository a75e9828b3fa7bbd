"""End-to-end tests for the HTTP surface, backed by a temporary SQLite file."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from hirescreen.database import Base, SessionLocal, engine
from hirescreen.main import app
from hirescreen.models import Candidate
from hirescreen.resume_parser import extract_facts
from hirescreen.schemas import CandidateFacts

RESUMES = {
    "ada": "Ada Lovelace\nada@example.com\nJavaScript and React engineer, 5 years of experience\nBachelor of Science",
    "bob": "Bob Stone\nbob@example.com\nPython developer with 1 year of experience",
    "cy": "Cy Young\ncy@example.com\nJavaScript developer, 2 years of experience",
}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def job_id(client):
    response = client.post("/jobs", json={
        "title": "Frontend Engineer",
        "description": "Build web interfaces",
        "requirements": ["Bachelor degree", "React experience"],
        "skills": ["JavaScript", "React"],
        "preferred_skills": ["TypeScript"],
        "experience_min": 3,
        "experience_max": 8,
        "location": "Remote",
    })
    assert response.status_code == 201
    return response.json()["id"]


def upload(client, job_id, key, **form):
    with patch("hirescreen.job_service.parse_document", return_value=extract_facts(RESUMES[key])):
        return client.post(
            f"/jobs/{job_id}/resumes",
            files={"file": (f"{key}.pdf", b"%PDF-1.4 fake", "application/pdf")},
            data=form,
        )


def test_health(client):
    assert client.get("/").json()["status"] == "running"


def test_get_job(client, job_id):
    body = client.get(f"/jobs/{job_id}").json()
    assert body["skills"] == ["JavaScript", "React"]
    assert body["experience"] == {"min": 3, "max": 8}


def test_job_skills_use_vocabulary_spelling(client):
    response = client.post("/jobs", json={
        "title": "Backend Engineer",
        "skills": ["javascript", " NODE.JS ", "FastAPI", "JavaScript"],
        "preferred_skills": ["docker"],
    })

    assert response.json()["skills"] == ["JavaScript", "Node.js", "FastAPI"]
    assert response.json()["preferred_skills"] == ["Docker"]


def test_unknown_job(client):
    assert client.get("/jobs/999").status_code == 404


class TestUpload:
    def test_extracted_contact_details(self, client, job_id):
        response = upload(client, job_id, "ada")

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "ada@example.com"
        assert body["skills"] == ["JavaScript", "React", "Java"]
        assert body["experience"] == 5
        assert body["status"] == "new"
        assert body["data_source"] == "auto"

    def test_manual_fields_when_extraction_fails(self, client, job_id):
        with patch("hirescreen.job_service.parse_document", return_value=CandidateFacts.empty()):
            response = client.post(
                f"/jobs/{job_id}/resumes",
                files={"file": ("scan.pdf", b"%PDF", "application/pdf")},
                data={"email": "Manual@Example.com", "phone": "555-0100"},
            )

        assert response.status_code == 201
        assert response.json()["email"] == "manual@example.com"
        assert response.json()["data_source"] == "manual"

    def test_missing_email(self, client, job_id):
        with patch("hirescreen.job_service.parse_document", return_value=CandidateFacts.empty()):
            response = client.post(
                f"/jobs/{job_id}/resumes",
                files={"file": ("scan.pdf", b"%PDF", "application/pdf")},
            )
        assert response.status_code == 400

    def test_unsupported_type(self, client, job_id):
        response = client.post(
            f"/jobs/{job_id}/resumes",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400

    def test_corrupt_pdf_with_manual_email(self, client, job_id):
        response = client.post(
            f"/jobs/{job_id}/resumes",
            files={"file": ("broken.pdf", b"not really a pdf", "application/pdf")},
            data={"email": "broken@example.com"},
        )
        assert response.status_code == 201
        assert response.json()["skills"] == []


class TestScreening:
    def test_single_screen(self, client, job_id):
        candidate_id = upload(client, job_id, "cy").json()["id"]

        response = client.post(f"/screening/candidates/{candidate_id}")

        assert response.status_code == 200
        results = response.json()["screening_results"]
        assert results["matched_keywords"] == ["javascript"]
        assert results["missing_keywords"] == ["react"]
        assert results["skills_match"] == 50
        assert results["experience_match"] == 67
        assert results["overall_score"] == 57
        assert results["screening_notes"]
        candidate = response.json()["candidate"]
        assert candidate["status"] == "screened"
        assert [h["status"] for h in candidate["status_history"]] == ["new", "screened"]

    def test_single_screen_of_corrupt_record_scores_zero(self, client, job_id):
        candidate_id = upload(client, job_id, "cy").json()["id"]
        with SessionLocal() as db:
            db.get(Candidate, candidate_id).skills = "not-a-list"
            db.commit()

        response = client.post(f"/screening/candidates/{candidate_id}")

        assert response.status_code == 200
        results = response.json()["screening_results"]
        assert results["overall_score"] == 0
        assert results["skills_match"] == 0
        assert results["missing_keywords"] == ["JavaScript", "React"]
        assert response.json()["candidate"]["status"] == "screened"

    def test_rescreen_keeps_shortlisted_status(self, client, job_id):
        candidate_id = upload(client, job_id, "cy").json()["id"]
        client.put(f"/candidates/{candidate_id}/status", json={"status": "shortlisted"})

        candidate = client.post(f"/screening/candidates/{candidate_id}").json()["candidate"]

        assert candidate["status"] == "shortlisted"
        assert candidate["score"] == 57

    def test_bulk_screen(self, client, job_id):
        ids = [upload(client, job_id, key).json()["id"] for key in RESUMES]

        body = client.post(f"/screening/jobs/{job_id}").json()

        assert body["attempted"] == 3
        assert body["succeeded"] == 3
        assert body["failed"] == 0
        assert sorted(o["candidate_id"] for o in body["outcomes"]) == sorted(ids)

        again = client.post(f"/screening/jobs/{job_id}").json()
        assert again["attempted"] == 0

    def test_bulk_screen_reports_corrupt_record(self, client, job_id):
        good = upload(client, job_id, "ada").json()["id"]
        bad = upload(client, job_id, "bob").json()["id"]

        with SessionLocal() as db:
            db.get(Candidate, bad).skills = "not-a-list"
            db.commit()

        body = client.post(f"/screening/jobs/{job_id}").json()

        outcomes = {o["candidate_id"]: o for o in body["outcomes"]}
        assert outcomes[good]["succeeded"] is True
        assert outcomes[bad]["succeeded"] is False
        assert body["message"] == "Screening completed. Processed 1 out of 2 resumes."

    def test_ranking(self, client, job_id):
        for key in RESUMES:
            upload(client, job_id, key)

        ranking = client.get(f"/jobs/{job_id}/ranking").json()

        assert [r["email"] for r in ranking][0] == "ada@example.com"
        scores = [r["overall_score"] for r in ranking]
        assert scores == sorted(scores, reverse=True)
        assert ranking[0]["match_scores"]["policy"] == "ranking"

    def test_skill_gap(self, client, job_id):
        candidate_id = upload(client, job_id, "cy").json()["id"]

        body = client.get(f"/candidates/{candidate_id}/skill-gap").json()

        assert body["score"] == 35
        assert [s["priority"] for s in body["suggestions"]] == ["critical", "medium", "medium"]


class TestLifecycleRoutes:
    def test_invalid_status(self, client, job_id):
        candidate_id = upload(client, job_id, "ada").json()["id"]

        response = client.put(f"/candidates/{candidate_id}/status", json={"status": "promoted"})

        assert response.status_code == 400

    def test_status_change_logs_communication(self, client, job_id):
        candidate_id = upload(client, job_id, "ada").json()["id"]

        body = client.put(
            f"/candidates/{candidate_id}/status",
            json={"status": "interview", "reason": "Great fit", "feedback": "Tuesday 10am"},
        ).json()

        assert body["status"] == "interview"
        assert body["status_history"][-1]["reason"] == "Great fit"
        assert body["communications"][-1]["type"] == "status_update"

    def test_notes(self, client, job_id):
        candidate_id = upload(client, job_id, "ada").json()["id"]

        client.post(f"/candidates/{candidate_id}/notes", json={"content": "Call back", "author": "kim"})
        body = client.post(f"/candidates/{candidate_id}/notes", json={"content": "Sent test"}).json()

        assert [n["content"] for n in body["notes"]] == ["Call back", "Sent test"]
        assert client.post(f"/candidates/{candidate_id}/notes", json={"content": ""}).status_code == 400

    def test_pipeline_stats(self, client, job_id):
        for key in RESUMES:
            upload(client, job_id, key)
        client.post(f"/screening/jobs/{job_id}")

        stats = client.get(f"/jobs/{job_id}/pipeline-stats").json()

        assert stats["total"] == 3
        assert stats["screened"] == 3
        assert stats["conversion_rates"]["screened"] == 100.0

    def test_unknown_candidate(self, client):
        assert client.post("/screening/candidates/424242").status_code == 404
