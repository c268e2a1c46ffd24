import pytest
from fastapi import status

from recruiter.core.exceptions import InvalidTransition
from recruiter.models.application import InterviewStatus


def application_payload(job_id, resume_url="http://testserver/api/resumes/1700000000000-abc123.pdf"):
    return {
        "job_id": job_id,
        "name": "Sam Lee",
        "email": "sam@example.com",
        "phone": "+44 20 7946 0000",
        "current_ctc": "50000",
        "expected_ctc": "60000",
        "resume_url": resume_url,
    }

def test_submit_application(client, job):
    response = client.post("/api/applications", json=application_payload(job.id))
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["interview_status"] == "none"
    assert data["shortlisted"] is False
    assert data["jd_match_score"] is None

def test_submit_application_missing_field(client, job):
    payload = application_payload(job.id)
    payload["phone"] = "  "
    response = client.post("/api/applications", json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["errors"][0]["msg"] == "All fields are required"

def test_submit_application_invalid_email(client, job):
    payload = application_payload(job.id)
    payload["email"] = "not-an-email"
    response = client.post("/api/applications", json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_submit_application_unknown_job(client):
    response = client.post("/api/applications", json=application_payload(4242))
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_list_applications_requires_admin(client, application):
    assert client.get("/api/applications").status_code == status.HTTP_401_UNAUTHORIZED

def test_list_applications_filtered_by_job(admin_client, repo, job, application):
    other = repo.create_job({"title": "Designer", "description": "Design things."})
    repo.create_application({**application_payload(other.id), "email": "other@example.com"})

    response = admin_client.get(f"/api/applications?job_id={job.id}")
    assert response.status_code == 200
    data = response.json()
    assert [a["id"] for a in data] == [application.id]

    assert len(admin_client.get("/api/applications").json()) == 2

def test_get_application(client, application):
    response = client.get(f"/api/applications/{application.id}")
    assert response.status_code == 200
    assert response.json()["name"] == "Jane Doe"

def test_admin_shortlist_toggle(admin_client, application):
    """Scenario C: admin flips shortlisted on and off; last write wins."""
    response = admin_client.patch(f"/api/applications/{application.id}", json={"shortlisted": True})
    assert response.status_code == 200
    assert response.json()["shortlisted"] is True

    response = admin_client.patch(f"/api/applications/{application.id}", json={"shortlisted": False})
    assert response.json()["shortlisted"] is False

def test_shortlist_requires_admin(client, application):
    response = client.patch(f"/api/applications/{application.id}", json={"shortlisted": True})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_interview_status_only_moves_forward(application):
    assert application.interview_status == InterviewStatus.none
    with pytest.raises(InvalidTransition):
        application.advance_interview_status(InterviewStatus.completed)

    application.advance_interview_status(InterviewStatus.eligible)
    with pytest.raises(InvalidTransition):
        application.advance_interview_status(InterviewStatus.rejected)
    with pytest.raises(InvalidTransition):
        application.advance_interview_status(InterviewStatus.eligible)

    application.advance_interview_status(InterviewStatus.completed)
    with pytest.raises(InvalidTransition):
        application.advance_interview_status(InterviewStatus.none)
