"""HTTP tests for the jobs, directory and service report number endpoints."""

import aiosqlite
import pytest
from fastapi.testclient import TestClient

from main import app
from services import counter_service
from services.job_lifecycle import STANDARD_SAFETY_SENTENCE


@pytest.fixture
def client(db_path):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def site(client):
    client_id = client.post("/api/clients/", json={"name": "Acme Facilities"}).json()["id"]
    customer_id = client.post(
        f"/api/clients/{client_id}/customers", json={"name": "Harbour Mall"}).json()["id"]
    site_id = client.post(
        f"/api/clients/{client_id}/customers/{customer_id}/sites",
        json={"address": "12 Wharf Rd", "suburb": "Pyrmont",
              "state": "NSW", "postcode": "2009"}).json()["id"]
    technician_id = client.post(
        "/api/technicians/", json={"name": "Sam Ortiz"}).json()["id"]
    return {
        "client_id": client_id,
        "end_customer_id": customer_id,
        "site_id": site_id,
        "technician_id": technician_id,
    }


@pytest.fixture
def job(client, site):
    response = client.post("/api/jobs/", json={"title": "Roller door", **site})
    assert response.status_code == 201
    return response.json()["job"]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestJobsApi:

    def test_create_allocates_numbers(self, client, site):
        client.put("/api/service-report-number/", json={"next": 7})
        first = client.post("/api/jobs/", json={"title": "A", **site}).json()
        second = client.post("/api/jobs/", json={"title": "B", **site}).json()
        assert first["job"]["snpid"] == 7
        assert second["job"]["snpid"] == 8
        assert "7" in first["message"]
        assert client.get("/api/service-report-number/").json() == {"next": 9}

    def test_create_with_unknown_site(self, client, site):
        response = client.post("/api/jobs/", json={**site, "site_id": 999})
        assert response.status_code == 404

    def test_get_and_list(self, client, job):
        assert client.get(f"/api/jobs/{job['id']}").json()["snpid"] == job["snpid"]
        listed = client.get("/api/jobs/", params={"status": "open"}).json()
        assert [j["id"] for j in listed] == [job["id"]]
        assert client.get("/api/jobs/", params={"status": "closed"}).json() == []

    def test_search_by_site_address(self, client, job):
        listed = client.get("/api/jobs/", params={"search": "Wharf"}).json()
        assert len(listed) == 1
        assert client.get("/api/jobs/", params={"search": "nowhere"}).json() == []

    def test_missing_job(self, client):
        assert client.get("/api/jobs/999").status_code == 404

    def test_complete_via_put(self, client, job):
        response = client.put(f"/api/jobs/{job['id']}", json={
            "status": "completed",
            "action_taken": "Replaced fuse.",
            "parts": [{"description": "Labour", "qty": 1.2}],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["action_taken"] == "Replaced fuse.\n\n" + STANDARD_SAFETY_SENTENCE
        assert body["completed_date"] is not None
        assert body["parts_json"] == '[{"description": "Labour", "qty": 1.0}]'

    def test_amend_via_put_without_status(self, client, job):
        client.put(f"/api/jobs/{job['id']}/status", json={"status": "completed"})
        body = client.put(f"/api/jobs/{job['id']}", json={
            "action_taken": STANDARD_SAFETY_SENTENCE}).json()
        assert body["action_taken"] == STANDARD_SAFETY_SENTENCE
        assert body["status"] == "completed"

    def test_status_dropdown(self, client, job):
        done = client.put(f"/api/jobs/{job['id']}/status", json={"status": "completed"})
        assert done.json()["completed_date"] is not None
        reopened = client.put(f"/api/jobs/{job['id']}/status", json={"status": "pending"})
        assert reopened.json()["completed_date"] is None

    def test_invalid_status(self, client, job):
        response = client.put(f"/api/jobs/{job['id']}/status", json={"status": "archived"})
        assert response.status_code == 422
        assert client.get(f"/api/jobs/{job['id']}").json()["status"] == "pending"

    def test_empty_update(self, client, job):
        assert client.put(f"/api/jobs/{job['id']}", json={}).status_code == 400

    def test_negative_quantity(self, client, job):
        response = client.put(f"/api/jobs/{job['id']}", json={
            "parts": [{"description": "Fuse", "qty": -1}]})
        assert response.status_code == 422

    def test_delete(self, client, job):
        response = client.delete(f"/api/jobs/{job['id']}")
        assert response.json() == {"status": "ok", "soft_deleted": False}
        assert client.get(f"/api/jobs/{job['id']}").status_code == 404


class TestPartsApi:

    def test_add_adjust_remove(self, client, job):
        url = f"/api/jobs/{job['id']}/parts"
        client.post(url, json={"description": "Labour"})
        client.post(url, json={"description": "Fuse"})

        body = client.put(f"{url}/0", json={"adjust": "up"}).json()
        assert '"qty": 1.5' in body["parts_json"]

        body = client.put(f"{url}/1", json={"qty": 4}).json()
        assert '"qty": 4' in body["parts_json"]

        body = client.delete(f"{url}/0").json()
        assert body["parts_json"] == '[{"description": "Fuse", "qty": 4}]'

    def test_bad_index(self, client, job):
        response = client.put(f"/api/jobs/{job['id']}/parts/5", json={"qty": 1})
        assert response.status_code == 404

    def test_missing_edit(self, client, job):
        client.post(f"/api/jobs/{job['id']}/parts", json={"description": "Fuse"})
        response = client.put(f"/api/jobs/{job['id']}/parts/0", json={})
        assert response.status_code == 400


class TestServiceReportNumberApi:

    def test_fresh_counter(self, client):
        assert client.get("/api/service-report-number/").json() == {"next": 1}

    def test_cannot_move_back(self, client):
        client.put("/api/service-report-number/", json={"next": 50})
        response = client.put("/api/service-report-number/", json={"next": 10})
        assert response.status_code == 400
        assert client.get("/api/service-report-number/").json() == {"next": 50}


class TestDirectoryApi:

    def test_client_job_stats(self, client, job, site):
        stats = client.get(f"/api/clients/{site['client_id']}").json()["job_stats"]
        assert stats["total"] == 1
        assert stats["pending"] == 1

    def test_sites_have_full_address(self, client, site):
        sites = client.get(
            f"/api/clients/{site['client_id']}/customers/"
            f"{site['end_customer_id']}/sites").json()
        assert sites[0]["full_address"] == "12 Wharf Rd, Pyrmont, NSW, 2009"

    def test_site_change_does_not_touch_job_snapshot(self, client, job, site):
        client.put(
            f"/api/clients/{site['client_id']}/customers/"
            f"{site['end_customer_id']}/sites/{site['site_id']}",
            json={"address": "99 New St"})
        stored = client.get(f"/api/jobs/{job['id']}").json()
        assert stored["site_address"] == "12 Wharf Rd, Pyrmont, NSW, 2009"

    def test_technician_jobs(self, client, job, site):
        jobs = client.get(f"/api/technicians/{site['technician_id']}/jobs").json()
        assert [j["id"] for j in jobs] == [job["id"]]

    def test_deactivated_technician_hidden(self, client, site):
        client.delete(f"/api/technicians/{site['technician_id']}")
        assert client.get("/api/technicians/").json() == []
        everyone = client.get("/api/technicians/", params={"include_inactive": True}).json()
        assert len(everyone) == 1


class TestStatsApi:

    def test_dashboard_stats(self, client, job):
        client.put(f"/api/jobs/{job['id']}/status", json={"status": "completed"})
        stats = client.get("/api/jobs/stats").json()
        assert stats == {"total": 1, "pending": 0, "in_progress": 0,
                         "completed": 1, "clients": 1, "technicians": 1}

    def test_deleted_job_leaves_stats(self, client, job):
        client.delete(f"/api/jobs/{job['id']}")
        assert client.get("/api/jobs/stats").json()["total"] == 0

    def test_technician_stats(self, client, job, site):
        response = client.get(f"/api/technicians/{site['technician_id']}/stats")
        assert response.status_code == 200
        assert response.json()["pending"] == 1

    def test_unknown_technician_stats(self, client):
        assert client.get("/api/technicians/999/stats").status_code == 404


class TestRequestValidation:

    @pytest.mark.parametrize("limit", [0, -1])
    def test_list_limit_must_be_positive(self, client, limit):
        response = client.get("/api/jobs/", params={"limit": limit})
        assert response.status_code == 422

    def test_null_only_body_clears_fields(self, client, job):
        client.put(f"/api/jobs/{job['id']}", json={"arrival_time": "08:30"})
        response = client.put(f"/api/jobs/{job['id']}",
                              json={"technician_id": None, "arrival_time": None})
        assert response.status_code == 200
        body = response.json()
        assert body["technician_id"] is None
        assert body["technician_name"] is None
        assert body["arrival_time"] is None

    def test_busy_counter_read_is_503(self, client, monkeypatch):
        async def locked(conn, sql, params=()):
            raise aiosqlite.OperationalError("database is locked")

        monkeypatch.setattr(counter_service, "execute_one", locked)
        assert client.get("/api/service-report-number/").status_code == 503
