"""
Integration tests for the API endpoints.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from jobqueue.constants import JobStatus


class TestJobAPI:
    """Integration tests for job API endpoints."""

    @pytest_asyncio.fixture
    async def created_job(self, client: AsyncClient) -> dict:
        """Create a job for testing."""
        response = await client.post(
            "/jobs",
            json={"name": "resize", "payload": "image.png"},
        )
        return response.json()["job"]

    @pytest_asyncio.fixture
    async def running_job(self, client: AsyncClient, created_job: dict) -> dict:
        """Create and claim a job."""
        response = await client.post("/jobs/claim", json={"worker_id": "w1"})
        return response.json()["job"]

    async def test_create_job_success(self, client: AsyncClient):
        """Test successful job creation."""
        response = await client.post(
            "/jobs",
            json={"name": "  resize ", "payload": " image.png ", "max_retries": 5},
        )

        assert response.status_code == 201
        job = response.json()["job"]
        assert job["name"] == "resize"
        assert job["payload"] == "image.png"
        assert job["status"] == JobStatus.PENDING
        assert job["retry_count"] == 0
        assert job["max_retries"] == 5
        assert job["worker_id"] is None
        assert job["last_error"] is None

    async def test_create_job_default_retries(self, client: AsyncClient):
        response = await client.post("/jobs", json={"name": "resize", "payload": ""})

        assert response.status_code == 201
        assert response.json()["job"]["max_retries"] == 3

    async def test_create_job_empty_name(self, client: AsyncClient):
        response = await client.post("/jobs", json={"name": "   ", "payload": "x"})

        assert response.status_code == 400
        assert response.json() == {
            "error": "invalid_argument",
            "detail": "name cannot be empty.",
        }

    @pytest.mark.parametrize("max_retries", [True, "3", 2.5])
    async def test_create_job_non_integer_retries(self, client: AsyncClient, max_retries):
        """Test that max_retries must be a JSON integer, not a coercible value."""
        response = await client.post(
            "/jobs",
            json={"name": "resize", "payload": "", "max_retries": max_retries},
        )

        assert response.status_code == 422

        listed = await client.get("/jobs")
        assert listed.json()["jobs"] == []

    @pytest.mark.parametrize("max_retries", [-1, 65])
    async def test_create_job_invalid_retries(self, client: AsyncClient, max_retries: int):
        response = await client.post(
            "/jobs",
            json={"name": "resize", "payload": "", "max_retries": max_retries},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

        listed = await client.get("/jobs")
        assert listed.json()["jobs"] == []

    async def test_list_jobs(self, client: AsyncClient, created_job: dict):
        response = await client.get("/jobs")

        assert response.status_code == 200
        jobs = response.json()["jobs"]
        assert [job["id"] for job in jobs] == [created_job["id"]]

    async def test_get_job(self, client: AsyncClient, created_job: dict):
        response = await client.get(f"/jobs/{created_job['id']}")

        assert response.status_code == 200
        assert response.json()["job"] == created_job

    async def test_get_job_not_found(self, client: AsyncClient):
        response = await client.get("/jobs/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_claim_job(self, client: AsyncClient, created_job: dict):
        response = await client.post("/jobs/claim", json={"worker_id": " w1 "})

        assert response.status_code == 200
        job = response.json()["job"]
        assert job["id"] == created_job["id"]
        assert job["status"] == JobStatus.RUNNING
        assert job["worker_id"] == "w1"

    async def test_claim_empty_queue(self, client: AsyncClient):
        """Test that an empty queue answers with a null job, not an error."""
        response = await client.post("/jobs/claim", json={"worker_id": "w1"})

        assert response.status_code == 200
        assert response.json() == {"job": None}

    async def test_claim_empty_worker(self, client: AsyncClient, created_job: dict):
        response = await client.post("/jobs/claim", json={"worker_id": "  "})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

    async def test_report_success(self, client: AsyncClient, running_job: dict):
        response = await client.post(f"/jobs/{running_job['id']}/success")

        assert response.status_code == 200
        job = response.json()["job"]
        assert job["status"] == JobStatus.SUCCESS
        assert job["worker_id"] == "w1"
        assert job["last_error"] is None

    async def test_report_failure(self, client: AsyncClient, running_job: dict):
        response = await client.post(
            f"/jobs/{running_job['id']}/failure",
            json={"error": "boom"},
        )

        assert response.status_code == 200
        job = response.json()["job"]
        assert job["status"] == JobStatus.FAILURE
        assert job["last_error"] == "boom"
        assert job["retry_count"] == 0

    async def test_report_failure_empty_error(self, client: AsyncClient, running_job: dict):
        response = await client.post(
            f"/jobs/{running_job['id']}/failure",
            json={"error": ""},
        )

        assert response.status_code == 200
        assert response.json()["job"]["last_error"] == ""

    async def test_report_failure_requires_error_field(
        self,
        client: AsyncClient,
        running_job: dict,
    ):
        """Test that a body without an error field is rejected."""
        response = await client.post(f"/jobs/{running_job['id']}/failure", json={})

        assert response.status_code == 422

        job = await client.get(f"/jobs/{running_job['id']}")
        assert job.json()["job"]["status"] == JobStatus.RUNNING

    async def test_report_pending_job(self, client: AsyncClient, created_job: dict):
        response = await client.post(f"/jobs/{created_job['id']}/success")

        assert response.status_code == 400
        assert response.json() == {
            "error": "invalid_state",
            "detail": "Job is not running.",
        }

    async def test_report_twice(self, client: AsyncClient, running_job: dict):
        """Test that a finished job cannot be reported again."""
        first = await client.post(f"/jobs/{running_job['id']}/success")
        second = await client.post(
            f"/jobs/{running_job['id']}/failure",
            json={"error": "late"},
        )

        assert first.status_code == 200
        assert second.status_code == 400

        final = await client.get(f"/jobs/{running_job['id']}")
        assert final.json()["job"]["status"] == JobStatus.SUCCESS

    async def test_report_unknown_job(self, client: AsyncClient):
        response = await client.post("/jobs/missing/success")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_end_to_end(self, client: AsyncClient):
        """Test submit, claim, complete, then an empty queue."""
        created = await client.post("/jobs", json={"name": "j", "payload": "p"})
        job_id = created.json()["job"]["id"]

        claimed = await client.post("/jobs/claim", json={"worker_id": "w1"})
        assert claimed.json()["job"]["id"] == job_id

        done = await client.post(f"/jobs/{job_id}/success")
        assert done.json()["job"]["status"] == JobStatus.SUCCESS

        empty = await client.post("/jobs/claim", json={"worker_id": "w2"})
        assert empty.json() == {"job": None}


class TestHealthAPI:
    """Integration tests for health and metrics endpoints."""

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_ready(self, client: AsyncClient):
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"ready": True}

    async def test_live(self, client: AsyncClient):
        response = await client.get("/live")

        assert response.json() == {"alive": True}

    async def test_metrics(self, client: AsyncClient):
        """Test that job counters are exported after traffic."""
        await client.post("/jobs", json={"name": "j", "payload": "p"})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "jobs_submitted_total" in response.text
        assert "api_requests_total" in response.text
