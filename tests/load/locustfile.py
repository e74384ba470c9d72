"""
Locust load testing for the job queue API.

Run with:
    locust -f tests/load/locustfile.py --host=http://localhost:7878

Or headless:
    locust -f tests/load/locustfile.py --host=http://localhost:7878 \
        --headless -u 100 -r 10 --run-time 5m
"""

import random
import uuid

from locust import HttpUser, between, task

JOB_NAMES = ["resize", "transcode", "report", "notify"]


class SubmitterUser(HttpUser):
    """
    Simulated producer.

    Submits jobs and polls the ones it created.
    """

    wait_time = between(0.5, 2)

    def on_start(self):
        """Called when a user starts."""
        self.created_job_ids: list[str] = []

    @task(10)
    def submit_job(self):
        """Submit a new job."""
        response = self.client.post(
            "/jobs",
            json={
                "name": random.choice(JOB_NAMES),
                "payload": f"load-test-{uuid.uuid4().hex[:8]}",
                "max_retries": random.randint(0, 5),
            },
            name="/jobs [POST]",
        )

        if response.status_code == 201:
            job_id = response.json()["job"]["id"]
            self.created_job_ids.append(job_id)
            # Keep only recent job IDs
            if len(self.created_job_ids) > 100:
                self.created_job_ids = self.created_job_ids[-100:]

    @task(5)
    def get_job_status(self):
        """Check status of a previously created job."""
        if not self.created_job_ids:
            return

        job_id = random.choice(self.created_job_ids)
        self.client.get(f"/jobs/{job_id}", name="/jobs/{job_id} [GET]")

    @task(1)
    def health_check(self):
        """Check API health."""
        self.client.get("/health", name="/health [GET]")


class WorkerUser(HttpUser):
    """
    Simulated worker.

    Claims the oldest job and reports an outcome. Any claim that hands out
    a job this process already saw means two workers shared it.
    """

    wait_time = between(0.1, 0.5)
    seen_job_ids: set[str] = set()

    def on_start(self):
        """Called when a user starts."""
        self.worker_id = f"load-worker-{uuid.uuid4().hex[:8]}"

    @task
    def claim_and_report(self):
        """Claim a job and report success or failure."""
        with self.client.post(
            "/jobs/claim",
            json={"worker_id": self.worker_id},
            name="/jobs/claim [POST]",
            catch_response=True,
        ) as response:
            if response.status_code != 200:
                response.failure(f"Claim failed with {response.status_code}")
                return

            job = response.json()["job"]
            if job is None:
                response.success()
                return

            if job["id"] in self.seen_job_ids:
                response.failure("Job claimed twice!")
                return
            self.seen_job_ids.add(job["id"])
            response.success()

        if random.random() < 0.9:
            self.client.post(
                f"/jobs/{job['id']}/success",
                name="/jobs/{job_id}/success [POST]",
            )
        else:
            self.client.post(
                f"/jobs/{job['id']}/failure",
                json={"error": "simulated failure"},
                name="/jobs/{job_id}/failure [POST]",
            )
