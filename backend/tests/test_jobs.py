from datetime import timedelta

from jobboard.config import settings
from jobboard.models.job import Job
from jobboard.utils.timestamps import format_timestamp, utc_now

JOBS = "/api/v1/jobs"


def _in(delta: timedelta) -> str:
    return format_timestamp(utc_now() + delta)


class TestJobsCRUD:
    def test_create_job_without_date(self, client, upstream):
        r = client.post(JOBS, json={"title": "Pressure washing", "customer_name": "Lee Park"})
        assert r.status_code == 201
        data = r.json()
        assert data["job"]["title"] == "Pressure washing"
        assert data["job"]["status"] == "pending"
        assert data["job"]["reminder_status"] == "pending"
        assert data["notification"]["reason"] == "no_scheduled_date"
        assert upstream.requests == []

    def test_create_job_with_services_and_assignees(self, client, make_user):
        worker = make_user("Maria Lopez")
        r = client.post(JOBS, json={
            "title": "Deck staining",
            "price": 480.0,
            "assigned_users": [worker],
            "services": [
                {"service_name": "Sanding", "price": 180.0, "duration": 120},
                {"service_name": "Staining", "price": 300.0},
            ],
        })
        assert r.status_code == 201
        job = r.json()["job"]
        assert job["assigned_users"] == [worker]
        assert sorted(s["service_name"] for s in job["services"]) == ["Sanding", "Staining"]

    def test_unknown_assignee_is_rejected(self, client):
        r = client.post(JOBS, json={"title": "Deck staining", "assigned_users": ["ghost"]})
        assert r.status_code == 400
        assert "ghost" in r.json()["error"]

    def test_invalid_status_is_rejected(self, client):
        r = client.post(JOBS, json={"title": "Deck staining", "status": "archived"})
        assert r.status_code == 400

    def test_invalid_scheduled_date_is_rejected(self, client):
        r = client.post(JOBS, json={"title": "Deck staining", "scheduled_date": "next tuesday"})
        assert r.status_code == 400

    def test_scheduled_date_is_normalized(self, client):
        r = client.post(JOBS, json={"title": "Deck staining",
                                    "scheduled_date": "2031-05-01T09:30:00-05:00"})
        assert r.status_code == 201
        assert r.json()["job"]["scheduled_date"] == "2031-05-01T14:30:00Z"

    def test_get_job(self, client, make_job):
        job_id = make_job(title="Lawn care")
        r = client.get(f"{JOBS}/{job_id}")
        assert r.status_code == 200
        assert r.json()["title"] == "Lawn care"

    def test_get_missing_job(self, client):
        r = client.get(f"{JOBS}/nope")
        assert r.status_code == 404
        assert r.json()["error"] == "Job not found"

    def test_update_job(self, client, make_job):
        job_id = make_job(title="Old Title")
        r = client.put(f"{JOBS}/{job_id}", json={"title": "New Title", "status": "confirmed"})
        assert r.status_code == 200
        job = r.json()["job"]
        assert job["title"] == "New Title"
        assert job["status"] == "confirmed"

    def test_update_rejects_null_for_required_fields(self, client, db, make_job):
        job_id = make_job(title="Keep me", status="confirmed")
        for field in ("title", "status", "is_recurring", "first_time"):
            r = client.put(f"{JOBS}/{job_id}", json={field: None})
            assert r.status_code == 400, field
            assert field in r.json()["error"]

        db.expire_all()
        job = db.query(Job).filter(Job.id == job_id).one()
        assert job.title == "Keep me"
        assert job.status == "confirmed"

    def test_update_rejects_blank_title(self, client, make_job):
        job_id = make_job()
        r = client.put(f"{JOBS}/{job_id}", json={"title": ""})
        assert r.status_code == 400

    def test_unknown_quoted_by_is_rejected(self, client, db, make_job):
        r = client.post(JOBS, json={"title": "Deck staining", "quoted_by": "ghost"})
        assert r.status_code == 400
        assert r.json() == {"error": "Unknown user id for quoted_by: ghost"}
        assert db.query(Job).count() == 0

        job_id = make_job()
        r = client.put(f"{JOBS}/{job_id}", json={"quoted_by": "ghost"})
        assert r.status_code == 400

    def test_known_quoted_by_is_stored(self, client, make_user):
        pat = make_user("Pat Quinn", role="admin")
        r = client.post(JOBS, json={"title": "Deck staining", "quoted_by": pat})
        assert r.status_code == 201
        assert r.json()["job"]["quoted_by"] == pat

    def test_assign_user(self, client, make_job, make_user):
        job_id = make_job()
        worker = make_user("Sam Ortiz")
        r = client.post(f"{JOBS}/{job_id}/assignments", json={"user_id": worker})
        assert r.status_code == 201
        assert r.json()["assigned_users"] == [worker]

        r = client.post(f"{JOBS}/{job_id}/assignments", json={"user_id": "nobody"})
        assert r.status_code == 404


class TestJobList:
    def test_filter_by_status(self, client, make_job):
        make_job(status="pending")
        make_job(status="completed")
        r = client.get(f"{JOBS}?status=completed")
        assert r.json()["total"] == 1
        assert r.json()["jobs"][0]["status"] == "completed"

    def test_filter_by_date_range(self, client, make_job):
        make_job(title="Early", scheduled_date="2030-01-05T10:00:00Z")
        make_job(title="Late", scheduled_date="2030-02-05T10:00:00Z")
        r = client.get(JOBS, params={"scheduled_from": "2030-01-01", "scheduled_to": "2030-01-31"})
        assert [j["title"] for j in r.json()["jobs"]] == ["Early"]

    def test_bad_date_filter(self, client):
        r = client.get(JOBS, params={"scheduled_from": "soon"})
        assert r.status_code == 400

    def test_pagination_orders_by_date(self, client, make_job):
        for day in range(1, 6):
            make_job(title=f"Job {day}", scheduled_date=f"2030-03-0{day}T10:00:00Z")
        make_job(title="Undated")

        r = client.get(JOBS, params={"page": 2, "per_page": 2})
        data = r.json()
        assert data["total"] == 6
        assert [j["title"] for j in data["jobs"]] == ["Job 3", "Job 4"]

        r = client.get(JOBS, params={"page": 3, "per_page": 2})
        assert [j["title"] for j in r.json()["jobs"]] == ["Job 5", "Undated"]


class TestReminderHooks:
    def test_create_inside_window_sends_immediately(self, client, upstream):
        r = client.post(JOBS, json={"title": "Gutter repair",
                                    "scheduled_date": _in(timedelta(minutes=30))})
        assert r.status_code == 201
        data = r.json()
        assert data["notification"]["message"] == "Immediate notification sent successfully"
        assert data["job"]["reminder_status"] == "sent"
        assert data["job"]["webhook_sent_at"] is not None
        assert len(upstream.sent_to(settings.reminder_webhook_url)) == 1

    def test_create_outside_window_is_deferred(self, client, upstream):
        r = client.post(JOBS, json={"title": "Gutter repair",
                                    "scheduled_date": _in(timedelta(days=3))})
        data = r.json()
        assert "notification_time" in data["notification"]
        assert data["job"]["webhook_sent_at"] is None
        assert upstream.requests == []

    def test_create_survives_webhook_failure(self, client, db, upstream):
        upstream.route(settings.reminder_webhook_url, status_code=500)
        r = client.post(JOBS, json={"title": "Gutter repair",
                                    "scheduled_date": _in(timedelta(minutes=30))})
        assert r.status_code == 201
        data = r.json()
        assert data["notification"]["error"] == "Failed to send webhook notification"
        assert data["notification"]["webhook_status"] == 500
        assert data["job"]["reminder_status"] == "pending"
        assert db.query(Job).count() == 1

    def test_moving_job_into_window_sends(self, client, upstream, make_job):
        job_id = make_job(scheduled_in=timedelta(days=5))
        r = client.put(f"{JOBS}/{job_id}", json={"scheduled_date": _in(timedelta(minutes=45))})
        assert r.json()["notification"]["message"] == "Immediate notification sent successfully"
        assert len(upstream.sent_to(settings.reminder_webhook_url)) == 1

    def test_reschedule_does_not_reset_marker(self, client, upstream, make_job):
        sent_at = format_timestamp(utc_now() - timedelta(hours=2))
        job_id = make_job(scheduled_in=timedelta(minutes=20), webhook_sent_at=sent_at)

        r = client.put(f"{JOBS}/{job_id}", json={"scheduled_date": _in(timedelta(minutes=40))})
        data = r.json()
        assert data["notification"]["reason"] == "already_notified"
        assert data["job"]["webhook_sent_at"] == sent_at
        assert upstream.requests == []


class TestSweepOverdue:
    def test_moves_past_open_jobs_to_service_due(self, client, db, make_job):
        overdue = make_job(scheduled_in=timedelta(days=-2), status="pending")
        confirmed = make_job(scheduled_in=timedelta(days=-1), status="confirmed")
        finished = make_job(scheduled_in=timedelta(days=-3), status="completed")
        future = make_job(scheduled_in=timedelta(days=3), status="pending")

        r = client.post(f"{JOBS}/sweep-overdue")
        assert r.status_code == 200
        assert r.json() == {"updated": 2}

        db.expire_all()
        statuses = {j.id: j.status for j in db.query(Job).all()}
        assert statuses[overdue] == "service_due"
        assert statuses[confirmed] == "service_due"
        assert statuses[finished] == "completed"
        assert statuses[future] == "pending"
