"""
Dashboards, email sending and tracking, background jobs
"""
from httpx import AsyncClient


async def _send(client: AsyncClient, employer_id: str, candidate_id: str, **overrides) -> dict:
    response = await client.post("/api/v1/analytics/emails/send", json={
        "employer_id": employer_id,
        "candidate_id": candidate_id,
        "subject": "Hello {{candidate_name}}",
        "body_html": "<p>{{company_name}} would like to talk.</p>",
        **overrides
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def test_send_and_track(client: AsyncClient, factory):
    employer = await factory.create_employer()
    candidate = await factory.create_candidate(full_name="Omar Saleh")

    email = await _send(client, employer["id"], candidate["id"])
    assert email["subject"] == "Hello Omar Saleh"
    assert email["opened_at"] is None
    tracking_id = email["tracking_id"]

    response = await client.get(f"/api/v1/analytics/track/open/{tracking_id}")
    assert response.json()["data"]["open_count"] == 1
    response = await client.get(f"/api/v1/analytics/track/open/{tracking_id}")
    assert response.json()["data"]["open_count"] == 2

    response = await client.get(
        f"/api/v1/analytics/track/click/{tracking_id}", params={"url": "https://jobs.example.com/1"}
    )
    data = response.json()["data"]
    assert data["click_count"] == 1
    assert data["redirect_url"] == "https://jobs.example.com/1"

    response = await client.post(f"/api/v1/analytics/track/reply/{tracking_id}")
    assert response.json()["data"]["replied_at"] is not None

    # repeat opens are not credited twice
    response = await client.get(f"/api/v1/engagement/{employer['id']}/candidates/{candidate['id']}")
    engagement = response.json()["data"]
    assert engagement["total_emails_sent"] == 1
    assert engagement["total_emails_opened"] == 1
    assert engagement["total_links_clicked"] == 1
    assert engagement["total_responses"] == 1
    assert engagement["engagement_score"] == 100

    response = await client.get(f"/api/v1/analytics/employers/{employer['id']}/emails")
    stats = response.json()["data"]
    assert stats["sent"] == 1
    assert stats["open_rate"] == 100.0
    assert stats["reply_rate"] == 100.0
    assert stats["by_type"]["custom"]["clicked"] == 1


async def test_click_without_open_counts_open(client: AsyncClient, factory):
    employer = await factory.create_employer()
    candidate = await factory.create_candidate()
    email = await _send(client, employer["id"], candidate["id"])

    await client.get(f"/api/v1/analytics/track/click/{email['tracking_id']}")

    response = await client.get(f"/api/v1/engagement/{employer['id']}/candidates/{candidate['id']}")
    engagement = response.json()["data"]
    assert engagement["total_emails_opened"] == 1
    assert engagement["total_links_clicked"] == 1


async def test_unknown_tracking_id(client: AsyncClient):
    response = await client.get("/api/v1/analytics/track/open/nope")
    assert response.status_code == 404


async def test_send_requires_content(client: AsyncClient, factory):
    employer = await factory.create_employer()
    candidate = await factory.create_candidate()
    response = await client.post("/api/v1/analytics/emails/send", json={
        "employer_id": employer["id"],
        "candidate_id": candidate["id"],
        "subject": "No body",
    })
    assert response.status_code == 400


async def test_send_with_template(client: AsyncClient, factory):
    template = await factory.create_template()
    candidate = await factory.create_candidate(full_name="Lina")

    email = await _send(
        client,
        template["employer_id"],
        candidate["id"],
        template_id=template["id"],
        subject=None,
        body_html=None,
    )
    assert email["subject"] == "Hello Lina"

    response = await client.get(f"/api/v1/templates/{template['id']}")
    assert response.json()["data"]["usage_count"] == 1


async def test_send_respects_warmup(client: AsyncClient, factory):
    employer = await factory.create_employer()
    candidate = await factory.create_candidate()
    await client.post("/api/v1/warmup", json={
        "employer_id": employer["id"],
        "domain": "mail.najd.sa",
        "target_volume": 100,
        "total_days": 3,
    })
    await client.post("/api/v1/warmup/sends", json={
        "employer_id": employer["id"], "domain": "mail.najd.sa", "count": 10,
    })

    response = await client.post("/api/v1/analytics/emails/send", json={
        "employer_id": employer["id"],
        "candidate_id": candidate["id"],
        "subject": "Hi",
        "body_html": "<p>Hi</p>",
        "sending_domain": "mail.najd.sa",
    })
    assert response.status_code == 400


async def test_job_funnel(client: AsyncClient, factory):
    job = await factory.create_job()
    for _ in range(3):
        await client.get(f"/api/v1/jobs/{job['id']}", params={"count_view": True})
    first = await factory.create_application(job_id=job["id"])
    await factory.create_application(job_id=job["id"])
    await client.patch(f"/api/v1/applications/{first['id']}", json={"status": "offered"})

    response = await client.get(f"/api/v1/analytics/jobs/{job['id']}/funnel")
    funnel = response.json()["data"]
    assert funnel["views"] == 3
    assert funnel["applications"] == 2
    assert funnel["by_status"]["offered"] == 1
    assert funnel["by_status"]["submitted"] == 1
    assert funnel["conversion"]["view_to_application"] == 66.67
    assert funnel["conversion"]["application_to_screening"] == 50.0
    assert funnel["conversion"]["application_to_offer"] == 50.0


async def test_dashboard(client: AsyncClient, factory):
    employer = await factory.create_employer()
    job = await factory.create_job(employer_id=employer["id"])
    await factory.create_application(job_id=job["id"])
    await factory.create_ab_test(employer_id=employer["id"])

    response = await client.get(f"/api/v1/analytics/employers/{employer['id']}/dashboard")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["jobs"]["total"] == 1
    assert data["applications"]["total"] == 1
    assert data["applications"]["average_match_score"] == 75.0
    assert data["active_ab_tests"] == 0
    assert data["nitaqat"] is None

    await factory.record_workforce(employer["id"], 100, 25)
    response = await client.get(f"/api/v1/analytics/employers/{employer['id']}/dashboard")
    assert response.json()["data"]["nitaqat"]["band"] == "green"

    response = await client.get("/api/v1/analytics/employers/missing/dashboard")
    assert response.status_code == 404


async def test_run_background_job(client: AsyncClient, factory):
    employer = await factory.create_employer()
    await client.post("/api/v1/warmup", json={"employer_id": employer["id"], "domain": "mail.najd.sa"})

    response = await client.post("/api/v1/analytics/jobs/warmup_advance_day/run")
    assert response.status_code == 200
    entry = response.json()["data"]
    assert entry["status"] == "success"
    assert entry["message"] == "1 warmup schedules advanced"

    response = await client.get("/api/v1/warmup", params={"employer_id": employer["id"]})
    assert response.json()["data"][0]["current_day"] == 2

    response = await client.get("/api/v1/analytics/jobs/status")
    status = response.json()["data"]
    assert {t["name"] for t in status["tasks"]} >= {
        "warmup_advance_day", "ab_test_auto_analyze", "compliance_daily_check",
    }
    assert status["logs"][0]["job"] == "warmup_advance_day"

    response = await client.post("/api/v1/analytics/jobs/unknown/run")
    assert response.status_code == 404
