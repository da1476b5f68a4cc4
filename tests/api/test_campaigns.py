"""
Campaign workflows
"""
from httpx import AsyncClient


def _workflow(delay_minutes: float = 60) -> dict:
    return {
        "start_node_id": "start",
        "nodes": [
            {"id": "start", "type": "trigger", "connections": ["welcome"]},
            {
                "id": "welcome",
                "type": "action",
                "config": {
                    "action_type": "send_email",
                    "subject": "Hi {{candidate_name}}",
                    "body_html": "<p>{{company_name}} has a {{role}} opening.</p>",
                },
                "connections": ["wait"],
            },
            {"id": "wait", "type": "delay", "config": {"minutes": delay_minutes}, "connections": ["check"]},
            {
                "id": "check",
                "type": "condition",
                "config": {
                    "condition_type": "email_opened",
                    "true_node_id": "done",
                    "false_node_id": "reminder",
                },
            },
            {
                "id": "reminder",
                "type": "action",
                "config": {"subject": "Still interested?", "body_html": "<p>Reply any time.</p>"},
                "connections": ["done"],
            },
            {"id": "done", "type": "end"},
        ],
    }


async def _campaign(client: AsyncClient, factory, delay_minutes: float = 60, activate: bool = True):
    employer = await factory.create_employer()
    response = await client.post("/api/v1/campaigns", json={
        "employer_id": employer["id"],
        "name": "Backend outreach",
        "workflow": _workflow(delay_minutes),
    })
    assert response.status_code == 200, response.text
    campaign = response.json()["data"]
    if activate:
        response = await client.post(f"/api/v1/campaigns/{campaign['id']}/activate")
        assert response.json()["data"]["status"] == "active"
    return campaign


async def _execute(client: AsyncClient, campaign_id: str, candidate_id: str) -> dict:
    response = await client.post(f"/api/v1/campaigns/{campaign_id}/execute", json={
        "candidate_id": candidate_id,
        "data": {"role": "Backend Engineer"},
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def test_workflow_graph_is_validated(client: AsyncClient, factory):
    employer = await factory.create_employer()
    response = await client.post("/api/v1/campaigns", json={
        "employer_id": employer["id"],
        "name": "Broken",
        "workflow": {
            "start_node_id": "start",
            "nodes": [{"id": "start", "type": "trigger", "connections": ["nowhere"]}],
        },
    })
    assert response.status_code == 422


async def test_draft_campaign_cannot_run(client: AsyncClient, factory):
    campaign = await _campaign(client, factory, activate=False)
    assert campaign["status"] == "draft"
    candidate = await factory.create_candidate()

    response = await client.post(f"/api/v1/campaigns/{campaign['id']}/execute", json={
        "candidate_id": candidate["id"],
    })
    assert response.status_code == 400


async def test_delay_parks_execution(client: AsyncClient, factory):
    campaign = await _campaign(client, factory, delay_minutes=60)
    candidate = await factory.create_candidate(full_name="Sara Ali")

    execution = await _execute(client, campaign["id"], candidate["id"])
    assert execution["status"] == "waiting"
    assert execution["steps_executed"] == ["start", "welcome", "wait"]
    assert execution["current_step"] == "check"
    assert execution["resume_at"] is not None
    assert execution["execution_data"]["emails_sent"] == 1

    response = await client.post(
        f"/api/v1/campaigns/{campaign['id']}/executions/{execution['id']}/resume"
    )
    assert response.status_code == 400

    response = await client.get(f"/api/v1/campaigns/{campaign['id']}/analytics")
    analytics = response.json()["data"]
    assert analytics["total_sent"] == 1
    assert analytics["executions"]["waiting"] == 1
    assert analytics["executions"]["total"] == 1


async def test_unopened_email_takes_false_branch(client: AsyncClient, factory):
    campaign = await _campaign(client, factory, delay_minutes=0)
    candidate = await factory.create_candidate()

    execution = await _execute(client, campaign["id"], candidate["id"])
    assert execution["status"] == "waiting"

    response = await client.post(
        f"/api/v1/campaigns/{campaign['id']}/executions/{execution['id']}/resume"
    )
    assert response.status_code == 200
    execution = response.json()["data"]
    assert execution["status"] == "completed"
    assert execution["steps_executed"] == ["start", "welcome", "wait", "check", "reminder", "done"]
    assert execution["execution_data"]["emails_sent"] == 2
    assert execution["completed_at"] is not None


async def test_opened_email_takes_true_branch(client: AsyncClient, factory):
    campaign = await _campaign(client, factory, delay_minutes=0)
    candidate = await factory.create_candidate()

    execution = await _execute(client, campaign["id"], candidate["id"])
    tracking_id = execution["execution_data"]["last_tracking_id"]
    response = await client.get(f"/api/v1/analytics/track/open/{tracking_id}")
    assert response.status_code == 200

    response = await client.post(
        f"/api/v1/campaigns/{campaign['id']}/executions/{execution['id']}/resume"
    )
    execution = response.json()["data"]
    assert execution["status"] == "completed"
    assert execution["steps_executed"][-2:] == ["check", "done"]

    response = await client.get(f"/api/v1/campaigns/{campaign['id']}/analytics")
    analytics = response.json()["data"]
    assert analytics["total_sent"] == 1
    assert analytics["total_opened"] == 1
    assert analytics["open_rate"] == 100.0
    assert analytics["executions"]["completed"] == 1


async def test_failed_action_marks_execution_failed(client: AsyncClient, factory):
    employer = await factory.create_employer()
    response = await client.post("/api/v1/campaigns", json={
        "employer_id": employer["id"],
        "name": "Unsupported",
        "workflow": {
            "start_node_id": "a",
            "nodes": [{"id": "a", "type": "action", "config": {"action_type": "send_sms"}}],
        },
    })
    campaign = response.json()["data"]
    await client.post(f"/api/v1/campaigns/{campaign['id']}/activate")
    candidate = await factory.create_candidate()

    execution = await _execute(client, campaign["id"], candidate["id"])
    assert execution["status"] == "failed"
    assert "send_sms" in execution["error_message"]


async def test_lifecycle_rules(client: AsyncClient, factory):
    campaign = await _campaign(client, factory)
    campaign_id = campaign["id"]

    response = await client.patch(f"/api/v1/campaigns/{campaign_id}", json={"workflow": _workflow(5)})
    assert response.status_code == 400
    response = await client.patch(f"/api/v1/campaigns/{campaign_id}", json={"name": "Renamed"})
    assert response.json()["data"]["name"] == "Renamed"

    response = await client.delete(f"/api/v1/campaigns/{campaign_id}")
    assert response.status_code == 400

    response = await client.post(f"/api/v1/campaigns/{campaign_id}/pause")
    assert response.json()["data"]["status"] == "paused"
    response = await client.post(f"/api/v1/campaigns/{campaign_id}/pause")
    assert response.status_code == 400

    response = await client.delete(f"/api/v1/campaigns/{campaign_id}")
    assert response.status_code == 200
    response = await client.get(f"/api/v1/campaigns/{campaign_id}")
    assert response.status_code == 404
