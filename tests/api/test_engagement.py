"""
Engagement scoring endpoints
"""
from httpx import AsyncClient


async def _interact(client: AsyncClient, candidate_id: str, employer_id: str, interaction: str):
    response = await client.post("/api/v1/engagement/interactions", json={
        "candidate_id": candidate_id,
        "employer_id": employer_id,
        "interaction": interaction,
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def test_interactions_rescore_candidate(client: AsyncClient, factory):
    employer = await factory.create_employer()
    candidate = await factory.create_candidate()
    args = (client, candidate["id"], employer["id"])

    row = await _interact(*args, "email_sent")
    assert row["engagement_score"] == 0
    assert row["engagement_level"] == "very_low"
    assert row["last_engagement_at"] is None

    await _interact(*args, "email_sent")
    await _interact(*args, "email_opened")
    await _interact(*args, "email_opened")
    await _interact(*args, "link_clicked")
    row = await _interact(*args, "responded")

    # 100% open, 50% click, 50% response
    assert row["open_rate"] == 100
    assert row["click_rate"] == 50
    assert row["response_rate"] == 50
    assert row["engagement_score"] == 65
    assert row["engagement_level"] == "high"
    assert row["last_engagement_at"] is not None

    response = await client.get(
        f"/api/v1/engagement/{employer['id']}/candidates/{candidate['id']}/trend"
    )
    assert response.status_code == 200
    assert len(response.json()["data"]) == 6

    response = await client.get(f"/api/v1/engagement/{employer['id']}/statistics")
    stats = response.json()["data"]
    assert stats["total_candidates"] == 1
    assert stats["average_score"] == 65.0
    assert stats["distribution"]["high"] == 1
    assert stats["distribution"]["very_low"] == 0
    assert stats["recently_engaged"] == 1

    response = await client.get(f"/api/v1/engagement/{employer['id']}/levels/high")
    assert [r["candidate_id"] for r in response.json()["data"]] == [candidate["id"]]


async def test_top_engaged_ordering(client: AsyncClient, factory):
    employer = await factory.create_employer()
    keen = await factory.create_candidate()
    quiet = await factory.create_candidate()

    await _interact(client, quiet["id"], employer["id"], "email_sent")
    await _interact(client, keen["id"], employer["id"], "email_sent")
    await _interact(client, keen["id"], employer["id"], "email_opened")

    response = await client.get(f"/api/v1/engagement/{employer['id']}/top", params={"limit": 10})
    ranked = [r["candidate_id"] for r in response.json()["data"]]
    assert ranked == [keen["id"], quiet["id"]]


async def test_unknown_pair(client: AsyncClient, factory):
    employer = await factory.create_employer()
    response = await client.get(f"/api/v1/engagement/{employer['id']}/candidates/nobody")
    assert response.status_code == 404

    response = await client.post("/api/v1/engagement/interactions", json={
        "candidate_id": "nobody",
        "employer_id": employer["id"],
        "interaction": "email_opened",
    })
    assert response.status_code == 404


async def test_stateless_calculators(client: AsyncClient):
    response = await client.post("/api/v1/engagement/score", json={
        "emails_sent": 10,
        "emails_opened": 5,
        "links_clicked": 2,
        "responses": 1,
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["engagement_score"] == 26
    assert data["engagement_level"] == "low"

    response = await client.post("/api/v1/engagement/score", json={})
    assert response.json()["data"]["engagement_score"] == 0

    response = await client.post("/api/v1/engagement/score", json={"emails_sent": -1})
    assert response.status_code == 422
