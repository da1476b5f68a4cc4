"""
Nitaqat tracking, compliance alerts and reports
"""
from httpx import AsyncClient


async def test_red_band_raises_alert_once(client: AsyncClient, factory):
    employer = await factory.create_employer()

    result = await factory.record_workforce(employer["id"], 100, 10)
    tracking = result["tracking"]
    assert tracking["nitaqat_band"] == "red"
    assert tracking["saudization_percentage"] == 10.0
    assert tracking["required_percentage"] == 22.0
    assert tracking["compliance_gap"] == 12
    assert tracking["estimated_penalty"] == 24000
    assert tracking["risk_level"] == "critical"
    assert [a["alert_type"] for a in result["alerts"]] == ["red_band"]
    assert result["alerts"][0]["severity"] == "critical"

    # an active alert of the same type is not duplicated
    result = await factory.record_workforce(employer["id"], 100, 10)
    assert result["alerts"] == []

    response = await client.get("/api/v1/notifications", params={"user_id": employer["id"]})
    items = response.json()["data"]["items"]
    assert len(items) == 1
    assert items[0]["type"] == "compliance_alert"
    assert items[0]["priority"] == "urgent"

    response = await client.get(f"/api/v1/compliance/{employer['id']}/history")
    assert len(response.json()["data"]) == 2


async def test_band_drop_alert(client: AsyncClient, factory):
    employer = await factory.create_employer()

    result = await factory.record_workforce(employer["id"], 100, 15)
    assert result["tracking"]["nitaqat_band"] == "yellow"
    assert [a["alert_type"] for a in result["alerts"]] == ["yellow_band"]

    result = await factory.record_workforce(employer["id"], 100, 10)
    assert sorted(a["alert_type"] for a in result["alerts"]) == ["band_change", "red_band"]

    # back to green resolves the band alerts
    result = await factory.record_workforce(employer["id"], 100, 25)
    assert result["tracking"]["nitaqat_band"] == "green"
    response = await client.get(
        f"/api/v1/compliance/{employer['id']}/alerts", params={"status": "active"}
    )
    assert [a["alert_type"] for a in response.json()["data"]] == ["band_change"]


async def test_workforce_validation(client: AsyncClient, factory):
    employer = await factory.create_employer()
    response = await client.put(f"/api/v1/compliance/{employer['id']}/workforce", json={
        "total_employees": 10,
        "saudi_employees": 11,
        "activity_sector": "retail",
    })
    assert response.status_code == 422

    response = await client.put("/api/v1/compliance/missing/workforce", json={
        "total_employees": 10,
        "saudi_employees": 1,
        "activity_sector": "retail",
    })
    assert response.status_code == 404

    response = await client.get(f"/api/v1/compliance/{employer['id']}/nitaqat")
    assert response.status_code == 404


async def test_simulation_and_hires_needed(client: AsyncClient, factory):
    employer = await factory.create_employer()
    await factory.record_workforce(employer["id"], 100, 10)

    response = await client.post(f"/api/v1/compliance/{employer['id']}/simulate", json={"saudi_hires": 16})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["current"]["band"] == "red"
    assert data["projected"]["band"] == "green"
    assert data["band_change"] is True
    assert data["improves"] is True
    assert data["projected_penalty"] == 0

    response = await client.post(
        f"/api/v1/compliance/{employer['id']}/simulate", json={"expat_terminations": 1000}
    )
    assert response.status_code == 400

    response = await client.get(f"/api/v1/compliance/{employer['id']}/hires-needed")
    data = response.json()["data"]
    assert data["hires_needed"] == 16
    assert data["projected_total"] == 116

    response = await client.get(
        f"/api/v1/compliance/{employer['id']}/hires-needed", params={"target_band": "red"}
    )
    assert response.status_code == 400


async def test_calculate_without_storing(client: AsyncClient):
    response = await client.get("/api/v1/compliance/calculate", params={
        "total_employees": 100,
        "saudi_employees": 30,
        "activity_sector": "Retail Trade",
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["band"] == "platinum"
    assert data["sector"] == "retail"

    response = await client.get("/api/v1/compliance/calculate", params={
        "total_employees": 5,
        "saudi_employees": 6,
    })
    assert response.status_code == 400


async def test_alert_transitions(client: AsyncClient, factory):
    employer = await factory.create_employer()
    result = await factory.record_workforce(employer["id"], 100, 10)
    alert_id = result["alerts"][0]["id"]
    base = f"/api/v1/compliance/{employer['id']}/alerts/{alert_id}"

    response = await client.post(f"{base}/acknowledge")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "acknowledged"
    assert response.json()["data"]["acknowledged_at"] is not None

    response = await client.post(f"{base}/acknowledge")
    assert response.status_code == 400

    response = await client.post(f"{base}/resolve")
    assert response.json()["data"]["status"] == "resolved"

    response = await client.post(f"{base}/dismiss")
    assert response.status_code == 400

    other = await factory.create_employer()
    response = await client.post(f"/api/v1/compliance/{other['id']}/alerts/{alert_id}/resolve")
    assert response.status_code == 403


async def test_run_checks(client: AsyncClient, factory):
    employer = await factory.create_employer()
    await factory.record_workforce(employer["id"], 100, 10)

    response = await client.post("/api/v1/compliance/checks/run", params={"employer_id": employer["id"]})
    assert response.json()["data"] == {"checked": 1, "alerts_raised": 0}


async def test_report_generation_and_submission(client: AsyncClient, factory):
    employer = await factory.create_employer(company_name="Riyadh Retail Co")
    await factory.record_workforce(employer["id"], 100, 10)

    response = await client.post("/api/v1/compliance/reports", json={
        "employer_id": employer["id"],
        "report_type": "monthly",
        "period_start": "2020-01-01T00:00:00Z",
        "period_end": "2100-01-01T00:00:00Z",
    })
    assert response.status_code == 200
    report = response.json()["data"]
    assert report["status"] == "pending"

    # the background task has run by the time the transport returns
    response = await client.get(f"/api/v1/compliance/reports/{report['id']}")
    report = response.json()["data"]
    assert report["status"] == "completed"
    assert report["report_data"]["nitaqat"]["band"] == "red"
    assert report["report_data"]["alerts"]["critical"] == 1
    assert "Riyadh Retail Co" in report["report_content"]
    assert "## Nitaqat position" in report["report_content"]

    response = await client.post(f"/api/v1/compliance/reports/{report['id']}/submit")
    assert response.status_code == 200
    report = response.json()["data"]
    assert report["status"] == "submitted"
    assert report["reference_number"].startswith("MHRSD-")

    response = await client.post(f"/api/v1/compliance/reports/{report['id']}/submit")
    assert response.status_code == 400

    response = await client.get(f"/api/v1/compliance/{employer['id']}/reports")
    assert response.json()["data"]["total"] == 1


async def test_report_needs_workforce_data(client: AsyncClient, factory):
    employer = await factory.create_employer()
    response = await client.post("/api/v1/compliance/reports", json={
        "employer_id": employer["id"],
        "period_start": "2026-01-01T00:00:00Z",
        "period_end": "2026-01-31T00:00:00Z",
    })
    assert response.status_code == 404

    response = await client.post("/api/v1/compliance/reports", json={
        "employer_id": employer["id"],
        "period_start": "2026-02-01T00:00:00Z",
        "period_end": "2026-01-01T00:00:00Z",
    })
    assert response.status_code == 422
