"""Alerts API tests: creation, listing, lookup and stats."""

from alertline.core.alert_policies import derive_priority


def test_create_medical_alert_is_critical_and_pending(client, publisher):
    """Creating a medical alert derives priority critical and starts pending."""
    r = client.post(
        "/api/alerts",
        json={
            "type": "medical",
            "description": "Chest pain",
            "user_id": "u-create",
            "user_name": "Maria",
            "location": {"latitude": 14.5995, "longitude": 120.9842, "accuracy": 5.0},
            "emergency_contacts": [{"name": "Jose", "phone": "0917", "relationship": "Brother"}],
        },
    )
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "Alert created successfully"
    alert = body["alert"]
    assert alert["priority"] == "critical"
    assert alert["status"] == "pending"
    assert alert["is_online"] is True
    assert alert["location"]["address"] == "Location not specified"
    assert len(alert["location_history"]) == 1
    assert alert["emergency_contacts"][0]["name"] == "Jose"
    assert publisher.names() == ["newAlert"]
    assert publisher.events[0][1]["id"] == alert["id"]


def test_create_fills_reporter_defaults(client):
    """Missing reporter fields fall back to defaults."""
    r = client.post("/api/alerts", json={"type": "other", "location": {"latitude": 10.0, "longitude": 20.0}})
    assert r.status_code == 201
    alert = r.json()["alert"]
    assert alert["user_name"] == "Anonymous"
    assert alert["user_phone"] == "Not provided"
    assert alert["priority"] == "low"
    assert alert["description"] == "other emergency reported"


def test_create_requires_type_and_location(client, publisher):
    """Missing type or location is rejected before anything is stored."""
    r = client.post("/api/alerts", json={"location": {"latitude": 1.0, "longitude": 1.0}})
    assert r.status_code == 400
    assert r.json()["detail"] == "Type and location are required"

    r = client.post("/api/alerts", json={"type": "fire"})
    assert r.status_code == 400
    assert publisher.events == []


def test_create_rejects_unknown_type(client):
    r = client.post("/api/alerts", json={"type": "meteor", "location": {"latitude": 1.0, "longitude": 1.0}})
    assert r.status_code == 400
    assert "Unknown alert type" in r.json()["detail"]


def test_create_rejects_out_of_range_coordinates(client):
    r = client.post("/api/alerts", json={"type": "fire", "location": {"latitude": 91.0, "longitude": 1.0}})
    assert r.status_code == 422


def test_priority_mapping():
    """Priority is a fixed function of the category."""
    assert derive_priority("SOS") == "critical"
    assert derive_priority("medical") == "critical"
    assert derive_priority("fire") == "high"
    assert derive_priority("crime") == "high"
    assert derive_priority("accident") == "medium"
    assert derive_priority("rescue") == "medium"
    assert derive_priority("natural") == "low"
    assert derive_priority("police") == "low"
    assert derive_priority("other") == "low"


def test_priority_not_changed_by_status(client, make_alert):
    """Status changes never touch the priority."""
    alert = make_alert("fire", user_id="u-prio")
    r = client.patch(f"/api/alerts/{alert['id']}/status", json={"status": "responding", "responder_id": "R1"})
    assert r.json()["alert"]["priority"] == "high"
    r = client.patch(f"/api/alerts/{alert['id']}/status", json={"status": "resolved"})
    assert r.json()["alert"]["priority"] == "high"


def test_get_alert_and_404(client, make_alert):
    alert = make_alert(user_id="u-get")
    r = client.get(f"/api/alerts/{alert['id']}")
    assert r.status_code == 200
    assert r.json()["alert"]["id"] == alert["id"]

    r = client.get("/api/alerts/does-not-exist")
    assert r.status_code == 404
    assert r.json()["detail"] == "Alert not found"


def test_list_alerts_returns_dashboard_summaries(client, make_alert):
    """Dashboard listing projects location to lat/lng and adds idle time."""
    alert = make_alert("accident", user_id="u-list")
    r = client.get("/api/alerts", params={"type": "accident"})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == len(body["alerts"])
    row = next(a for a in body["alerts"] if a["id"] == alert["id"])
    assert row["location"]["lat"] == alert["location"]["latitude"]
    assert row["location"]["lng"] == alert["location"]["longitude"]
    assert row["idle_time"] == "Just now"
    assert row["idle_minutes"] == 0
    assert row["time"] == "Just now"
    assert all(a["type"] == "accident" for a in body["alerts"])


def test_list_alerts_newest_first_and_limit(client, make_alert):
    first = make_alert("crime", user_id="u-order")
    second = make_alert("crime", user_id="u-order")
    r = client.get("/api/alerts", params={"type": "crime", "limit": 2})
    ids = [a["id"] for a in r.json()["alerts"]]
    assert ids == [second["id"], first["id"]]


def test_list_alerts_filters_by_status(client, make_alert):
    alert = make_alert("natural", user_id="u-status-filter")
    client.patch(f"/api/alerts/{alert['id']}/status", json={"status": "cancelled"})
    pending = client.get("/api/alerts", params={"status": "pending", "type": "natural"}).json()["alerts"]
    cancelled = client.get("/api/alerts", params={"status": "cancelled", "type": "natural"}).json()["alerts"]
    assert alert["id"] not in [a["id"] for a in pending]
    assert alert["id"] in [a["id"] for a in cancelled]


def test_user_alerts(client, make_alert):
    make_alert("fire", user_id="u-mine")
    make_alert("medical", user_id="u-mine")
    make_alert("medical", user_id="u-someone-else")
    r = client.get("/api/alerts/user/u-mine")
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert {a["type"] for a in body["alerts"]} == {"fire", "medical"}


def test_stats_summary_counts(client, make_alert):
    before = client.get("/api/alerts/stats/summary").json()
    alert = make_alert("rescue", user_id="u-stats")
    make_alert("rescue", user_id="u-stats")
    client.patch(f"/api/alerts/{alert['id']}/status", json={"status": "cancelled"})

    after = client.get("/api/alerts/stats/summary").json()
    assert after["total"] == before["total"] + 2
    assert after["pending"] == before["pending"] + 1
    assert after["cancelled"] == before["cancelled"] + 1
    assert after["last_24_hours"] == before["last_24_hours"] + 2
    assert after["by_type"]["rescue"] == before["by_type"].get("rescue", 0) + 2
