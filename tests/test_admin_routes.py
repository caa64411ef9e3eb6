"""Tests for the admin dashboard endpoint."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.db import models


def add_booking(session, user, service, status, days):
    session.add(
        models.Booking(
            user_id=user.id,
            service_id=service.id,
            scheduled_at=datetime.now(timezone.utc) + timedelta(days=days),
            status=status,
        )
    )
    session.commit()


def test_empty_dashboard(admin_client):
    resp = admin_client.get("/api/v1/admin/dashboard")

    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "stats": {"totalBookings": 0, "totalServices": 0, "totalRevenue": "0.00", "pendingBookings": 0},
        "recentBookings": [],
    }


def test_dashboard_aggregates(admin_client, users, make_service, db_session):
    haircut = make_service(name="Haircut", price="25.00")
    massage = make_service(name="Massage", price="60.00")
    add_booking(db_session, users["user"], haircut, "pending", days=1)
    add_booking(db_session, users["user"], massage, "confirmed", days=2)
    add_booking(db_session, users["admin"], massage, "cancelled", days=3)

    data = admin_client.get("/api/v1/admin/dashboard").json()["data"]

    assert data["stats"] == {
        "totalBookings": 3,
        "totalServices": 2,
        "totalRevenue": "85.00",
        "pendingBookings": 1,
    }
    latest = data["recentBookings"][0]
    assert latest["customerName"] == "admin@example.com"
    assert latest["serviceName"] == "Massage"
    assert latest["status"] == "cancelled"
    assert set(latest) == {"id", "customerName", "serviceName", "date", "status"}


def test_recent_bookings_are_capped(admin_client, users, make_service, db_session):
    service = make_service()
    for day in range(1, 8):
        add_booking(db_session, users["user"], service, "pending", days=day)

    data = admin_client.get("/api/v1/admin/dashboard").json()["data"]

    assert len(data["recentBookings"]) == 5
    assert data["stats"]["totalBookings"] == 7


def test_dashboard_requires_admin(user_client, client):
    assert user_client.get("/api/v1/admin/dashboard").status_code == 403
    assert client.get("/api/v1/admin/dashboard").status_code == 401
