"""Commission, payment and report endpoints."""

from servicehub.core.enums import BookingStatus


def test_any_actor_reads_rates(client, customer_headers):
    response = client.get("/api/v1/commission/rates", headers=customer_headers)

    assert response.status_code == 200
    assert response.json()["rates"]["NEW"] == 20.0
    assert response.json()["version"] == 0


def test_provider_cannot_change_rates(client, owner_headers):
    response = client.put(
        "/api/v1/commission/rates", json={"rates": {"NEW": 10}}, headers=owner_headers
    )

    assert response.status_code == 403
    assert response.json()["code"] == "ADMIN_REQUIRED"


def test_admin_changes_rates_and_reads_history(client, admin_headers):
    response = client.put(
        "/api/v1/commission/rates",
        json={"rates": {"PREMIUM": 14.5}, "reason": "Market adjustment"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["rates"]["PREMIUM"] == 14.5
    assert body["changes"] == [{"tier": "PREMIUM", "oldRate": 15.0, "newRate": 14.5}]
    assert body["updatedBy"] == admin_headers["X-Actor-Id"]

    history = client.get("/api/v1/commission/history?tier=PREMIUM", headers=admin_headers)
    assert history.status_code == 200
    assert history.json()["count"] == 1
    assert history.json()["entries"][0]["reason"] == "Market adjustment"


def test_out_of_range_rate(client, admin_headers):
    response = client.put(
        "/api/v1/commission/rates", json={"rates": {"NEW": 55}}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_RATE"


def test_payment_status_and_collection(client, admin_headers, owner_headers, make_booking, business):
    booking = make_booking(business, status=BookingStatus.COMPLETED.value)
    payment = client.post(
        f"/api/v1/bookings/{booking.id}/payment",
        json={"amount": 100, "paymentMethod": "CASH"},
        headers=owner_headers,
    ).json()

    outstanding = client.get(
        f"/api/v1/providers/{business.id}/commission/outstanding", headers=owner_headers
    )
    assert outstanding.status_code == 200
    assert outstanding.json()["totalOwed"] == 20.0

    collected = client.post(
        f"/api/v1/payments/{payment['id']}/commission/collect", headers=admin_headers
    )
    assert collected.status_code == 200
    assert collected.json()["commissionStatus"] == "COLLECTED"

    refunded = client.patch(
        f"/api/v1/payments/{payment['id']}/status",
        json={"status": "REFUNDED"},
        headers=admin_headers,
    )
    assert refunded.status_code == 200
    assert refunded.json()["paymentStatus"] == "REFUNDED"

    again = client.patch(
        f"/api/v1/payments/{payment['id']}/status",
        json={"status": "COMPLETED"},
        headers=admin_headers,
    )
    assert again.status_code == 422
    assert again.json()["code"] == "INVALID_PAYMENT_TRANSITION"


def test_commission_summary_requires_admin(client, owner_headers, admin_headers):
    assert client.get("/api/v1/commission/summary", headers=owner_headers).status_code == 403

    response = client.get("/api/v1/commission/summary", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["transactionCount"] == 0


def test_revenue_report(client, admin_headers, make_booking, make_payment, business):
    make_payment(make_booking(business, status=BookingStatus.COMPLETED.value))

    response = client.get("/api/v1/reports/revenue?timeframe=7d", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["totalRevenue"] == 100.0
    assert body["bucketing"] == "day"
    assert body["topProviders"][0]["providerId"] == business.id


def test_revenue_report_bad_timeframe(client, admin_headers):
    response = client.get("/api/v1/reports/revenue?timeframe=2w", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TIMEFRAME"
