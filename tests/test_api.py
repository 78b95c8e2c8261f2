import uuid
from decimal import Decimal

from conftest import ADMIN, as_agent


async def create_agent(client, email="dana@example.com", code="DANA2024"):
    response = await client.post("/agents", json={"email": email, "full_name": "Dana Levi", "referral_code": code}, headers=ADMIN)
    assert response.status_code == 201, response.text
    return response.json()["id"]


async def commissions_of(client, agent_id):
    response = await client.get(f"/agents/{agent_id}/commissions", headers=ADMIN)
    assert response.status_code == 200, response.text
    return response.json()["items"]


async def test_health_needs_no_key(client):
    response = await client.get("/check-health", headers={"X-API-Key": ""})
    assert response.status_code == 200
    assert response.json() == {"ok": True}


async def test_service_key_required(client):
    response = await client.get("/referral/resolve", params={"code": "DANA2024"}, headers={"X-API-Key": "wrong"})
    assert response.status_code == 401


async def test_resolve_sets_marker_cookie(client):
    agent_id = await create_agent(client)

    response = await client.get("/referral/resolve", params={"code": "dana2024"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["agent_id"] == agent_id
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("affiliate_ref=")
    assert "HttpOnly" in cookie
    assert "Max-Age=2592000" in cookie


async def test_resolve_unknown_and_malformed_codes(client):
    await create_agent(client)
    assert (await client.get("/referral/resolve", params={"code": "NOBODY99"})).status_code == 404
    assert (await client.get("/referral/resolve", params={"code": "??"})).status_code == 422


async def test_visit_tracking(client):
    agent_id = await create_agent(client)
    response = await client.post("/referral/visit", json={"referral_code": "DANA2024", "page_url": "/pricing"})
    assert response.status_code == 201, response.text
    assert response.json()["agent_id"] == agent_id


async def test_order_attributed_through_cookie(client):
    agent_id = await create_agent(client)
    marker = (await client.get("/referral/resolve", params={"code": "DANA2024"})).json()["marker"]
    client.cookies.set("affiliate_ref", marker)

    response = await client.post("/orders", json={"total_amount": "10.00", "customer_ref": "cust-1"})

    assert response.status_code == 201, response.text
    assert response.json()["agent_id"] == agent_id
    assert response.json()["total_amount_cents"] == 1000
    [commission] = await commissions_of(client, agent_id)
    assert commission["commission_amount_cents"] == 100
    assert commission["status"] == "PENDING_CLEARANCE"


async def test_order_with_marker_in_body_and_duplicate(client):
    agent_id = await create_agent(client)
    marker = (await client.get("/referral/resolve", params={"code": "DANA2024"})).json()["marker"]
    client.cookies.clear()
    payload = {"amount_cents": 999, "attribution_marker": marker, "external_id": "shop-42"}

    first = await client.post("/orders", json=payload)
    second = await client.post("/orders", json=payload)

    assert first.status_code == 201, first.text
    assert second.status_code == 409
    assert len(await commissions_of(client, agent_id)) == 1


async def test_unattributed_order(client):
    response = await client.post("/orders", json={"amount_cents": 500})
    assert response.status_code == 201, response.text
    assert response.json()["agent_id"] is None
    assert response.json()["external_id"].startswith("ord_")


async def test_order_amount_validation(client):
    assert (await client.post("/orders", json={"total_amount": "10.001"})).status_code == 422
    assert (await client.post("/orders", json={"amount_cents": 0})).status_code == 422
    assert (await client.post("/orders", json={})).status_code == 422
    assert (await client.post("/orders", json={"amount_cents": 100, "total_amount": "1.00"})).status_code == 422


async def test_clearance_needs_admin(client):
    agent_id = await create_agent(client)
    marker = (await client.get("/referral/resolve", params={"code": "DANA2024"})).json()["marker"]
    await client.post("/orders", json={"amount_cents": 1000, "attribution_marker": marker})
    [commission] = await commissions_of(client, agent_id)

    denied = await client.post(f"/commissions/{commission['id']}/clear", headers=as_agent(agent_id))
    assert denied.status_code == 403

    cleared = await client.post(f"/commissions/{commission['id']}/clear", headers=ADMIN)
    assert cleared.status_code == 200, cleared.text
    assert cleared.json()["status"] == "CLEARED"

    again = await client.post(f"/commissions/{commission['id']}/reverse", headers=ADMIN)
    assert again.status_code == 409

    missing = await client.post(f"/commissions/{uuid.uuid4()}/clear", headers=ADMIN)
    assert missing.status_code == 404


async def test_refund_reverses_commission(client):
    agent_id = await create_agent(client)
    marker = (await client.get("/referral/resolve", params={"code": "DANA2024"})).json()["marker"]
    order = (await client.post("/orders", json={"amount_cents": 1000, "attribution_marker": marker})).json()

    response = await client.post(f"/orders/{order['order_id']}/refund", headers=ADMIN)

    assert response.status_code == 200, response.text
    assert response.json()["status"] == "REFUNDED"
    [commission] = await commissions_of(client, agent_id)
    assert commission["status"] == "REVERSED"


async def test_clear_matured_endpoint(client):
    response = await client.post("/commissions/clear-matured", json={"older_than_days": 7}, headers=ADMIN)
    assert response.status_code == 200, response.text
    assert response.json() == {"cleared": []}


async def test_payout_flow(client):
    agent_id = await create_agent(client)
    marker = (await client.get("/referral/resolve", params={"code": "DANA2024"})).json()["marker"]
    await client.post("/orders", json={"amount_cents": 1000, "attribution_marker": marker})
    [commission] = await commissions_of(client, agent_id)
    await client.post(f"/commissions/{commission['id']}/clear", headers=ADMIN)
    bank = {"bank_account_iban": "IL620108000000099999999", "bank_account_name": "Dana Levi"}

    requested = await client.post("/payouts/request", json=bank, headers=as_agent(agent_id))
    assert requested.status_code == 201, requested.text
    assert requested.json()["amount_cents"] == 100
    payout_id = requested.json()["payout_id"]

    empty = await client.post("/payouts/request", json=bank, headers=as_agent(agent_id))
    assert empty.status_code == 409

    pending = await client.get("/payouts", headers=ADMIN)
    assert [p["id"] for p in pending.json()["items"]] == [payout_id]

    approved = await client.patch(f"/payouts/{payout_id}", json={"status": "APPROVED"}, headers=ADMIN)
    assert approved.json()["status"] == "APPROVED"
    paid = await client.patch(f"/payouts/{payout_id}", json={"status": "PAID"}, headers=ADMIN)
    assert paid.json()["status"] == "PAID"
    back = await client.patch(f"/payouts/{payout_id}", json={"status": "REQUESTED"}, headers=ADMIN)
    assert back.status_code == 409

    history = await client.get(f"/payouts/history/{agent_id}", headers=as_agent(agent_id))
    assert [p["status"] for p in history.json()["items"]] == ["PAID"]

    summary = (await client.get(f"/agents/{agent_id}/summary", headers=as_agent(agent_id))).json()
    assert summary["total_paid_out"] == 100
    assert summary["available"] == 0


async def test_rejected_payout_release(client):
    agent_id = await create_agent(client)
    marker = (await client.get("/referral/resolve", params={"code": "DANA2024"})).json()["marker"]
    await client.post("/orders", json={"amount_cents": 1000, "attribution_marker": marker})
    [commission] = await commissions_of(client, agent_id)
    await client.post(f"/commissions/{commission['id']}/clear", headers=ADMIN)
    bank = {"agent_id": agent_id, "bank_account_iban": "IL620108000000099999999", "bank_account_name": "Dana Levi"}
    payout_id = (await client.post("/payouts/request", json=bank, headers=ADMIN)).json()["payout_id"]

    await client.patch(f"/payouts/{payout_id}", json={"status": "REJECTED"}, headers=ADMIN)
    assert (await client.get(f"/agents/{agent_id}/summary", headers=ADMIN)).json()["available"] == 0

    released = await client.post(f"/payouts/{payout_id}/release", headers=ADMIN)
    assert released.status_code == 200, released.text
    assert released.json()["released_at"] is not None
    assert (await client.get(f"/agents/{agent_id}/summary", headers=ADMIN)).json()["available"] == 100


async def test_agents_see_only_their_own_ledger(client):
    dana = await create_agent(client)
    omer = await create_agent(client, email="omer@example.com", code="OMER2024")

    assert (await client.get(f"/agents/{omer}/summary", headers=as_agent(dana))).status_code == 403
    assert (await client.get(f"/agents/{dana}/summary")).status_code == 401
    assert (await client.get(f"/payouts/history/{omer}", headers=as_agent(dana))).status_code == 403
    bank = {"agent_id": omer, "bank_account_iban": "IL620108000000099999999", "bank_account_name": "Omer Katz"}
    assert (await client.post("/payouts/request", json=bank, headers=as_agent(dana))).status_code == 403


async def test_admin_only_routes(client):
    agent_id = await create_agent(client)
    assert (await client.get("/payouts", headers=as_agent(agent_id))).status_code == 403
    assert (await client.get("/settings/commission-rate", headers=as_agent(agent_id))).status_code == 403
    assert (await client.post("/agents", json={"email": "x@example.com"}, headers=as_agent(agent_id))).status_code == 403


async def test_commission_rate_settings(client):
    current = await client.get("/settings/commission-rate", headers=ADMIN)
    assert current.status_code == 200, current.text
    assert Decimal(current.json()["commission_rate"]) == Decimal("0.10")

    updated = await client.put("/settings/commission-rate", json={"rate": "0.12"}, headers=ADMIN)
    assert updated.status_code == 200, updated.text
    assert Decimal(updated.json()["commission_rate"]) == Decimal("0.12")

    invalid = await client.put("/settings/commission-rate", json={"rate": "1.5"}, headers=ADMIN)
    assert invalid.status_code == 422


async def test_agent_override(client):
    agent_id = await create_agent(client)
    response = await client.put(f"/agents/{agent_id}/commission-override", json={"rate": "0.15"}, headers=ADMIN)
    assert response.status_code == 200, response.text
    assert Decimal(response.json()["commission_rate_override"]) == Decimal("0.15")

    marker = (await client.get("/referral/resolve", params={"code": "DANA2024"})).json()["marker"]
    await client.post("/orders", json={"amount_cents": 1000, "attribution_marker": marker})
    [commission] = await commissions_of(client, agent_id)
    assert commission["commission_amount_cents"] == 150


async def test_admin_lists_agents(client):
    dana = await create_agent(client)
    await create_agent(client, email="omer@example.com", code="OMER2024")

    response = await client.get("/agents", headers=ADMIN)
    assert response.status_code == 200, response.text
    items = response.json()["items"]
    assert {a["referral_code"] for a in items} == {"DANA2024", "OMER2024"}
    assert {"id", "email", "full_name", "commission_rate_override", "is_active", "created_at"} <= set(items[0])

    assert (await client.get("/agents", headers=as_agent(dana))).status_code == 403


async def test_oversized_order_amount(client):
    assert (await client.post("/orders", json={"amount_cents": 10**19})).status_code == 422
    assert (await client.post("/orders", json={"total_amount": "99999999999.99"})).status_code == 422
