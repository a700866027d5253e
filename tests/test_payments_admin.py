import asyncio
import pytest
from fastapi import HTTPException
from goryl.payments.services import create_withdraw_request, process_withdraw_request
from goryl.users.repository import get_user_by_pid

url_prefix="/api/v1"


def _message(resp):
    return resp.json()["error"]["details"]["message"]


async def _withdraw(ac, seller, amount):
    resp = await ac.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers, json={"amount": amount})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _balance(ac, seller):
    resp = await ac.get(f"{url_prefix}/payments/balance", headers=seller.headers)
    assert resp.status_code == 200
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_balance_follows_delivered_orders(ac_client, market, seller, buyer):
    balance = await _balance(ac_client, seller)
    assert balance["available_balance"] == 0
    assert balance["withdrawal_limit"] == 50_000

    order_id = await market.order(buyer, await market.product(seller, price=12_000))
    assert (await _balance(ac_client, seller))["total_earnings"] == 0

    await market.set_status(seller, order_id, "delivered")
    balance = await _balance(ac_client, seller)
    assert balance["total_earnings"] == 12_000
    assert balance["available_balance"] == 12_000


@pytest.mark.asyncio
async def test_withdraw_request_rules(ac_client, market, seller, buyer):
    resp = await ac_client.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers, json={"amount": 100})
    assert resp.status_code == 409
    assert _message(resp) == "Insufficient funds. Available: $0.00"

    await market.delivered_sale(seller, buyer, price=80_000)

    resp = await ac_client.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers, json={"amount": 60_000})
    assert resp.status_code == 409
    assert _message(resp) == "Amount exceeds your per-withdrawal limit of $500.00"

    resp = await ac_client.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers, json={"amount": 0})
    assert resp.status_code == 422

    wr = await _withdraw(ac_client, seller, 30_000)
    assert wr["status"] == "pending"
    assert wr["note"] == "Withdraw request for $300.00"
    assert wr["payment_method"] == "bank_transfer"

    balance = await _balance(ac_client, seller)
    assert balance["pending_withdrawals"] == 30_000
    assert balance["available_balance"] == 50_000

    resp = await ac_client.get(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers)
    assert [r["id"] for r in resp.json()["data"]["items"]] == [wr["id"]]


@pytest.mark.asyncio
async def test_buyers_cannot_withdraw(ac_client, buyer):
    resp = await ac_client.get(f"{url_prefix}/payments/balance", headers=buyer.headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_processes_requests(ac_client, market, seller, buyer, admin):
    await market.delivered_sale(seller, buyer, price=40_000)
    first = await _withdraw(ac_client, seller, 10_000)
    second = await _withdraw(ac_client, seller, 5_000)

    resp = await ac_client.get(f"{url_prefix}/admin/payments/withdraw-requests", headers=admin.headers)
    data = resp.json()["data"]
    assert data["stats"]["count"] == 2
    assert data["stats"]["total_amount"] == 15_000
    assert data["stats"]["pending_count"] == 2

    process = f"{url_prefix}/admin/payments/withdraw-requests/{first['id']}/process"
    resp = await ac_client.post(process, headers=admin.headers, json={"action": "approve"})
    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == "Request approved"

    resp = await ac_client.post(process, headers=admin.headers, json={"action": "approve"})
    assert resp.status_code == 409
    assert _message(resp) == "Cannot approve a request that is approved"

    resp = await ac_client.post(process, headers=admin.headers, json={"action": "pay"})
    assert resp.status_code == 422
    assert _message(resp) == "Transaction ID is required"

    resp = await ac_client.post(process, headers=admin.headers,
                                json={"action": "pay", "transaction_id": "TXN-881", "custom_amount": 9_000})
    assert resp.status_code == 200
    paid = resp.json()["data"]["request"]
    assert paid["status"] == "paid"
    assert paid["paid_amount"] == 9_000
    assert paid["processed_by_role"] == "admin"

    resp = await ac_client.post(f"{url_prefix}/admin/payments/withdraw-requests/{second['id']}/process",
                                headers=admin.headers, json={"action": "reject", "reason": "Bank details missing"})
    assert resp.json()["data"]["request"]["rejection_reason"] == "Bank details missing"

    resp = await ac_client.post(process, headers=admin.headers, json={"action": "refund"})
    assert resp.status_code == 422
    assert _message(resp) == "Unknown action: refund"

    balance = await _balance(ac_client, seller)
    assert balance["total_withdrawn"] == 9_000
    assert balance["pending_withdrawals"] == 0
    assert balance["available_balance"] == 31_000

    resp = await ac_client.get(f"{url_prefix}/admin/payments/withdraw-requests", headers=admin.headers,
                               params={"status": "paid"})
    assert [r["id"] for r in resp.json()["data"]["items"]] == [first["id"]]

    resp = await ac_client.get(f"{url_prefix}/admin/audit", headers=admin.headers)
    actions = {e["action"] for e in resp.json()["data"]["items"]}
    assert {"withdraw.approve", "withdraw.pay", "withdraw.reject"} <= actions


@pytest.mark.asyncio
async def test_search_and_export(ac_client, market, seller, buyer, admin):
    await market.delivered_sale(seller, buyer, price=20_000)
    wr = await _withdraw(ac_client, seller, 12_345)

    resp = await ac_client.get(f"{url_prefix}/admin/payments/withdraw-requests", headers=admin.headers,
                               params={"search": "sana"})
    assert len(resp.json()["data"]["items"]) == 1
    resp = await ac_client.get(f"{url_prefix}/admin/payments/withdraw-requests", headers=admin.headers,
                               params={"search": wr["id"][:8]})
    assert len(resp.json()["data"]["items"]) == 1
    resp = await ac_client.get(f"{url_prefix}/admin/payments/withdraw-requests", headers=admin.headers,
                               params={"search": "nobody"})
    assert resp.json()["data"]["items"] == []

    resp = await ac_client.get(f"{url_prefix}/admin/payments/withdraw-requests", headers=admin.headers,
                               params={"date_from": "2001-01-01", "date_to": "2001-12-31"})
    assert resp.json()["data"]["items"] == []

    resp = await ac_client.get(f"{url_prefix}/admin/payments/withdraw-requests/export", headers=admin.headers)
    assert resp.status_code == 200
    assert 'filename="payments-' in resp.headers["content-disposition"]
    lines = resp.text.strip().splitlines()
    assert lines[0] == "Payment ID,Seller,Amount,Status,Requested Date,Processed Date"
    assert lines[1].startswith(f'{wr["id"]},Sana Seller,$123.45,pending,')


@pytest.mark.asyncio
async def test_payment_holds(ac_client, market, seller, buyer, admin):
    await market.delivered_sale(seller, buyer, price=10_000)

    resp = await ac_client.post(f"{url_prefix}/admin/payments/holds", headers=admin.headers,
                                json={"seller_id": seller.id, "amount": 2_000})
    assert resp.status_code == 422
    assert _message(resp) == "Please fill all fields"

    resp = await ac_client.post(f"{url_prefix}/admin/payments/holds", headers=admin.headers,
                                json={"seller_id": seller.id, "amount": 20_000, "reason": "Dispute"})
    assert resp.status_code == 409
    assert _message(resp) == "Hold amount exceeds available balance of $100.00"

    resp = await ac_client.post(f"{url_prefix}/admin/payments/holds", headers=admin.headers,
                                json={"seller_id": seller.id, "amount": 2_000, "reason": "Chargeback dispute"})
    assert resp.status_code == 201
    hold = resp.json()["data"]
    assert hold["seller_name"] == "Sana Seller"
    assert hold["status"] == "active"

    balance = await _balance(ac_client, seller)
    assert balance["held_amount"] == 2_000
    assert balance["available_balance"] == 8_000

    # held money cannot be withdrawn
    resp = await ac_client.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers, json={"amount": 9_000})
    assert resp.status_code == 409

    resp = await ac_client.get(f"{url_prefix}/admin/payments/holds", headers=admin.headers, params={"seller_id": seller.id})
    assert [h["id"] for h in resp.json()["data"]["items"]] == [hold["id"]]

    resp = await ac_client.post(f"{url_prefix}/admin/payments/holds/{hold['id']}/release", headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "released"

    resp = await ac_client.post(f"{url_prefix}/admin/payments/holds/{hold['id']}/release", headers=admin.headers)
    assert resp.status_code == 409
    assert _message(resp) == "Payment hold is already released"

    assert (await _balance(ac_client, seller))["available_balance"] == 10_000


@pytest.mark.asyncio
async def test_admin_payment_methods(ac_client, admin):
    base = f"{url_prefix}/admin/payments/methods"

    resp = await ac_client.post(base, headers=admin.headers,
                                json={"type": "stripe", "account_name": "Stripe", "account_details": {"publishableKey": "pk_live"}})
    assert resp.status_code == 422

    resp = await ac_client.post(base, headers=admin.headers,
                                json={"type": "stripe", "account_name": "Stripe",
                                      "account_details": {"publishableKey": "pk_live_123", "secretKey": "sk_live_abcdef9876"}})
    assert resp.status_code == 201
    method = resp.json()["data"]
    assert method["account_details"]["secretKey"] == "**************9876"
    assert method["account_details"]["publishableKey"] == "pk_live_123"

    # echoing the masked secret keeps the stored one
    resp = await ac_client.patch(f"{base}/{method['id']}", headers=admin.headers,
                                 json={"account_details": {"publishableKey": "pk_live_456",
                                                           "secretKey": method["account_details"]["secretKey"]}})
    assert resp.status_code == 200
    assert resp.json()["data"]["account_details"]["secretKey"].endswith("9876")
    assert resp.json()["data"]["account_details"]["publishableKey"] == "pk_live_456"

    resp = await ac_client.post(base, headers=admin.headers,
                                json={"type": "bank", "account_name": "Meezan", "account_details": "PK36MEZN0001"})
    assert resp.status_code == 201

    resp = await ac_client.get(base, headers=admin.headers)
    assert len(resp.json()["data"]["items"]) == 2

    resp = await ac_client.delete(f"{base}/{method['id']}", headers=admin.headers)
    assert resp.json()["data"]["message"] == "Payment method removed"
    resp = await ac_client.get(base, headers=admin.headers)
    assert [m["type"] for m in resp.json()["data"]["items"]] == ["bank"]

    resp = await ac_client.delete(f"{base}/{method['id']}", headers=admin.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_request_is_paid_once_under_parallel_admins(app, ac_client, market, seller, buyer, admin):
    await market.delivered_sale(seller, buyer, price=10_000)
    wr = await _withdraw(ac_client, seller, 5_000)

    async def pay(transaction_id):
        async with app.state.session_maker() as session:
            request = await process_withdraw_request(session, wr["id"], "pay", "admin", {"transaction_id": transaction_id})
            await session.commit()
            return request.transaction_id

    results = await asyncio.gather(pay("TX-A"), pay("TX-B"), return_exceptions=True)
    conflicts = [r for r in results if isinstance(r, HTTPException)]
    assert len(conflicts) == 1
    assert conflicts[0].status_code == 409
    winner = next(r for r in results if not isinstance(r, HTTPException))

    resp = await ac_client.get(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers)
    [row] = resp.json()["data"]["items"]
    assert row["status"] == "paid"
    assert row["transaction_id"] == winner

    resp = await ac_client.get(f"{url_prefix}/admin/audit", headers=admin.headers)
    assert [e["action"] for e in resp.json()["data"]["items"]].count("withdraw.pay") == 1
    assert (await _balance(ac_client, seller))["total_withdrawn"] == 5_000


@pytest.mark.asyncio
async def test_parallel_withdrawals_cannot_overdraw(app, ac_client, market, seller, buyer):
    await market.delivered_sale(seller, buyer, price=10_000)

    async def withdraw():
        async with app.state.session_maker() as session:
            user = await get_user_by_pid(session, seller.id)
            request = await create_withdraw_request(session, user, 8_000)
            await session.commit()
            return request.amount

    results = await asyncio.gather(withdraw(), withdraw(), return_exceptions=True)
    conflicts = [r for r in results if isinstance(r, HTTPException)]
    assert len(conflicts) == 1
    assert conflicts[0].status_code == 409

    balance = await _balance(ac_client, seller)
    assert balance["pending_withdrawals"] == 8_000
    assert balance["available_balance"] == 2_000
