import csv
import io
import pytest

url_prefix="/api/v1"


def _message(resp):
    return resp.json()["error"]["details"]["message"]


@pytest.mark.asyncio
async def test_seller_finance_overview(ac_client, market, seller, buyer, admin, register):
    brand = await register("brand@goryl.pk", "brand", "Indus Threads")
    await market.delivered_sale(seller, buyer, price=15_000)
    await market.delivered_sale(seller, buyer, price=5_000)
    await market.delivered_sale(brand, buyer, price=7_000)

    resp = await ac_client.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers, json={"amount": 4_000})
    assert resp.status_code == 201

    resp = await ac_client.get(f"{url_prefix}/admin/finance/sellers", headers=admin.headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    by_id = {s["seller_id"]: s for s in data["items"]}
    assert set(by_id) == {seller.id, brand.id}

    mine = by_id[seller.id]
    assert mine["seller_name"] == "Sana Seller"
    assert mine["total_revenue"] == 20_000
    assert mine["total_products_sold"] == 2
    assert mine["pending_withdrawals"] == 4_000
    assert mine["available_balance"] == 16_000
    assert mine["last_payment_date"] is None

    stats = data["platform_stats"]
    assert stats["total_revenue"] == 27_000
    assert stats["total_pending"] == 4_000
    assert stats["total_sellers"] == 2

    resp = await ac_client.get(f"{url_prefix}/admin/finance/sellers", headers=admin.headers, params={"search": "indus"})
    assert [s["seller_id"] for s in resp.json()["data"]["items"]] == [brand.id]

    resp = await ac_client.get(f"{url_prefix}/admin/finance/sellers/{brand.id}", headers=admin.headers)
    assert resp.json()["data"]["account_type"] == "brand"


@pytest.mark.asyncio
async def test_finance_needs_admin(ac_client, seller):
    resp = await ac_client.get(f"{url_prefix}/admin/finance/sellers", headers=seller.headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_pay_seller_settles_oldest_pending(ac_client, market, seller, buyer, admin):
    pay = f"{url_prefix}/admin/finance/sellers/{seller.id}/pay"

    resp = await ac_client.post(pay, headers=admin.headers, json={"amount": 1_000})
    assert resp.status_code == 422
    assert _message(resp) == "Please fill all fields"

    resp = await ac_client.post(pay, headers=admin.headers, json={"amount": 1_000, "transaction_id": "TXN-1"})
    assert resp.status_code == 404
    assert _message(resp) == "No pending withdraw request found for this seller"

    await market.delivered_sale(seller, buyer, price=30_000)
    first = (await ac_client.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers,
                                  json={"amount": 10_000})).json()["data"]
    await ac_client.post(f"{url_prefix}/payments/withdraw-requests", headers=seller.headers, json={"amount": 6_000})

    resp = await ac_client.post(pay, headers=admin.headers, json={"amount": 10_000, "transaction_id": "TXN-2"})
    assert resp.status_code == 200
    body = resp.json()["data"]
    assert body["message"] == "Payment processed"
    assert body["request"]["id"] == first["id"]
    assert body["request"]["transaction_id"] == "TXN-2"

    resp = await ac_client.get(f"{url_prefix}/admin/finance/sellers/{seller.id}", headers=admin.headers)
    detail = resp.json()["data"]
    assert detail["total_withdrawn"] == 10_000
    assert detail["payments_received_count"] == 1
    assert detail["pending_withdrawals"] == 6_000
    assert detail["available_balance"] == 14_000
    assert detail["last_payment_date"] is not None

    resp = await ac_client.post(f"{url_prefix}/admin/finance/sellers/0190a1b2-0000-7000-8000-000000000000/pay",
                                headers=admin.headers, json={"amount": 1, "transaction_id": "TXN-3"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_finance_report_export(ac_client, market, seller, buyer, admin):
    await market.delivered_sale(seller, buyer, price=123_456)

    resp = await ac_client.get(f"{url_prefix}/admin/finance/export", headers=admin.headers)
    assert resp.status_code == 200
    assert 'filename="finance-report-' in resp.headers["content-disposition"]
    assert resp.text.startswith('"Platform Finance Report"\n"Generated:",')

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert ["Total Revenue", "$1,234.56"] in rows
    assert ["Total Sellers", "1"] in rows
    header_at = rows.index(["Seller Name", "Email", "Account Type", "Total Products", "Products Sold", "Total Orders",
                            "Total Revenue", "Total Earnings", "Total Payments Received", "Payments Count",
                            "Pending Withdrawals", "Available Balance", "Held Amount", "Total Withdrawn",
                            "Last Payment Date"])
    row = rows[header_at + 1]
    assert row[0] == "Sana Seller"
    assert row[1] == seller.email
    assert row[6] == "$1,234.56"
    assert row[-1] == "Never"
