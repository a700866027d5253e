import pytest

url_prefix="/api/v1"
STRONG_PASS="Str0ng!Pass"


@pytest.mark.asyncio
async def test_admin_lists_users_with_counts(ac_client, admin, buyer, seller):
    resp = await ac_client.get(f"{url_prefix}/admin/users", headers=admin.headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    emails = {u["email"] for u in data["items"]}
    assert {admin.email, buyer.email, seller.email} <= emails
    assert data["counts"]["total"] == 3
    assert data["counts"]["sellers"] == 1
    assert data["counts"]["active"] == 3

    resp = await ac_client.get(f"{url_prefix}/admin/users", headers=admin.headers, params={"role": "personal"})
    assert [u["email"] for u in resp.json()["data"]["items"]] == [seller.email]


@pytest.mark.asyncio
async def test_non_admin_cannot_manage_users(ac_client, buyer):
    resp = await ac_client.get(f"{url_prefix}/admin/users", headers=buyer.headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_suspend_blocks_login_and_requests(ac_client, admin, buyer):
    resp = await ac_client.post(f"{url_prefix}/admin/users/{buyer.id}/suspend", headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["status"] == "suspended"

    # the old token is still signed but the account is blocked
    resp = await ac_client.get(f"{url_prefix}/users/me", headers=buyer.headers)
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "ACCOUNT_BLOCKED"

    resp = await ac_client.post(f"{url_prefix}/auth/login", json={"email": buyer.email, "password": STRONG_PASS})
    assert resp.status_code == 403

    resp = await ac_client.post(f"{url_prefix}/admin/users/{buyer.id}/activate", headers=admin.headers)
    assert resp.status_code == 200
    resp = await ac_client.get(f"{url_prefix}/users/me", headers=buyer.headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_user_action_errors(ac_client, admin, buyer):
    resp = await ac_client.post(f"{url_prefix}/admin/users/{buyer.id}/promote", headers=admin.headers)
    assert resp.status_code == 422

    resp = await ac_client.post(f"{url_prefix}/admin/users/0190a1b2-0000-7000-8000-000000000000/ban", headers=admin.headers)
    assert resp.status_code == 404

    resp = await ac_client.post(f"{url_prefix}/admin/users/{admin.id}/ban", headers=admin.headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_user_action_is_audited(ac_client, admin, buyer):
    await ac_client.post(f"{url_prefix}/admin/users/{buyer.id}/ban", headers=admin.headers)
    resp = await ac_client.get(f"{url_prefix}/admin/audit", headers=admin.headers)
    assert resp.status_code == 200
    actions = [e["action"] for e in resp.json()["data"]["items"]]
    assert "user.ban" in actions


@pytest.mark.asyncio
async def test_export_users_csv(ac_client, admin, seller):
    resp = await ac_client.get(f"{url_prefix}/admin/users/export", headers=admin.headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="users-' in resp.headers["content-disposition"]
    lines = resp.text.strip().splitlines()
    assert lines[0] == "User ID,Name,Email,Role,Status,Location,Joined,Last Login"
    assert any(seller.email in line for line in lines[1:])


@pytest.mark.asyncio
async def test_user_search_treats_wildcards_literally(ac_client, admin, buyer, register):
    await register("ali_khan@goryl.pk", "normal", "Ali Khan")

    async def found(term):
        resp = await ac_client.get(f"{url_prefix}/admin/users", headers=admin.headers, params={"search": term})
        assert resp.status_code == 200
        return {u["email"] for u in resp.json()["data"]["items"]}

    assert await found("%") == set()
    assert await found("_") == {"ali_khan@goryl.pk"}
    assert await found("i_k") == {"ali_khan@goryl.pk"}
    assert await found("buyer") == {buyer.email}
