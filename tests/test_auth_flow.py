import pytest
from goryl.auth.utils import decode_token

url_prefix="/api/v1"
STRONG_PASS="Str0ng!Pass"


def _message(resp):
    return resp.json()["error"]["details"]["message"]


@pytest.mark.asyncio
async def test_signup_and_login(ac_client):
    resp = await ac_client.post(f"{url_prefix}/auth/signup",
                                json={"email": "Ayesha@Goryl.pk", "password": STRONG_PASS, "name": "Ayesha", "role": "personal"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "ok"
    assert body["data"]["id"]

    # stored lowercased
    resp = await ac_client.post(f"{url_prefix}/auth/login", json={"email": "ayesha@goryl.pk", "password": STRONG_PASS})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["role"] == "personal"
    assert data["access_token"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload,code", [
    ({"email": "not-an-email", "password": STRONG_PASS}, 400),
    ({"email": "weak@goryl.pk", "password": "weakpass"}, 400),
    ({"email": "boss@goryl.pk", "password": STRONG_PASS, "role": "admin"}, 422),
    ({"email": "odd@goryl.pk", "password": STRONG_PASS, "role": "wizard"}, 422),
])
async def test_signup_rejects_bad_input(ac_client, payload, code):
    resp = await ac_client.post(f"{url_prefix}/auth/signup", json=payload)
    assert resp.status_code == code
    assert resp.json()["status"] == "error"


@pytest.mark.asyncio
async def test_duplicate_signup(ac_client, buyer):
    resp = await ac_client.post(f"{url_prefix}/auth/signup", json={"email": buyer.email, "password": STRONG_PASS})
    assert resp.status_code == 409
    assert _message(resp) == "User with email already exists"


@pytest.mark.asyncio
async def test_login_wrong_password(ac_client, buyer):
    resp = await ac_client.post(f"{url_prefix}/auth/login", json={"email": buyer.email, "password": "Wr0ng!Pass"})
    assert resp.status_code == 401
    assert _message(resp) == "Invalid email or password"


@pytest.mark.asyncio
async def test_protected_route_needs_token(ac_client):
    resp = await ac_client.get(f"{url_prefix}/users/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_AUTH"

    resp = await ac_client.get(f"{url_prefix}/users/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me(ac_client, seller):
    resp = await ac_client.get(f"{url_prefix}/users/me", headers=seller.headers)
    assert resp.status_code == 200
    me = resp.json()["data"]
    assert me["id"] == seller.id
    assert me["role"] == "personal"
    assert me["status"] == "active"


@pytest.mark.asyncio
async def test_health_is_open(ac_client):
    resp = await ac_client.get(f"{url_prefix}/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_access_token_claims(ac_client, seller):
    resp = await ac_client.post(f"{url_prefix}/auth/login", json={"email": seller.email, "password": STRONG_PASS})
    claims = decode_token(resp.json()["data"]["access_token"])
    assert set(claims) == {"sub", "iat", "exp", "jti", "roles"}
    assert claims["sub"] == seller.id
    assert len(claims["roles"]) == 1
