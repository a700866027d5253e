import pytest
from httpx import ASGITransport, AsyncClient
from asgi_lifespan import LifespanManager
from goryl.auth.models import SignupIn
from goryl.auth.services import create_user
from goryl.cache import _cache
from goryl.db.connection import make_engine
from goryl.main import create_app

url_prefix="/api/v1"
STRONG_PASS="Str0ng!Pass"


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    # cache helpers fall through to the loader when no client is configured
    monkeypatch.setattr(_cache, "redis_client", None)


@pytest.fixture
async def app(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path}/goryl_test.db")
    app = create_app(engine)
    async with LifespanManager(app):
        yield app


@pytest.fixture
async def ac_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _login(ac, email):
    resp = await ac.post(f"{url_prefix}/auth/login", json={"email": email, "password": STRONG_PASS})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


class Account:
    def __init__(self, id, email, name, headers):
        self.id = id
        self.email = email
        self.name = name
        self.headers = headers


@pytest.fixture
def register(ac_client):
    async def _register(email, role="normal", name=None):
        name = name or email.split("@")[0].title()
        resp = await ac_client.post(f"{url_prefix}/auth/signup",
                                    json={"email": email, "password": STRONG_PASS, "name": name, "role": role})
        assert resp.status_code == 201, resp.text
        return Account(resp.json()["data"]["id"], email, name, await _login(ac_client, email))
    return _register


@pytest.fixture
async def admin(app, ac_client):
    async with app.state.session_maker() as session:
        user = await create_user(session, SignupIn(email="admin@goryl.pk", password=STRONG_PASS, name="Root Admin", role="admin"))
    return Account(str(user.public_id), user.email, user.name, await _login(ac_client, "admin@goryl.pk"))


@pytest.fixture
async def buyer(register):
    return await register("buyer@goryl.pk", "normal", "Bilal Buyer")


@pytest.fixture
async def seller(register):
    return await register("seller@goryl.pk", "personal", "Sana Seller")


class Market:
    """Drives the catalog endpoints to put orders in a given state."""

    def __init__(self, ac, admin):
        self.ac = ac
        self.admin = admin
        self._category = None

    async def category(self):
        if self._category is None:
            resp = await self.ac.post(f"{url_prefix}/admin/categories", headers=self.admin.headers,
                                      json={"name": "Handicrafts", "sort_order": 1})
            assert resp.status_code == 201, resp.text
            self._category = resp.json()["data"]["slug"]
        return self._category

    async def product(self, seller, price=10_000, stock=50, name="Block printed shawl", approve=True):
        resp = await self.ac.post(f"{url_prefix}/products", headers=seller.headers,
                                  json={"name": name, "price": price, "stock_qty": stock,
                                        "category_slug": await self.category()})
        assert resp.status_code == 201, resp.text
        pid = resp.json()["data"]["product"]["id"]
        if approve:
            resp = await self.ac.post(f"{url_prefix}/admin/products/{pid}/approve", headers=self.admin.headers)
            assert resp.status_code == 200, resp.text
        return pid

    async def order(self, buyer, product_id, quantity=1):
        resp = await self.ac.post(f"{url_prefix}/orders", headers=buyer.headers,
                                  json={"items": [{"product_id": product_id, "quantity": quantity}]})
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    async def set_status(self, seller, order_id, status):
        resp = await self.ac.post(f"{url_prefix}/orders/{order_id}/status", headers=seller.headers, json={"status": status})
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    async def delivered_sale(self, seller, buyer, price=10_000, quantity=1):
        pid = await self.product(seller, price=price)
        order_id = await self.order(buyer, pid, quantity)
        await self.set_status(seller, order_id, "delivered")
        return order_id, pid


@pytest.fixture
def market(ac_client, admin):
    return Market(ac_client, admin)
