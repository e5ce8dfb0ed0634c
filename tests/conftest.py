"""Fixtures compartidos: app con SQLite en memoria y un catálogo mínimo."""

from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.branch import Branch
from models.customer import Customer
from models.kardex import StockMoveType
from models.product import Product
from models.supplier import Supplier
from models.unit_conversion import UnitConversion, UnitType
from models.user import Role, User
from services.stock import add_stock, find_stock


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def branch_a(session):
    b = Branch(name="Sucursal A", code="A")
    session.add(b)
    session.commit()
    return b


@pytest.fixture
def branch_b(session):
    b = Branch(name="Sucursal B", code="B")
    session.add(b)
    session.commit()
    return b


@pytest.fixture
def product(session):
    p = Product(name="Arroz", sku="ARZ", unit="libra", cost_price=1500, retail_price=2000, wholesale_price=1800)
    session.add(p)
    session.flush()
    session.add(UnitConversion(product_id=p.id, unit_name="Libra", unit_symbol="lb",
                               conversion_factor=Decimal("1"), unit_type=UnitType.BASE))
    session.commit()
    return p


@pytest.fixture
def other_product(session):
    p = Product(name="Aceite", sku="ACE", unit="unidad", cost_price=6000, retail_price=7500, wholesale_price=7000)
    session.add(p)
    session.commit()
    return p


@pytest.fixture
def dozen(session, product):
    """Unidad de venta: docena = 12 unidades base."""
    u = UnitConversion(product_id=product.id, unit_name="Docena", unit_symbol="dz",
                       conversion_factor=Decimal("12"), unit_type=UnitType.SALE)
    session.add(u)
    session.commit()
    return u


@pytest.fixture
def customer(session):
    c = Customer(name="Pulpería La Esquina", credit_limit=1_000_000, current_debt=0)
    session.add(c)
    session.commit()
    return c


@pytest.fixture
def supplier(session):
    s = Supplier(name="Distribuidora Central", credit_days=15)
    session.add(s)
    session.commit()
    return s


def _user(session, branch, username, role):
    u = User(username=username, name=username.title(), role=role, branch_id=branch.id)
    u.set_password("secreto123")
    session.add(u)
    session.commit()
    return u


@pytest.fixture
def admin(session, branch_a):
    return _user(session, branch_a, "admin", Role.ADMIN)


@pytest.fixture
def cashier(session, branch_a):
    return _user(session, branch_a, "cajero", Role.CAJERO)


@pytest.fixture
def manager_a(session, branch_a):
    return _user(session, branch_a, "gerente_a", Role.GERENTE)


@pytest.fixture
def manager_b(session, branch_b):
    return _user(session, branch_b, "gerente_b", Role.GERENTE)


@pytest.fixture
def put_stock(session):
    """Carga stock inicial como ajuste y confirma."""

    def _put(product, branch, qty):
        add_stock(session, product_id=product.id, branch_id=branch.id, qty=qty, move_type=StockMoveType.ADJUST)
        session.commit()

    return _put


@pytest.fixture
def qty_of(session):
    def _qty(product, branch):
        stock = find_stock(session, product_id=product.id, branch_id=branch.id)
        return stock.quantity if stock else 0

    return _qty


@pytest.fixture
def login(client):
    def _login(user, password="secreto123"):
        resp = client.post("/api/auth/login", json={"username": user.username, "password": password})
        assert resp.status_code == 200
        return resp

    return _login
