from models.branch import Branch
from models.sale import SaleStatus
from models.user import Role, User
from services import credit


def _sale_body(product, qty, **extra):
    body = {"sale_type": "CASH", "items": [{"product_id": product.id, "quantity": qty, "unit_price": 2000}]}
    body.update(extra)
    return body


def test_requires_login(client, app):
    resp = client.get("/api/stock")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"


def test_login_rejects_bad_password(client, admin):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "mala"})
    assert resp.status_code == 401


def test_login_and_me(client, admin, login):
    login(admin)
    resp = client.get("/api/auth/me")
    assert resp.get_json()["user"]["role"] == "ADMIN"

    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/me").status_code == 401


def test_sale_lifecycle_over_http(client, admin, login, branch_a, product, put_stock, qty_of):
    put_stock(product, branch_a, 10)
    login(admin)

    resp = client.post("/api/sales", json=_sale_body(product, 4))
    assert resp.status_code == 201
    sale = resp.get_json()
    assert sale["total"] == 8000
    assert sale["items"][0]["base_quantity"] == 4
    assert qty_of(product, branch_a) == 6

    resp = client.post(f"/api/sales/{sale['id']}/cancel")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == SaleStatus.CANCELLED

    resp = client.post(f"/api/sales/{sale['id']}/cancel")
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "ALREADY_CANCELLED"
    assert qty_of(product, branch_a) == 10


def test_domain_errors_map_to_json(client, admin, login, branch_a, product, put_stock):
    put_stock(product, branch_a, 1)
    login(admin)

    resp = client.post("/api/sales", json=_sale_body(product, 5))
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "INSUFFICIENT_STOCK"

    resp = client.post("/api/sales", json={"sale_type": "CASH", "items": []})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_REQUEST"

    resp = client.get("/api/sales/nope")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"


def test_huge_quantity_is_a_client_error(client, admin, login, branch_a, product, put_stock, qty_of):
    put_stock(product, branch_a, 10)
    login(admin)

    resp = client.post("/api/sales", json=_sale_body(product, "1e30"))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_QUANTITY"
    assert qty_of(product, branch_a) == 10


def test_cashier_cannot_cancel(client, cashier, login, branch_a, product, put_stock):
    put_stock(product, branch_a, 10)
    login(cashier)

    sale = client.post("/api/sales", json=_sale_body(product, 1)).get_json()
    resp = client.post(f"/api/sales/{sale['id']}/cancel")
    assert resp.status_code == 403


def test_cashier_is_pinned_to_own_branch(client, cashier, login, branch_a, branch_b, product, put_stock, qty_of):
    put_stock(product, branch_a, 10)
    put_stock(product, branch_b, 10)
    login(cashier)

    resp = client.post("/api/sales", json=_sale_body(product, 2, branch_id=branch_b.id))
    assert resp.status_code == 201
    assert resp.get_json()["branch_id"] == branch_a.id
    assert qty_of(product, branch_b) == 10


def test_credit_payment_over_http(client, session, admin, login, branch_a, product, customer, put_stock):
    put_stock(product, branch_a, 10)
    login(admin)
    sale = client.post(
        "/api/sales", json=_sale_body(product, 5, sale_type="CREDIT", customer_id=customer.id)
    ).get_json()
    account_id = credit.find_by_origin(session, sale_id=sale["id"]).id

    resp = client.post(f"/api/credits/{account_id}/payments", json={"amount": 20000})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "OVERPAYMENT_NOT_ALLOWED"

    resp = client.post(f"/api/credits/{account_id}/payments", json={"amount": 4000})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["account"]["balance_amount"] == 6000
    assert body["account"]["status"] == "PAGADO_PARCIAL"

    detail = client.get(f"/api/credits/{account_id}").get_json()
    assert [p["amount"] for p in detail["payments"]] == [4000]


def test_transfer_over_http(client, admin, login, branch_a, branch_b, product, put_stock, qty_of):
    put_stock(product, branch_a, 10)
    login(admin)

    resp = client.post("/api/transfers", json={
        "type": "SEND",
        "to_branch_id": branch_b.id,
        "items": [{"product_id": product.id, "quantity": 3}],
    })
    assert resp.status_code == 201
    transfer = resp.get_json()
    assert transfer["status"] == "PENDING"
    assert transfer["from_branch_id"] == branch_a.id

    assert client.post(f"/api/transfers/{transfer['id']}/ship").get_json()["status"] == "IN_TRANSIT"
    kardex = client.get(f"/api/stock/kardex/{product.id}").get_json()
    assert kardex["in_transit"] == 3

    resp = client.post(f"/api/transfers/{transfer['id']}/approve")
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "INVALID_TRANSITION"

    assert client.post(f"/api/transfers/{transfer['id']}/complete").get_json()["status"] == "COMPLETED"
    assert qty_of(product, branch_a) == 7
    assert qty_of(product, branch_b) == 3

    assert client.post(f"/api/transfers/{transfer['id']}/teleport").status_code == 404


def test_stock_adjust_and_alerts(client, admin, login, branch_a, product, put_stock):
    put_stock(product, branch_a, 50)
    login(admin)

    resp = client.post("/api/stock/adjust", json={"product_id": product.id, "quantity": 4, "reason": "Merma"})
    assert resp.status_code == 200
    assert resp.get_json()["quantity"] == 4

    alerts = client.get("/api/stock/alerts").get_json()
    assert [a["product"]["id"] for a in alerts] == [product.id]

    resp = client.post("/api/stock/adjust", json={"product_id": product.id, "quantity": -1, "reason": "x"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_QUANTITY"


def test_cash_endpoints(client, admin, login, branch_a):
    login(admin)
    resp = client.post("/api/cash/movements", json={
        "type": "EXPENSE", "category": "EXPENSE", "amount": 1500, "description": "Agua",
    })
    assert resp.status_code == 201

    assert client.get("/api/cash/balance").get_json()["balance"] == -1500
    daily = client.get("/api/cash/daily").get_json()
    assert daily["expenses"] == 1500
    assert client.get("/api/cash/summary").get_json()["EXPENSE"]["expense"] == 1500


def test_unit_endpoints(client, admin, login, product):
    login(admin)
    resp = client.post(f"/api/products/{product.id}/units", json={
        "unit_name": "Quintal", "unit_symbol": "qq", "conversion_factor": "100", "unit_type": "PURCHASE",
    })
    assert resp.status_code == 201
    unit_id = resp.get_json()["id"]

    resp = client.post(f"/api/products/{product.id}/units/convert", json={"quantity": "1.5", "unit_id": unit_id})
    assert resp.get_json()["base_quantity"] == 150

    resp = client.post(f"/api/products/{product.id}/units/convert", json={"quantity": 1, "unit_id": "nope"})
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "UNIT_NOT_FOUND"

    assert client.delete(f"/api/products/{product.id}/units/{unit_id}").status_code == 200
    assert [u["unit_symbol"] for u in client.get(f"/api/products/{product.id}/units").get_json()] == ["lb"]


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/no-existe")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"


def test_other_branch_cannot_cancel_or_read_sale(client, cashier, manager_b, login, branch_a, branch_b,
                                                 product, put_stock, qty_of):
    put_stock(product, branch_a, 10)
    login(cashier)
    sale = client.post("/api/sales", json=_sale_body(product, 5)).get_json()
    assert qty_of(product, branch_a) == 5

    login(manager_b)
    resp = client.post(f"/api/sales/{sale['id']}/cancel")
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "FORBIDDEN"
    assert client.get(f"/api/sales/{sale['id']}").status_code == 403

    assert qty_of(product, branch_a) == 5
    assert client.post("/api/sales/nope/cancel").status_code == 404


def test_other_branch_cannot_touch_purchase(client, admin, manager_b, login, branch_a, branch_b,
                                            product, supplier, qty_of):
    login(admin)
    purchase = client.post("/api/purchases", json={
        "supplier_id": supplier.id,
        "purchase_type": "CASH",
        "items": [{"product_id": product.id, "quantity": 6, "unit_cost": 1500}],
    }).get_json()

    login(manager_b)
    assert client.get(f"/api/purchases/{purchase['id']}").status_code == 403
    assert client.patch(f"/api/purchases/{purchase['id']}", json={"notes": "x"}).status_code == 403
    assert client.post(f"/api/purchases/{purchase['id']}/cancel").status_code == 403

    assert qty_of(product, branch_a) == 6
    login(admin)
    detail = client.get(f"/api/purchases/{purchase['id']}").get_json()
    assert detail["status"] == "COMPLETED"
    assert detail["notes"] != "x"


def test_other_branch_cannot_pay_credit_account(client, session, admin, manager_b, login, branch_a,
                                                product, customer, put_stock):
    put_stock(product, branch_a, 10)
    login(admin)
    sale = client.post(
        "/api/sales", json=_sale_body(product, 5, sale_type="CREDIT", customer_id=customer.id)
    ).get_json()
    account = credit.find_by_origin(session, sale_id=sale["id"])

    login(manager_b)
    assert client.post(f"/api/credits/{account.id}/payments", json={"amount": 1000}).status_code == 403
    assert client.get(f"/api/credits/{account.id}").status_code == 403

    assert account.paid_amount == 0
    assert customer.current_debt == 10000


def test_transfer_actions_follow_branch_side(client, manager_a, manager_b, login, branch_a, branch_b,
                                             product, put_stock, qty_of):
    put_stock(product, branch_a, 10)
    login(manager_a)
    send = client.post("/api/transfers", json={
        "type": "SEND",
        "to_branch_id": branch_b.id,
        "items": [{"product_id": product.id, "quantity": 3}],
    }).get_json()
    assert send["from_branch_id"] == branch_a.id

    # solo el origen despacha
    login(manager_b)
    assert client.post(f"/api/transfers/{send['id']}/ship").status_code == 403
    assert qty_of(product, branch_a) == 10
    login(manager_a)
    assert client.post(f"/api/transfers/{send['id']}/ship").status_code == 200

    # solo el destino confirma la recepción
    assert client.post(f"/api/transfers/{send['id']}/complete").status_code == 403
    login(manager_b)
    assert client.post(f"/api/transfers/{send['id']}/complete").get_json()["status"] == "COMPLETED"
    assert qty_of(product, branch_b) == 3


def test_request_is_approved_by_destination_only(client, admin, manager_a, manager_b, login, branch_a,
                                                 branch_b, product, put_stock):
    put_stock(product, branch_a, 10)
    login(manager_b)
    request_ = client.post("/api/transfers", json={
        "type": "REQUEST",
        "from_branch_id": branch_a.id,
        "items": [{"product_id": product.id, "quantity": 2}],
    }).get_json()
    assert request_["to_branch_id"] == branch_b.id

    login(manager_a)
    assert client.post(f"/api/transfers/{request_['id']}/approve").status_code == 403
    assert client.get(f"/api/transfers/{request_['id']}").get_json()["status"] == "REQUESTED"

    login(manager_b)
    assert client.post(f"/api/transfers/{request_['id']}/approve").get_json()["status"] == "PENDING"


def test_transfer_is_hidden_from_unrelated_branch(client, session, admin, login, branch_a, branch_b,
                                                  product, put_stock):
    branch_c = Branch(name="Sucursal C", code="C")
    session.add(branch_c)
    session.flush()
    outsider = User(username="gerente_c", name="Gerente C", role=Role.GERENTE, branch_id=branch_c.id)
    outsider.set_password("secreto123")
    session.add(outsider)
    session.commit()

    put_stock(product, branch_a, 10)
    login(admin)
    transfer = client.post("/api/transfers", json={
        "type": "SEND",
        "to_branch_id": branch_b.id,
        "items": [{"product_id": product.id, "quantity": 1}],
    }).get_json()

    login(outsider)
    assert client.get(f"/api/transfers/{transfer['id']}").status_code == 403
    assert client.post(f"/api/transfers/{transfer['id']}/cancel").status_code == 403


def test_stock_by_product_and_summary(client, manager_a, login, branch_a, branch_b, product, put_stock):
    put_stock(product, branch_a, 10)
    put_stock(product, branch_b, 4)
    login(manager_a)

    body = client.get(f"/api/stock/product/{product.id}").get_json()
    assert {s["branch_id"]: s["quantity"] for s in body["branches"]} == {branch_a.id: 10, branch_b.id: 4}
    assert body["in_transit"] == 0

    summary = client.get("/api/stock/summary", query_string={"branch_id": branch_b.id}).get_json()
    assert summary == {"branch_id": branch_a.id, "total_units": 10, "inventory_value": 15000}


def test_auth_blueprint_comes_from_routes_package(app):
    from routes import auth_bp

    assert app.blueprints["auth"] is auth_bp
    rules = {r.rule for r in app.url_map.iter_rules()}
    assert {"/api/auth/login", "/api/auth/logout", "/api/auth/me"} <= rules
