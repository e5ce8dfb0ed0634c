from decimal import Decimal

from app import create_app
from models import db
from models.branch import Branch
from models.customer import Customer, CustomerType
from models.product import Product
from models.supplier import Supplier
from models.unit_conversion import SalesType, UnitConversion, UnitType
from models.user import Role, User
from models.kardex import StockMoveType
from services.stock import add_stock, find_stock


def _branch(name: str, code: str) -> Branch:
    b = db.session.query(Branch).filter_by(name=name).first()
    if not b:
        b = Branch(name=name, code=code, is_active=True)
        db.session.add(b)
        db.session.flush()
    return b


def _product(name: str, sku: str, unit: str, cost: int, retail: int, wholesale: int) -> Product:
    p = db.session.query(Product).filter_by(sku=sku).first()
    if not p:
        p = Product(name=name, sku=sku, unit=unit, cost_price=cost, retail_price=retail,
                    wholesale_price=wholesale, is_active=True)
        db.session.add(p)
        db.session.flush()
        db.session.add(UnitConversion(
            product_id=p.id, unit_name=unit.capitalize(), unit_symbol=unit[:3],
            conversion_factor=Decimal("1"), unit_type=UnitType.BASE, sales_type=SalesType.BOTH,
        ))
    return p


def run():
    app = create_app()
    with app.app_context():
        # No usamos db.create_all(): primero correr `flask db upgrade`

        # 1) Sucursales
        matriz = _branch("Sucursal Matriz", "MAT")
        norte = _branch("Sucursal Norte", "NOR")

        # 2) Productos con su unidad base
        arroz = _product("Arroz 80/20", "ARZ-001", "libra", 1500, 2000, 1800)
        aceite = _product("Aceite vegetal 1L", "ACE-001", "unidad", 6000, 7500, 7000)

        # Quintal = 100 libras (compra); arroba = 25 libras (venta mayorista)
        if not db.session.query(UnitConversion).filter_by(product_id=arroz.id, unit_symbol="qq").first():
            db.session.add(UnitConversion(
                product_id=arroz.id, unit_name="Quintal", unit_symbol="qq",
                conversion_factor=Decimal("100"), unit_type=UnitType.PURCHASE,
                wholesale_price=175000, sales_type=SalesType.WHOLESALE,
            ))
            db.session.add(UnitConversion(
                product_id=arroz.id, unit_name="Arroba", unit_symbol="@",
                conversion_factor=Decimal("25"), unit_type=UnitType.SALE,
                wholesale_price=45000, sales_type=SalesType.WHOLESALE,
            ))

        # 3) Cliente y proveedor
        if not db.session.query(Customer).filter_by(name="Pulpería La Esquina").first():
            db.session.add(Customer(name="Pulpería La Esquina", customer_type=CustomerType.WHOLESALE,
                                    credit_limit=500000, current_debt=0))
        if not db.session.query(Supplier).filter_by(name="Distribuidora Central").first():
            db.session.add(Supplier(name="Distribuidora Central", contact_name="Ventas",
                                    credit_days=30, credit_limit=2000000))

        # 4) Usuario admin demo
        user = db.session.query(User).filter_by(username="admin").first()
        if not user:
            user = User(username="admin", name="Admin Demo", role=Role.ADMIN, branch_id=matriz.id, is_active=True)
            user.set_password("admin1234")
            db.session.add(user)
        else:
            user.is_active = True

        db.session.commit()

        # 5) Stock inicial (queda en kardex como ajuste)
        for product in (arroz, aceite):
            for branch in (matriz, norte):
                if find_stock(db.session, product_id=product.id, branch_id=branch.id):
                    continue
                add_stock(db.session, product_id=product.id, branch_id=branch.id, qty=100,
                          move_type=StockMoveType.ADJUST, user_id=user.id, note="Inventario inicial")
        db.session.commit()

        print("✅ Seed listo.")
        print("Login: admin / admin1234")


if __name__ == "__main__":
    run()
