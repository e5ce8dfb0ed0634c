from . import db, new_id, utcnow


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    name = db.Column(db.String(160), nullable=False)
    sku = db.Column(db.String(60), nullable=True, unique=True)

    # Unidad base de inventario (ej: "lb", "unidad")
    unit = db.Column(db.String(40), nullable=False, default="unidad")

    # Precios en centavos
    cost_price = db.Column(db.Integer, nullable=False, default=0)
    retail_price = db.Column(db.Integer, nullable=False, default=0)
    wholesale_price = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    units = db.relationship("UnitConversion", back_populates="product", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "unit": self.unit,
            "cost_price": self.cost_price,
            "retail_price": self.retail_price,
            "wholesale_price": self.wholesale_price,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<Product {self.id} {self.name}>"
