from . import db, new_id, utcnow


class UnitType:
    BASE = "BASE"          # unidad de inventario, factor = 1
    PURCHASE = "PURCHASE"  # se compra en esta unidad (ej: quintal)
    SALE = "SALE"          # se vende en esta unidad (ej: libra)

    ALL = {BASE, PURCHASE, SALE}


class SalesType:
    RETAIL = "RETAIL"
    WHOLESALE = "WHOLESALE"
    BOTH = "BOTH"

    ALL = {RETAIL, WHOLESALE, BOTH}


class UnitConversion(db.Model):
    """
    Conversión de una unidad de compra/venta a la unidad base del producto.
    cantidad_base = cantidad x conversion_factor
    """
    __tablename__ = "unit_conversions"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    product_id = db.Column(db.String(32), db.ForeignKey("products.id"), nullable=False, index=True)
    product = db.relationship("Product", back_populates="units")

    unit_name = db.Column(db.String(80), nullable=False)     # "Quintal", "Libra"
    unit_symbol = db.Column(db.String(20), nullable=False)   # "qq", "lb"
    conversion_factor = db.Column(db.Numeric(14, 4), nullable=False)
    unit_type = db.Column(db.String(10), nullable=False)

    # Precios específicos por unidad (centavos, opcionales)
    retail_price = db.Column(db.Integer, nullable=True)
    wholesale_price = db.Column(db.Integer, nullable=True)

    sales_type = db.Column(db.String(10), nullable=False, default=SalesType.BOTH)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_unit_conversions_product_type", "product_id", "unit_type"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "unit_name": self.unit_name,
            "unit_symbol": self.unit_symbol,
            "conversion_factor": str(self.conversion_factor),
            "unit_type": self.unit_type,
            "retail_price": self.retail_price,
            "wholesale_price": self.wholesale_price,
            "sales_type": self.sales_type,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<UnitConversion {self.unit_symbol} x{self.conversion_factor} product={self.product_id}>"
