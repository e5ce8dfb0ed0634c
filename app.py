import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify, request
from flask_migrate import Migrate

from config import Config
from models import db, login_manager
from services.errors import InconsistentLedger, LedgerError


migrate = Migrate()


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger("services").setLevel(level)

    if not app.config.get("LOG_TO_FILE", True):
        return

    log_dir = app.config["LOG_DIR"]
    os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=2_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    ))

    # app.logger y los servicios escriben al mismo archivo
    for logger in (app.logger, logging.getLogger("services")):
        if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
            logger.addHandler(file_handler)


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)

    # -------------------------
    # Extensiones
    # -------------------------
    db.init_app(app)
    migrate.init_app(app, db)

    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({"error": "UNAUTHORIZED", "message": "Debes iniciar sesión."}), 401

    # -------------------------
    # Importar modelos (Alembic)
    # -------------------------
    from models.branch import Branch  # noqa: F401
    from models.user import User  # noqa: F401
    from models.product import Product  # noqa: F401
    from models.unit_conversion import UnitConversion  # noqa: F401
    from models.customer import Customer  # noqa: F401
    from models.supplier import Supplier  # noqa: F401

    from models.stock import Stock  # noqa: F401
    from models.kardex import StockMovement  # noqa: F401
    from models.stock_transfer import StockTransfer, StockTransferItem  # noqa: F401

    from models.sale import Sale, SaleItem  # noqa: F401
    from models.purchase import Purchase, PurchaseItem  # noqa: F401

    # Finanzas
    from models.credit_account import CreditAccount, CreditPayment  # noqa: F401
    from models.cash_movement import CashMovement  # noqa: F401

    # -------------------------
    # Blueprints
    # -------------------------
    from routes.auth import auth_bp
    from routes.sales import sales_bp
    from routes.purchases import purchases_bp
    from routes.credits import credits_bp
    from routes.transfers import transfers_bp
    from routes.stock import stock_bp
    from routes.cash import cash_bp
    from routes.units import units_bp

    blueprints = [
        auth_bp,

        # Operación
        sales_bp,
        purchases_bp,
        transfers_bp,
        stock_bp,
        units_bp,

        # Finanzas
        credits_bp,
        cash_bp,
    ]

    for bp in blueprints:
        app.register_blueprint(bp)

    # -------------------------
    # Logging + manejo global de errores
    # -------------------------
    _configure_logging(app)

    @app.errorhandler(LedgerError)
    def _handle_ledger_error(e: LedgerError):
        if isinstance(e, InconsistentLedger):
            app.logger.critical("Libro inconsistente en %s %s: %s %s", request.method, request.path, e, e.context)
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(500)
    def _handle_500(e):
        app.logger.exception("Error 500 no manejado: %s %s", request.method, request.path)
        return jsonify({"error": "INTERNAL_ERROR", "message": "Ocurrió un error interno. El problema fue registrado."}), 500

    @app.errorhandler(403)
    def _handle_403(e):
        return jsonify({"error": "FORBIDDEN", "message": "No tienes permisos para esta operación."}), 403

    @app.errorhandler(404)
    def _handle_404(e):
        return jsonify({"error": "NOT_FOUND", "message": "Recurso no encontrado."}), 404

    @app.errorhandler(405)
    def _handle_405(e):
        return jsonify({"error": "METHOD_NOT_ALLOWED", "message": "Método no permitido."}), 405

    return app


if __name__ == "__main__":
    app = create_app()
    # Debug controlado por config / variables de entorno
    app.run(debug=app.config.get("DEBUG", False))
