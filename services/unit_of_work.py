"""Unidad de trabajo de las orquestaciones.

Cada operación (venta, compra, abono, transferencia) corre dentro de un
``LedgerTransaction``: los pasos se ejecutan en el orden documentado, se hace
flush al cerrar cada paso, se verifican los invariantes de las entidades
tocadas y recién entonces se hace commit. Cualquier error hace rollback
completo; si el rollback falla el libro queda en estado desconocido y se
levanta ``InconsistentLedger`` con todo el contexto para conciliación manual.
"""
import logging

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from models.credit_account import CreditAccount, credit_status
from models.customer import Customer
from models.stock import Stock
from services.errors import ConcurrentModification, InconsistentLedger, LedgerError

logger = logging.getLogger(__name__)


def _check_stock(stock: Stock):
    if stock.quantity < 0:
        return f"stock negativo ({stock.quantity}) producto={stock.product_id} sucursal={stock.branch_id}"
    return None


def _check_credit_account(account: CreditAccount):
    if account.paid_amount < 0 or account.paid_amount > account.total_amount:
        return f"cuenta {account.id}: pagado={account.paid_amount} fuera de [0, {account.total_amount}]"
    expected = credit_status(account.paid_amount, account.total_amount)
    if account.status != expected:
        return f"cuenta {account.id}: estado {account.status}, esperado {expected}"
    return None


def _check_customer(customer: Customer):
    if customer.current_debt < 0:
        return f"cliente {customer.id}: deuda negativa ({customer.current_debt})"
    return None


_INVARIANTS = {
    Stock: _check_stock,
    CreditAccount: _check_credit_account,
    Customer: _check_customer,
}


class LedgerTransaction:
    def __init__(self, session, operation: str, **context):
        self.session = session
        self.operation = operation
        self.context = context
        self.completed: list[str] = []
        self.current_step: str | None = None
        self._touched = set()

    def step(self, name: str) -> None:
        """Cierra el paso en curso (flush) y abre el siguiente."""
        self._close_step()
        self.current_step = name

    def _close_step(self) -> None:
        for obj in (*self.session.new, *self.session.dirty):
            if type(obj) in _INVARIANTS:
                self._touched.add(obj)
        self.session.flush()
        if self.current_step is not None:
            self.completed.append(self.current_step)
            self.current_step = None

    def _verify(self) -> None:
        for obj in self._touched:
            if inspect(obj).was_deleted:
                continue
            problem = _INVARIANTS[type(obj)](obj)
            if problem:
                raise InconsistentLedger(
                    f"Invariante violado en {self.operation}: {problem}",
                    operation=self.operation,
                    **self.context,
                )

    def _describe(self) -> str:
        ctx = " ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
        return (
            f"op={self.operation} paso={self.current_step} "
            f"completados={self.completed} {ctx}"
        )

    def _fail(self, err: BaseException) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as rb_err:
            logger.critical("Rollback fallido, conciliar manualmente: %s error=%r", self._describe(), err)
            raise InconsistentLedger(
                f"No se pudo revertir {self.operation}; requiere conciliación manual",
                operation=self.operation,
                step=self.current_step,
                completed=list(self.completed),
                **self.context,
            ) from rb_err

        if isinstance(err, StaleDataError):
            logger.warning("Conflicto de concurrencia: %s", self._describe())
            raise ConcurrentModification(
                "El registro fue modificado por otra operación. Intenta de nuevo.",
                operation=self.operation,
            ) from err

        if isinstance(err, InconsistentLedger):
            logger.critical("%s | %s", err, self._describe())
        elif isinstance(err, LedgerError):
            logger.warning("Operación rechazada (%s): %s | %s", err.code, err, self._describe())
        else:
            logger.error("Error inesperado, operación revertida: %s", self._describe(), exc_info=err)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self._fail(exc)
            return False

        try:
            self._close_step()
            self._verify()
            self.session.commit()
        except Exception as err:
            self._fail(err)
            raise

        logger.info("%s ok %s", self.operation, " ".join(f"{k}={v}" for k, v in sorted(self.context.items())))
        return False
