# tollpay/transactions.py
"""
Toll payment workflow.

A payment request becomes a pending transaction, waits out a simulated
confirmation delay, is verified, and only when confirmed is prepended to
the transaction log. Failed transactions are never stored.
"""
import asyncio
import math
import threading
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import structlog
from sqlalchemy import desc

from tollpay import config
from tollpay.blockchain import RandomVerifier, generate_blockchain_hash, generate_transaction_id
from tollpay.database import SessionLocal, TollTransaction
from tollpay.fees import compute_amount, get_toll_booth, get_vehicle_type

logger = structlog.get_logger(__name__)

PENDING = "pending"
CONFIRMED = "confirmed"
FAILED = "failed"

MISSING_FIELDS = "Missing required fields"

# ============================
#  ERRORS
# ============================

class TollPaymentError(Exception):
    """Base class for payment workflow errors."""

class ValidationError(TollPaymentError):
    """The client sent incomplete or unusable payment data."""

    def __init__(self, message=MISSING_FIELDS):
        super().__init__(message)
        self.message = message

class VerificationFailed(TollPaymentError):
    """The simulated blockchain rejected the transaction."""

    def __init__(self, transaction):
        super().__init__(f"Verification failed for {transaction.id}")
        self.transaction = transaction

# ============================
#  TRANSACTION RECORD
# ============================

@dataclass
class Transaction:
    id: str
    vehicle_number: str
    vehicle_type: str
    toll_booth: str
    amount: Decimal
    timestamp: datetime
    blockchain_hash: str
    status: str = PENDING

    def to_dict(self):
        """Wire format used by the HTTP API."""
        return {
            "id": self.id,
            "vehicleNumber": self.vehicle_number,
            "vehicleType": self.vehicle_type,
            "tollBooth": self.toll_booth,
            "amount": float(self.amount),
            "timestamp": self.timestamp.isoformat(timespec="milliseconds") + "Z",
            "blockchainHash": self.blockchain_hash,
            "status": self.status,
        }

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row.tx_id,
            vehicle_number=row.vehicle_number,
            vehicle_type=row.vehicle_type,
            toll_booth=row.toll_booth,
            amount=Decimal(str(row.amount)),
            timestamp=row.timestamp,
            blockchain_hash=row.blockchain_hash,
            status=row.status,
        )

@dataclass
class TransactionResult:
    transaction: Transaction
    message: str = "Transaction confirmed on blockchain"
    success: bool = True

    def to_dict(self):
        return {
            "success": self.success,
            "transaction": self.transaction.to_dict(),
            "message": self.message,
        }

def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())

def parse_amount(value) -> Decimal:
    """
    Convert a client amount (number or numeric string) to Decimal.

    Raises:
        ValidationError: missing/zero amount (numeric 0 or "0"), non-numeric,
            negative, or too large to serialize as a JSON number
    """
    if _is_blank(value):
        raise ValidationError(MISSING_FIELDS)
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError("Invalid amount")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError("Invalid amount")
    if not amount.is_finite() or amount < 0 or not math.isfinite(float(amount)):
        raise ValidationError("Invalid amount")
    if amount == 0:
        raise ValidationError(MISSING_FIELDS)
    return amount

# ============================
#  SERVICE
# ============================

class TransactionService:
    """
    Accepts toll payments and keeps the newest-first log of confirmed ones.

    Args:
        session_factory: SQLAlchemy sessionmaker bound to the log database
        verifier: object with ``verify(transaction) -> bool``
        hasher: callable returning a verification token
        confirmation_delay: seconds to wait before verifying
        enforce_tariff: reject unknown booths/vehicle types and wrong amounts
    """

    def __init__(self, session_factory=None, verifier=None, hasher=None,
                 confirmation_delay=None, enforce_tariff=None):
        self.session_factory = session_factory or SessionLocal
        self.verifier = verifier or RandomVerifier()
        self.hasher = hasher or generate_blockchain_hash
        self.confirmation_delay = (
            config.CONFIRMATION_DELAY if confirmation_delay is None else confirmation_delay
        )
        self.enforce_tariff = config.ENFORCE_TARIFF if enforce_tariff is None else enforce_tariff
        self._lock = threading.Lock()

    def validate(self, vehicle_number, vehicle_type, toll_booth, amount) -> Decimal:
        if any(_is_blank(v) for v in (vehicle_number, vehicle_type, toll_booth, amount)):
            raise ValidationError(MISSING_FIELDS)
        if not all(isinstance(v, str) for v in (vehicle_type, toll_booth)):
            raise ValidationError(MISSING_FIELDS)
        amount = parse_amount(amount)

        expected = compute_amount(toll_booth, vehicle_type)
        if self.enforce_tariff:
            if get_toll_booth(toll_booth) is None:
                raise ValidationError("Unknown toll booth")
            if get_vehicle_type(vehicle_type) is None:
                raise ValidationError("Unknown vehicle type")
            if amount != expected:
                raise ValidationError("Amount does not match toll fee")
        elif amount != expected:
            logger.warning("tariff_mismatch", toll_booth=toll_booth, vehicle_type=vehicle_type,
                           amount=str(amount), expected=str(expected))
        return amount

    async def submit_payment(self, vehicle_number, vehicle_type, toll_booth, amount) -> TransactionResult:
        """
        Process one toll payment.

        Returns:
            TransactionResult with the confirmed transaction

        Raises:
            ValidationError: incomplete or invalid request data
            VerificationFailed: the simulated chain did not confirm it
        """
        try:
            amount = self.validate(vehicle_number, vehicle_type, toll_booth, amount)
        except ValidationError as e:
            logger.info("payment_rejected", reason=e.message)
            raise

        tx = Transaction(
            id=generate_transaction_id(),
            vehicle_number=str(vehicle_number).strip(),
            vehicle_type=vehicle_type,
            toll_booth=toll_booth,
            amount=amount,
            timestamp=datetime.utcnow(),
            blockchain_hash=self.hasher(),
            status=PENDING,
        )
        logger.info("payment_received", tx_id=tx.id, toll_booth=tx.toll_booth,
                    vehicle_type=tx.vehicle_type, amount=str(tx.amount))

        # Stand-in for waiting on block confirmation
        if self.confirmation_delay > 0:
            await asyncio.sleep(self.confirmation_delay)

        if not self.verifier.verify(tx):
            tx.status = FAILED
            logger.warning("verification_failed", tx_id=tx.id, blockchain_hash=tx.blockchain_hash)
            raise VerificationFailed(tx)

        tx.status = CONFIRMED
        await asyncio.to_thread(self._append, tx)
        logger.info("transaction_confirmed", tx_id=tx.id, blockchain_hash=tx.blockchain_hash)
        return TransactionResult(transaction=tx)

    # In-memory SQLite shares one connection between sessions, so reads and
    # writes both go through the lock.
    def _append(self, tx):
        with self._lock:
            db = self.session_factory()
            try:
                db.add(TollTransaction(
                    tx_id=tx.id,
                    vehicle_number=tx.vehicle_number,
                    vehicle_type=tx.vehicle_type,
                    toll_booth=tx.toll_booth,
                    amount=float(tx.amount),
                    timestamp=tx.timestamp,
                    blockchain_hash=tx.blockchain_hash,
                    status=tx.status,
                ))
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    def list_transactions(self) -> List[Transaction]:
        """Snapshot of the confirmed log, newest first."""
        with self._lock:
            db = self.session_factory()
            try:
                rows = db.query(TollTransaction).order_by(desc(TollTransaction.seq)).all()
                return [Transaction.from_row(r) for r in rows]
            finally:
                db.close()

    def get_transaction(self, tx_id) -> Optional[Transaction]:
        with self._lock:
            db = self.session_factory()
            try:
                row = db.query(TollTransaction).filter_by(tx_id=tx_id).first()
                return Transaction.from_row(row) if row else None
            finally:
                db.close()


def summarize(transactions):
    """Dashboard totals: revenue and count overall and per toll booth."""
    total = Decimal("0")
    by_booth = {}
    for tx in transactions:
        total += tx.amount
        booth = by_booth.setdefault(tx.toll_booth, {"transactions": 0, "revenue": Decimal("0")})
        booth["transactions"] += 1
        booth["revenue"] += tx.amount

    return {
        "totalRevenue": float(total),
        "totalTransactions": len(transactions),
        "byBooth": {
            booth_id: {"transactions": s["transactions"], "revenue": float(s["revenue"])}
            for booth_id, s in by_booth.items()
        },
    }
