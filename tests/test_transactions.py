# tests/test_transactions.py
import asyncio
import threading
from decimal import Decimal

import pytest

from tollpay.blockchain import SequenceVerifier
from tollpay.transactions import (
    TransactionService, ValidationError, VerificationFailed,
    CONFIRMED, FAILED, parse_amount, summarize,
)


def pay(service, vehicle_number="KA01AB1234", vehicle_type="truck", toll_booth="TB001", amount=11.0):
    return asyncio.run(service.submit_payment(vehicle_number, vehicle_type, toll_booth, amount))


class TestSubmitPayment:

    def test_confirmed_payment(self, service):
        result = pay(service)
        tx = result.transaction

        assert result.success is True
        assert result.message == "Transaction confirmed on blockchain"
        assert tx.status == CONFIRMED
        assert tx.amount == Decimal("11.0")
        assert tx.id.startswith("tx_")
        assert tx.blockchain_hash == "0x" + "ab" * 26
        assert [t.id for t in service.list_transactions()] == [tx.id]

    def test_new_record_goes_first(self, service):
        first = pay(service, vehicle_number="A").transaction
        second = pay(service, vehicle_number="B").transaction

        log = service.list_transactions()
        assert [t.id for t in log] == [second.id, first.id]
        assert [t.vehicle_number for t in log] == ["B", "A"]

    def test_log_grows_by_one_per_success(self, service):
        for n in range(1, 6):
            pay(service, vehicle_number=f"CAR{n}")
            log = service.list_transactions()
            assert len(log) == n
            assert log[0].vehicle_number == f"CAR{n}"

    def test_identical_requests_are_not_deduplicated(self, service):
        a = pay(service).transaction
        b = pay(service).transaction
        assert a.id != b.id
        assert len(service.list_transactions()) == 2

    def test_failed_verification_is_not_logged(self, session_factory):
        service = TransactionService(
            session_factory=session_factory,
            verifier=SequenceVerifier([True, False]),
            confirmation_delay=0,
        )
        pay(service)
        with pytest.raises(VerificationFailed) as exc:
            pay(service)

        assert exc.value.transaction.status == FAILED
        assert len(service.list_transactions()) == 1

    def test_stored_record_matches_returned(self, service):
        tx = pay(service, vehicle_type="motorcycle", toll_booth="TB002", amount="3.625").transaction
        stored = service.get_transaction(tx.id)
        assert stored == tx
        assert stored.amount == Decimal("3.625")

    def test_get_unknown_transaction(self, service):
        assert service.get_transaction("tx_missing") is None


class TestValidation:

    @pytest.mark.parametrize("field", ["vehicle_number", "vehicle_type", "toll_booth", "amount"])
    @pytest.mark.parametrize("blank", [None, "", "   "])
    def test_missing_field(self, service, field, blank):
        kwargs = dict(vehicle_number="KA01AB1234", vehicle_type="truck", toll_booth="TB001", amount=11.0)
        kwargs[field] = blank
        with pytest.raises(ValidationError) as exc:
            pay(service, **kwargs)
        assert exc.value.message == "Missing required fields"
        assert service.list_transactions() == []

    @pytest.mark.parametrize("amount", [0, 0.0, "0", "0.00"])
    def test_zero_amount_counts_as_missing(self, service, amount):
        with pytest.raises(ValidationError) as exc:
            pay(service, amount=amount)
        assert exc.value.message == "Missing required fields"
        assert service.list_transactions() == []

    @pytest.mark.parametrize("amount", ["abc", -5, "NaN", "Infinity", True, [11], "1e400", 1e400])
    def test_invalid_amount(self, service, amount):
        with pytest.raises(ValidationError) as exc:
            pay(service, amount=amount)
        assert exc.value.message == "Invalid amount"
        assert service.list_transactions() == []

    def test_mismatched_amount_is_accepted_by_default(self, service):
        tx = pay(service, amount=1.0).transaction
        assert tx.amount == Decimal("1.0")

    def test_unknown_booth_accepted_by_default(self, service):
        assert pay(service, toll_booth="TB999").transaction.toll_booth == "TB999"


class TestTariffEnforcement:

    @pytest.fixture
    def strict(self, session_factory, verifier):
        return TransactionService(session_factory=session_factory, verifier=verifier,
                                  confirmation_delay=0, enforce_tariff=True)

    def test_correct_amount(self, strict):
        assert pay(strict, amount="11.00").transaction.amount == Decimal("11.00")

    @pytest.mark.parametrize("kwargs, message", [
        ({"toll_booth": "TB999"}, "Unknown toll booth"),
        ({"vehicle_type": "tractor"}, "Unknown vehicle type"),
        ({"amount": 5.5}, "Amount does not match toll fee"),
    ])
    def test_rejections(self, strict, kwargs, message):
        with pytest.raises(ValidationError) as exc:
            pay(strict, **kwargs)
        assert exc.value.message == message
        assert strict.list_transactions() == []


class TestParseAmount:

    def test_numeric_string(self):
        assert parse_amount(" 7.25 ") == Decimal("7.25")

    def test_float(self):
        assert parse_amount(12.75) == Decimal("12.75")


class TestSummarize:

    def test_empty(self):
        assert summarize([]) == {"totalRevenue": 0.0, "totalTransactions": 0, "byBooth": {}}

    def test_totals(self, service):
        pay(service, toll_booth="TB001", vehicle_type="truck", amount=11.0)
        pay(service, toll_booth="TB001", vehicle_type="car", amount=5.5)
        pay(service, toll_booth="TB005", vehicle_type="bus", amount=12.75)

        stats = summarize(service.list_transactions())
        assert stats["totalTransactions"] == 3
        assert stats["totalRevenue"] == pytest.approx(29.25)
        assert stats["byBooth"]["TB001"] == {"transactions": 2, "revenue": 16.5}
        assert stats["byBooth"]["TB005"] == {"transactions": 1, "revenue": 12.75}


class TestConcurrentAccess:

    def test_readers_during_payments(self, service):
        """Readers in other threads never lose or break confirmed payments."""
        stop = threading.Event()
        errors = []

        def reader():
            while not stop.is_set():
                try:
                    service.list_transactions()
                    service.get_transaction("tx_missing")
                except Exception as e:
                    errors.append(e)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        try:
            confirmed = [pay(service, vehicle_number=f"V{n:03d}").transaction for n in range(100)]
        finally:
            stop.set()
            for t in readers:
                t.join()

        assert errors == []
        log = service.list_transactions()
        assert len(log) == len(confirmed)
        assert [t.id for t in log] == [t.id for t in reversed(confirmed)]

    def test_concurrent_submissions_all_logged(self, service):
        async def burst():
            return await asyncio.gather(*(
                service.submit_payment(f"B{n:02d}", "car", "TB001", 5.5) for n in range(30)
            ))

        results = asyncio.run(burst())

        log_ids = [t.id for t in service.list_transactions()]
        assert len(log_ids) == 30
        assert sorted(log_ids) == sorted(r.transaction.id for r in results)
