# tollpay/app.py
import structlog
from fastapi import FastAPI, Request, Depends
from fastapi.responses import JSONResponse

from tollpay import config
from tollpay.database import init_db
from tollpay.fees import compute_amount, list_toll_booths, list_vehicle_types
from tollpay.logging_config import setup_logging
from tollpay.transactions import (
    TransactionService, ValidationError, VerificationFailed, summarize,
)

# === Initialize logging and DB ===
setup_logging()
init_db()

logger = structlog.get_logger(__name__)

app = FastAPI(title="Toll Payment API")

_service = None


def get_service() -> TransactionService:
    """Process-wide transaction service (overridable in tests)."""
    global _service
    if _service is None:
        _service = TransactionService()
    return _service


def _error(message, status_code):
    return JSONResponse({"error": message}, status_code=status_code)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path,
                 error_type=type(exc).__name__, exc_info=exc)
    return _error("Internal server error", 500)


@app.get("/")
def root():
    """Check if API is running."""
    return {"message": "Toll payment API running"}


# ============================
#  REFERENCE DATA
# ============================
@app.get("/api/toll-booths")
def toll_booths():
    return {
        "tollBooths": [
            {"id": b["id"], "name": b["name"], "fee": float(b["fee"])}
            for b in list_toll_booths()
        ]
    }


@app.get("/api/vehicle-types")
def vehicle_types():
    return {
        "vehicleTypes": [
            {"type": v["type"], "label": v["label"], "multiplier": float(v["multiplier"])}
            for v in list_vehicle_types()
        ]
    }


@app.get("/api/fee")
def fee_quote(tollBooth: str, vehicleType: str = ""):
    """Quote the toll for a booth / vehicle type pair."""
    return {
        "tollBooth": tollBooth,
        "vehicleType": vehicleType,
        "amount": float(compute_amount(tollBooth, vehicleType)),
    }


# ============================
#  TRANSACTIONS
# ============================
@app.get("/api/transactions")
def get_transactions(service: TransactionService = Depends(get_service)):
    """Confirmed transactions, newest first."""
    return {"transactions": [tx.to_dict() for tx in service.list_transactions()]}


@app.post("/api/transactions")
async def post_transaction(request: Request, service: TransactionService = Depends(get_service)):
    """Pay a toll and confirm it on the (simulated) blockchain."""
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}

        result = await service.submit_payment(
            body.get("vehicleNumber"),
            body.get("vehicleType"),
            body.get("tollBooth"),
            body.get("amount"),
        )
        return result.to_dict()

    except ValidationError as e:
        return _error(e.message, 400)
    except VerificationFailed:
        return _error("Blockchain verification failed", 500)
    except Exception:
        logger.exception("transaction_processing_error")
        return _error("Internal server error", 500)


@app.get("/api/stats")
def get_stats(service: TransactionService = Depends(get_service)):
    """Revenue and transaction counts for the dashboard."""
    return summarize(service.list_transactions())


def main():
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
