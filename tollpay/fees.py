# tollpay/fees.py
import json
from decimal import Decimal

from tollpay import config


def _load_tariffs(path=None):
    """Load toll booth and vehicle type reference data."""
    with open(path or config.TARIFF_FILE) as f:
        return json.load(f)


_TARIFFS = _load_tariffs()

# Keyed by id, in file order
TOLL_BOOTHS = {
    b["id"]: {"id": b["id"], "name": b["name"], "fee": Decimal(b["fee"])}
    for b in _TARIFFS["toll_booths"]
}
VEHICLE_TYPES = {
    v["type"]: {"type": v["type"], "label": v["label"], "multiplier": Decimal(v["multiplier"])}
    for v in _TARIFFS["vehicle_types"]
}

DEFAULT_MULTIPLIER = Decimal("1")


def list_toll_booths():
    return list(TOLL_BOOTHS.values())


def list_vehicle_types():
    return list(VEHICLE_TYPES.values())


def get_toll_booth(booth_id):
    return TOLL_BOOTHS.get(booth_id)


def get_vehicle_type(vehicle_type):
    return VEHICLE_TYPES.get(vehicle_type)


def compute_amount(booth_id, vehicle_type) -> Decimal:
    """
    Toll amount for a vehicle passing a booth.

    Args:
        booth_id: Toll booth id, e.g. "TB001"
        vehicle_type: Vehicle type id, e.g. "truck"

    Returns:
        Decimal: booth fee x vehicle multiplier. An unknown booth charges
        nothing and an unknown vehicle type is billed as a car.
    """
    booth = TOLL_BOOTHS.get(booth_id)
    if not booth:
        return Decimal("0")

    vtype = VEHICLE_TYPES.get(vehicle_type)
    multiplier = vtype["multiplier"] if vtype else DEFAULT_MULTIPLIER
    return booth["fee"] * multiplier
