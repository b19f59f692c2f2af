# tollpay/simulator.py
"""
Toll traffic simulator.

Posts randomly generated toll payments to a running API, the way a lane
full of vehicles would hit the payment endpoint.
"""
import argparse
import random
import string
import time

import requests

from tollpay import config
from tollpay.fees import compute_amount, list_toll_booths, list_vehicle_types

STATE_CODES = ["KA", "TN", "MH", "DL", "KL"]


def generate_vehicle_number(rng=random):
    """Plate like 'KA01AB1234'."""
    return "{}{:02d}{}{:04d}".format(
        rng.choice(STATE_CODES),
        rng.randint(1, 99),
        "".join(rng.choice(string.ascii_uppercase) for _ in range(2)),
        rng.randint(0, 9999),
    )


def generate_payment(rng=random):
    """Generate a valid payment request body."""
    booth = rng.choice(list_toll_booths())
    vtype = rng.choice(list_vehicle_types())
    return {
        "vehicleNumber": generate_vehicle_number(rng),
        "vehicleType": vtype["type"],
        "tollBooth": booth["id"],
        "amount": float(compute_amount(booth["id"], vtype["type"])),
    }


def send_payment(payload, api_base=None):
    try:
        response = requests.post(f"{api_base or config.API_BASE}/api/transactions", json=payload, timeout=5)
        return response.json()
    except (requests.RequestException, ValueError) as e:
        return {"error": str(e)}


def run(count, interval=0.0, api_base=None, rng=random):
    """Send ``count`` payments; returns (confirmed, failed)."""
    confirmed = failed = 0
    for i in range(count):
        payload = generate_payment(rng)
        result = send_payment(payload, api_base)

        if result.get("success"):
            confirmed += 1
            print(f"Payment {i + 1}: OK - {payload['vehicleNumber']} @ {payload['tollBooth']} "
                  f"${payload['amount']:.2f} hash={result['transaction']['blockchainHash'][:12]}...")
        else:
            failed += 1
            print(f"Payment {i + 1}: FAILED - {result.get('error', 'unknown error')}")

        if interval and i < count - 1:
            time.sleep(interval)
    return confirmed, failed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Send simulated toll payments to the API")
    parser.add_argument("-n", "--count", type=int, default=5)
    parser.add_argument("-i", "--interval", type=float, default=0.5, help="seconds between payments")
    parser.add_argument("--api-base", default=config.API_BASE)
    args = parser.parse_args(argv)

    print(f"Sending {args.count} payments to {args.api_base}")
    print("=" * 50)
    confirmed, failed = run(args.count, args.interval, args.api_base)
    print("=" * 50)
    print(f"Confirmed: {confirmed}  Failed: {failed}")
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
