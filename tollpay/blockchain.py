# tollpay/blockchain.py
"""
Simulated blockchain layer.

Nothing here talks to a real chain: the "hash" is a random hex token and
verification is a weighted coin flip. Both sit behind small objects so the
transaction service can be handed deterministic versions.
"""
import random
import string
import time

from tollpay import config

HASH_HEX_DIGITS = 52
_BASE36 = string.digits + string.ascii_lowercase


def generate_blockchain_hash(rng=random):
    """Return an opaque verification token: '0x' followed by 52 hex digits."""
    return "0x" + format(rng.getrandbits(HASH_HEX_DIGITS * 4), f"0{HASH_HEX_DIGITS}x")


def generate_transaction_id(rng=random, now=None):
    """Return an id like 'tx_1700000000000_k3j9x0a'."""
    millis = int((now if now is not None else time.time()) * 1000)
    suffix = "".join(rng.choice(_BASE36) for _ in range(7))
    return f"tx_{millis}_{suffix}"


class RandomVerifier:
    """Confirms a transaction with a fixed probability."""

    def __init__(self, success_rate=None, rng=None):
        self.success_rate = config.VERIFICATION_SUCCESS_RATE if success_rate is None else success_rate
        if not 0.0 <= self.success_rate <= 1.0:
            raise ValueError(f"success_rate must be within [0, 1], got {self.success_rate}")
        self.rng = rng or random.Random()

    def verify(self, transaction):
        return self.rng.random() < self.success_rate


class FixedVerifier:
    """Always returns the same outcome."""

    def __init__(self, outcome=True):
        self.outcome = outcome

    def verify(self, transaction):
        return self.outcome


class SequenceVerifier:
    """Replays a scripted list of outcomes, then repeats the last one."""

    def __init__(self, outcomes):
        if not outcomes:
            raise ValueError("outcomes must not be empty")
        self.outcomes = list(outcomes)
        self.calls = 0

    def verify(self, transaction):
        idx = min(self.calls, len(self.outcomes) - 1)
        self.calls += 1
        return self.outcomes[idx]
