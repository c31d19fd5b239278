"""
profitability.py - Daily mining profitability estimate.

Pure function, nothing is persisted. Revenue is expressed per day from a
fixed coin yield per unit of hash rate:

  BTC: 0.000015 BTC per TH/s per day
  ETH: 0.00005 ETH per MH/s per day

Hash rates quoted in other units are normalized first (BTC: GH/s and
MH/s scaled down to TH/s; ETH: TH/s scaled up by 1000).
"""

import math
from typing import Dict, Optional, Tuple

# coin yield per normalized hash-rate unit per day
REVENUE_PER_UNIT: Dict[str, float] = {
    "BTC": 0.000015,
    "ETH": 0.00005,
}

# (cryptocurrency, quoted unit) -> (multiplier, divisor) to the normalized unit
UNIT_SCALES: Dict[Tuple[str, str], Tuple[int, int]] = {
    ("BTC", "GH/s"): (1, 1000),
    ("BTC", "MH/s"): (1, 1_000_000),
    ("ETH", "TH/s"): (1000, 1),
}

HOURS_PER_DAY = 24
WATTS_PER_KW = 1000


def normalize_hash_rate(cryptocurrency: str, hash_rate: float, unit: Optional[str]) -> float:
    multiplier, divisor = UNIT_SCALES.get((cryptocurrency, unit or ""), (1, 1))
    return hash_rate * multiplier / divisor


def calculate_profitability(
    cryptocurrency: str,
    hash_rate: float,
    hash_rate_unit: Optional[str],
    power_consumption: float,
    electricity_cost: float,
    price_usd: float,
) -> dict:
    """Return the daily ``revenue``, ``costs``, ``profit`` (USD) and ``cryptoAmount``.

    Raises ValueError for an unsupported cryptocurrency or out-of-range input.
    """
    if cryptocurrency not in REVENUE_PER_UNIT:
        raise ValueError(f"Unsupported cryptocurrency: {cryptocurrency}")
    if not all(math.isfinite(v) for v in (hash_rate, power_consumption, electricity_cost)):
        raise ValueError("hashRate, powerConsumption and electricityCost must be finite")
    if hash_rate <= 0:
        raise ValueError("hashRate must be positive")
    if power_consumption <= 0:
        raise ValueError("powerConsumption must be positive")
    if electricity_cost < 0:
        raise ValueError("electricityCost must be non-negative")

    normalized = normalize_hash_rate(cryptocurrency, hash_rate, hash_rate_unit)
    crypto_amount = normalized * REVENUE_PER_UNIT[cryptocurrency]
    revenue = crypto_amount * price_usd
    daily_kwh = power_consumption * HOURS_PER_DAY / WATTS_PER_KW
    costs = daily_kwh * electricity_cost
    return {
        "revenue": revenue,
        "costs": costs,
        "profit": revenue - costs,
        "cryptoAmount": crypto_amount,
    }
