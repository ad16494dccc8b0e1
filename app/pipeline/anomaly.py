"""
Rate-per-kWh anomaly detection across consecutive billing periods.

Records are grouped by meter and ordered by period end date; each period's
$/kWh rate is compared with the one before it on the same meter.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from app.schemas import AnomalyFlag, BillingRecord

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.15


def _comparable(records: list[BillingRecord]) -> list[BillingRecord]:
    # ISO dates sort chronologically as plain strings
    usable = [r for r in records if not r.error and r.end_date]
    return sorted(usable, key=lambda r: (r.meter_number or "", r.end_date))


def _has_rate(record: BillingRecord) -> bool:
    return bool(record.total_charges) and bool(record.total_kwh)


def _exceeds(delta: float, threshold: float) -> bool:
    # 0.85 -> 1.00 computes as 0.15000000000000002; that is still "exactly 15%"
    return delta > threshold and not math.isclose(delta, threshold)


def _warning(delta: float) -> str:
    return f"Anomaly detected: Calculated rate was {delta * 100:.0f}% changed from previous month"


def detect_anomalies(
    records: list[BillingRecord], threshold: float = DEFAULT_THRESHOLD
) -> list[AnomalyFlag]:
    """Flag records whose rate moved more than *threshold* from the prior period.

    Sets ``warning`` on each flagged record in place and returns the flags.
    A flagged record is never used as the baseline for the next period.
    """
    flags: list[AnomalyFlag] = []
    previous: Optional[BillingRecord] = None

    for current in _comparable(records):
        if previous is None or previous.meter_number != current.meter_number:
            previous = current
            continue

        if not (_has_rate(previous) and _has_rate(current)):
            previous = current
            continue

        prev_rate = previous.total_charges / previous.total_kwh
        curr_rate = current.total_charges / current.total_kwh
        delta = abs((curr_rate - prev_rate) / curr_rate)

        if _exceeds(delta, threshold):
            estimate = prev_rate / current.total_charges
            current.warning = _warning(delta)
            flags.append(
                AnomalyFlag(
                    record_index=current.sequence_index,
                    computed_rate_delta=delta,
                    corrected_estimate=estimate,
                )
            )
            logger.info(
                "Anomaly detected: %s [%d] (%s/%s charges, %s/%s kWh)",
                current.filename, current.sequence_index,
                current.total_charges, previous.total_charges,
                current.total_kwh, previous.total_kwh,
            )
            previous = None
            continue

        previous = current

    if flags:
        logger.info("Flagged %d anomalous results", len(flags))
    return flags
