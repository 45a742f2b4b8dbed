"""Seal / unseal transitions for a daily record.

A record is either Open (mutable) or Sealed (archived, read-only). These
primitives only enforce the state transition; whether a day is eligible to
be sealed is decided by ``metrics.can_seal`` in the caller.
"""

from __future__ import annotations

from dataclasses import replace

from daybook.models import DailyRecord, now_iso


def is_mutable(record: DailyRecord) -> bool:
    return not record.is_sealed


def seal_record(record: DailyRecord) -> DailyRecord | None:
    """Open -> Sealed. Stamps sealed_at with the current time.

    Returns None if the record is already sealed.
    """
    if record.is_sealed:
        return None
    return replace(record, is_sealed=True, sealed_at=now_iso())


def unseal_record(record: DailyRecord) -> DailyRecord | None:
    """Sealed -> Open. The previous sealed_at is kept as history.

    Returns None if the record is not sealed.
    """
    if not record.is_sealed:
        return None
    return replace(record, is_sealed=False)
