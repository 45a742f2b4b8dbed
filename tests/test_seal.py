"""Tests for daybook/seal.py: seal and unseal transitions."""

from unittest.mock import patch

from daybook.models import DailyRecord
from daybook.seal import is_mutable, seal_record, unseal_record


def _record() -> DailyRecord:
    return DailyRecord.empty("2026-03-01", created_at="2026-03-01T00:00:00+00:00")


def test_seal_open_record():
    rec = _record()
    with patch("daybook.seal.now_iso", return_value="2026-03-01T22:00:00+00:00"):
        sealed = seal_record(rec)
    assert sealed.is_sealed
    assert sealed.sealed_at == "2026-03-01T22:00:00+00:00"
    assert not is_mutable(sealed)


def test_seal_returns_new_record():
    rec = _record()
    sealed = seal_record(rec)
    assert sealed is not rec
    assert rec.is_sealed is False
    assert rec.sealed_at is None


def test_seal_twice_fails():
    sealed = seal_record(_record())
    assert seal_record(sealed) is None


def test_unseal_keeps_sealed_at():
    with patch("daybook.seal.now_iso", return_value="2026-03-01T22:00:00+00:00"):
        sealed = seal_record(_record())
    opened = unseal_record(sealed)
    assert opened.is_sealed is False
    assert opened.sealed_at == "2026-03-01T22:00:00+00:00"
    assert is_mutable(opened)


def test_unseal_open_record_fails():
    assert unseal_record(_record()) is None


def test_reseal_restamps():
    with patch("daybook.seal.now_iso", return_value="2026-03-01T22:00:00+00:00"):
        first = seal_record(_record())
    with patch("daybook.seal.now_iso", return_value="2026-03-02T07:00:00+00:00"):
        second = seal_record(unseal_record(first))
    assert second.sealed_at == "2026-03-02T07:00:00+00:00"


def test_seal_ignores_eligibility():
    # An empty day is not eligible, but the primitive only checks state
    assert seal_record(_record()) is not None


def test_is_mutable_follows_seal_state():
    rec = _record()
    assert is_mutable(rec)
    sealed = seal_record(rec)
    assert not is_mutable(sealed)
    assert is_mutable(unseal_record(sealed))
