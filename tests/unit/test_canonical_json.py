"""
Canonical Serialization Unit Tests
File: tests/unit/test_canonical_json.py

Purpose: canonical JSON must be byte-identical across runs and across
insertion orders, since engagement snapshot hashes in claims manifests
are computed from it.
"""

import json
import math
from datetime import datetime, timedelta, timezone
from enum import Enum

import pytest

from core.crypto.hashing import hash_canonical
from core.schemas import (
    CanonicalizationException,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
)
from core.schemas.campaign import ZERO_ROOT, Campaign
from core.schemas.events import CampaignClosed


BRAND = "0x" + "0c" * 20
TOKEN = "0x" + "70" * 20


@pytest.fixture
def sample_campaign() -> Campaign:
    return Campaign(
        id=1,
        brand=BRAND,
        reward_token=TOKEN,
        budget=1000,
        end_time=1_767_312_000,
    )


# =============================================================================
# Ordering
# =============================================================================

class TestDeterministicOrdering:
    """Key order never depends on insertion order."""

    def test_dict_keys_sorted(self):
        assert dumps_canonical({"z": 1, "a": 2, "m": 3}) == '{"a":2,"m":3,"z":1}'

    def test_nested_dict_keys_sorted(self):
        result = dumps_canonical({"outer": {"b": 1, "a": 2}})
        assert result == '{"outer":{"a":2,"b":1}}'

    def test_model_fields_sorted(self, sample_campaign):
        keys = list(json.loads(dumps_canonical(sample_campaign)).keys())
        assert keys == sorted(keys)

    def test_engagement_snapshot_order_independent(self):
        a = {"0x" + "a1" * 20: {"likes": 3, "shares": 1}, "0x" + "b2" * 20: 7}
        b = {"0x" + "b2" * 20: 7, "0x" + "a1" * 20: {"shares": 1, "likes": 3}}
        assert dumps_canonical(a) == dumps_canonical(b)
        assert hash_canonical(a) == hash_canonical(b)

    def test_list_order_preserved(self):
        assert dumps_canonical([3, 1, 2]) == "[3,1,2]"


# =============================================================================
# Datetimes
# =============================================================================

class TestDatetimeNormalization:
    def test_ensure_utc_naive(self):
        dt = ensure_utc(datetime(2026, 1, 1, 12, 0, 0))
        assert dt.tzinfo == timezone.utc

    def test_offset_converted(self):
        offset = datetime(2026, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_datetime_canonical(offset) == "2026-01-01T12:00:00Z"

    def test_microseconds_kept(self):
        dt = datetime(2026, 1, 1, 0, 0, 0, 5, tzinfo=timezone.utc)
        assert format_datetime_canonical(dt) == "2026-01-01T00:00:00.000005Z"

    def test_naive_and_aware_serialize_same(self):
        naive = datetime(2026, 1, 1, 12, 0, 0)
        aware = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert dumps_canonical({"t": naive}) == dumps_canonical({"t": aware})


# =============================================================================
# None handling and special values
# =============================================================================

class TestExcludeNone:
    def test_none_excluded_from_dict(self):
        assert dumps_canonical({"a": 1, "b": None}) == '{"a":1}'

    def test_zero_and_false_kept(self):
        assert dumps_canonical({"n": 0, "f": False, "s": ""}) == '{"f":false,"n":0,"s":""}'


class TestFloatSafety:
    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, value):
        with pytest.raises(CanonicalizationException) as exc_info:
            dumps_canonical({"score": [1.0, value]})
        assert exc_info.value.details["path"] == "score[1]"

    def test_normal_float(self):
        assert dumps_canonical({"x": 1.5}) == '{"x":1.5}'


class TestSpecialTypes:
    def test_enum_serializes_to_value(self):
        class Colour(Enum):
            RED = "red"

        assert dumps_canonical({"c": Colour.RED}) == '{"c":"red"}'

    def test_bytes_as_hex(self):
        assert dumps_canonical({"b": b"\x01\xff"}) == '{"b":"01ff"}'

    def test_unsupported_type(self):
        with pytest.raises(CanonicalizationException, match="Cannot canonicalize"):
            dumps_canonical({"s": {1, 2}})


# =============================================================================
# Models
# =============================================================================

class TestModels:
    def test_campaign_round_trip(self, sample_campaign):
        data = json.loads(dumps_canonical(sample_campaign))
        assert data["merkle_root"] == ZERO_ROOT
        assert Campaign.model_validate(data) == sample_campaign

    def test_event_payload(self):
        event = CampaignClosed(campaign_id=1, brand=BRAND, timestamp=10)
        data = json.loads(dumps_canonical(event))
        assert data["event"] == "CampaignClosed"
        assert data["campaign_id"] == 1


class TestNoWhitespace:
    def test_separators_are_minimal(self, sample_campaign):
        output = dumps_canonical(sample_campaign)
        assert ", " not in output
        assert ": " not in output
