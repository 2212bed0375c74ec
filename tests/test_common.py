"""Tests for common utilities."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from tinylinks.common.headers import (
    build_base_url,
    extract_forwarded_headers,
    get_forwarded_path_prefix,
    get_referrer,
)
from tinylinks.common.logging_config import get_logger, setup_logging
from tinylinks.common.timeutil import as_utc, parse_iso, to_iso
from tinylinks.common.validators import (
    MAX_VALIDITY_MINUTES,
    is_valid_short_code,
    is_valid_url,
    is_valid_validity_minutes,
)


class TestValidators:
    """Test validation utilities."""

    def test_valid_urls(self):
        valid, _ = is_valid_url("https://example.com")
        assert valid

        valid, _ = is_valid_url("http://example.com/path")
        assert valid

        valid, _ = is_valid_url("https://sub.example.com:8080/path?query=value")
        assert valid

        valid, _ = is_valid_url("  https://example.com/padded  ")
        assert valid

    def test_invalid_urls(self):
        valid, error = is_valid_url("")
        assert not valid
        assert "required" in error.lower()

        valid, error = is_valid_url("not-a-url")
        assert not valid

        valid, error = is_valid_url("ftp://example.com")
        assert not valid
        assert "http" in error.lower()

        valid, error = is_valid_url("https://")
        assert not valid
        assert "domain" in error.lower()

        valid, error = is_valid_url("http://example.com:99999")
        assert not valid

        valid, error = is_valid_url(None)
        assert not valid

        valid, error = is_valid_url("http://exa mple.com")
        assert not valid
        assert "spaces" in error

        valid, error = is_valid_url("https://example.com\x00.evil")
        assert not valid

    def test_valid_short_codes(self):
        for code in ("abc", "abc123", "PROMO1", "a" * 20):
            valid, _ = is_valid_short_code(code)
            assert valid, code

    def test_invalid_short_codes(self):
        valid, error = is_valid_short_code("ab")
        assert not valid
        assert "at least" in error.lower()

        valid, error = is_valid_short_code("a" * 21)
        assert not valid
        assert "at most" in error.lower()

        valid, error = is_valid_short_code("abc@123")
        assert not valid

        for code in ("test-code", "test_code", "café", "ab c", "abc\n", "\nabc"):
            valid, _ = is_valid_short_code(code)
            assert not valid, code

    def test_validity_minutes(self):
        assert is_valid_validity_minutes(1)[0]
        assert is_valid_validity_minutes(60 * 24 * 365)[0]
        assert is_valid_validity_minutes(MAX_VALIDITY_MINUTES)[0]

        assert not is_valid_validity_minutes(0)[0]
        assert not is_valid_validity_minutes(-5)[0]
        assert not is_valid_validity_minutes(MAX_VALIDITY_MINUTES + 1)[0]
        assert not is_valid_validity_minutes(10**10)[0]
        assert not is_valid_validity_minutes(True)[0]
        assert not is_valid_validity_minutes("30")[0]
        assert not is_valid_validity_minutes(1.5)[0]


class TestHeaders:
    """Test header utilities."""

    def test_extract_forwarded_headers(self):
        headers = {
            "X-Forwarded-Proto": "https",
            "X-Forwarded-Host": "sho.rt",
            "X-Forwarded-For": "203.0.113.7",
        }

        forwarded = extract_forwarded_headers(headers)
        assert forwarded == {
            "forwarded_proto": "https",
            "forwarded_host": "sho.rt",
            "forwarded_for": "203.0.113.7",
        }

    def test_build_base_url_priority(self):
        forwarded = {"x-forwarded-proto": "https", "x-forwarded-host": "sho.rt"}
        assert build_base_url(forwarded, "http://fallback", "http", "internal:9200") == "https://sho.rt"
        assert build_base_url({}, "http://fallback", "http", "internal:9200") == "http://internal:9200"
        assert build_base_url({}, "http://fallback/") == "http://fallback"

    def test_forwarded_path_prefix(self):
        assert get_forwarded_path_prefix({"X-Forwarded-Prefix": "/s/"}) == "/s"
        assert get_forwarded_path_prefix({"X-Forwarded-Prefix": "/"}) == ""
        assert get_forwarded_path_prefix({}) == ""

    def test_get_referrer(self):
        assert get_referrer({"Referer": "https://news.ycombinator.com/"}) == "https://news.ycombinator.com/"
        assert get_referrer({"Referrer": "https://google.com/"}) == "https://google.com/"
        assert get_referrer({"Referer": "   "}) is None
        assert get_referrer({}) is None


class TestTimeutil:
    """Test timestamp helpers."""

    def test_round_trip_keeps_microseconds(self):
        moment = datetime(2026, 3, 4, 5, 6, 7, 891011, tzinfo=timezone.utc)

        assert parse_iso(to_iso(moment)) == moment

    def test_whole_second_keeps_fraction_field(self):
        assert to_iso(datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)) == "2026-03-04T05:06:07.000000+00:00"

    def test_parse_trailing_z(self):
        assert parse_iso("2026-03-04T05:06:07.123Z") == datetime(2026, 3, 4, 5, 6, 7, 123000, tzinfo=timezone.utc)

    def test_parse_naive_is_utc(self):
        assert parse_iso("2026-03-04T05:06:07").tzinfo == timezone.utc

    def test_other_offsets_normalized(self):
        moment = parse_iso("2026-03-04T07:06:07+02:00")

        assert moment == datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert moment.utcoffset() == timedelta(0)
        assert as_utc(moment) == moment

    def test_parse_rejects_non_strings(self):
        with pytest.raises(ValueError):
            parse_iso(12345)
        with pytest.raises(ValueError):
            parse_iso("yesterday")


class TestLogging:
    """Test logger setup."""

    def test_setup_and_child_loggers(self):
        root = setup_logging(level="warning")

        assert root.name == "tinylinks"
        assert root.level == logging.WARNING
        assert get_logger("web").name == "tinylinks.web"
        assert get_logger("tinylinks.store").name == "tinylinks.store"

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging(level="chatty").level == logging.INFO

    def test_json_lines_escape_messages(self, tmp_path):
        log_file = tmp_path / "tinylinks.log"
        logger = setup_logging(level="INFO", log_file=str(log_file), json_format=True)

        get_logger("store").warning('Ignoring "corrupt" record\nfile')
        setup_logging(level="DEBUG")

        entry = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "tinylinks.store"
        assert entry["message"] == 'Ignoring "corrupt" record\nfile'
        assert logger.name == "tinylinks"
