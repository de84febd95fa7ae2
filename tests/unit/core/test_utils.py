"""Unit tests for core utilities."""

import time

import pytest

from dbgateway.core.utils import ValidationUtils, first_present, measure_time, safe_int


class TestValidationUtils:
    @pytest.mark.parametrize(
        "port, expected",
        [
            (5432, (True, 5432)),
            ("5432", (True, 5432)),
            (" 3306 ", (True, 3306)),
            (0, (False, 0)),
            ("99999", (False, 99999)),
            ("abc", (False, None)),
            (True, (False, None)),
            (None, (False, None)),
            (54.32, (False, None)),
        ],
    )
    def test_parse_port(self, port, expected):
        assert ValidationUtils.parse_port(port) == expected

    @pytest.mark.parametrize(
        "host",
        ["localhost", "db.example.com", "10.0.0.12", "my_host-1", "::1", "[fe80::1]"],
    )
    def test_valid_hosts(self, host):
        assert ValidationUtils.validate_host(host)

    @pytest.mark.parametrize(
        "host",
        ["db host", "db;drop", "a" * 254, "", "http://x"],
    )
    def test_invalid_hosts(self, host):
        assert not ValidationUtils.validate_host(host)

    def test_schema_name(self):
        assert ValidationUtils.validate_schema_name("public")
        assert ValidationUtils.validate_schema_name("SYS$USERS#1")
        assert not ValidationUtils.validate_schema_name("1abc")
        assert not ValidationUtils.validate_schema_name("a-b")

    def test_is_blank(self):
        assert ValidationUtils.is_blank(None)
        assert ValidationUtils.is_blank("   ")
        assert not ValidationUtils.is_blank(0)
        assert not ValidationUtils.is_blank("x")


class TestSafeInt:
    @pytest.mark.parametrize(
        "value, expected",
        [(12, 12), ("12", 12), ("12.0", 12), (None, None), ("n/a", None), (True, None)],
    )
    def test_safe_int(self, value, expected):
        assert safe_int(value) == expected


def test_first_present_skips_none():
    data = {"dbname": None, "database": "sales", "db": "other"}
    assert first_present(data, ("dbname", "database", "db")) == "sales"
    assert first_present({}, ("a", "b")) is None


def test_measure_time_records_duration():
    with measure_time() as timer:
        time.sleep(0.01)
    assert timer.duration is not None
    assert timer.duration >= 0.01
