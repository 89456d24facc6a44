"""Tests for URL parameter handling and share links."""

import pytest

from app.deep_link import StartupParameters, build_share_url, canonical_url, parse_startup_parameters


BASE = "https://certs.example.com/verify/"


class TestParseStartupParameters:
    def test_id_prefills(self):
        params = parse_startup_parameters(BASE + "?id=AWS-17-JAN-26-CC-001")
        assert params == StartupParameters(prefill_id="AWS-17-JAN-26-CC-001", auto_trigger=False)

    def test_prefill_is_uppercased(self):
        assert parse_startup_parameters(BASE + "?id=aws-17-jan-26-cc-001").prefill_id == "AWS-17-JAN-26-CC-001"

    @pytest.mark.parametrize("query,expected", [
        ("?certid=B", "B"),
        ("?certificate=C", "C"),
        ("?certificate=C&certid=B", "B"),
        ("?certificate=C&certid=B&id=A", "A"),
        ("?id=&certid=B", "B"),
    ])
    def test_prefill_priority(self, query, expected):
        assert parse_startup_parameters(BASE + query).prefill_id == expected

    @pytest.mark.parametrize("flag", ["auto=true", "verify=true"])
    def test_auto_trigger_flags(self, flag):
        assert parse_startup_parameters(f"{BASE}?id=A&{flag}").auto_trigger is True

    @pytest.mark.parametrize("flag", ["auto=TRUE", "auto=1", "verify=yes", "auto="])
    def test_auto_trigger_requires_literal_true(self, flag):
        assert parse_startup_parameters(f"{BASE}?id=A&{flag}").auto_trigger is False

    def test_auto_without_id_does_nothing(self):
        assert parse_startup_parameters(BASE + "?auto=true") == StartupParameters()

    def test_no_query(self):
        assert parse_startup_parameters(BASE) == StartupParameters()


class TestUrls:
    def test_canonical_url_drops_query_and_fragment(self):
        assert canonical_url(BASE + "?id=A&auto=true#result") == BASE

    def test_canonical_url_keeps_port(self):
        assert canonical_url("http://localhost:8000/?id=A") == "http://localhost:8000/"

    def test_share_url(self):
        assert build_share_url(BASE + "?id=OLD", "AWS-17-JAN-26-CC-001") == BASE + "?id=AWS-17-JAN-26-CC-001"

    def test_share_url_encodes_like_uri_component(self):
        url = build_share_url(BASE, "A B/C?D(1)!")
        assert url == BASE + "?id=A%20B%2FC%3FD(1)!"

    def test_share_url_round_trips_through_parser(self):
        url = build_share_url(BASE, "AWS-17-JAN-26-CC-001")
        assert parse_startup_parameters(url).prefill_id == "AWS-17-JAN-26-CC-001"
