"""Tests for token lookup and remote host extraction."""

import types

import pytest

from siteverify.validators import TOKEN_FIELD, extract_token, remote_host


class TestExtractToken:
    def test_returns_token(self):
        request = types.SimpleNamespace(form={TOKEN_FIELD: "abc"})

        assert extract_token(request) == "abc"

    def test_missing_field(self):
        request = types.SimpleNamespace(form={"other": "abc"})

        assert extract_token(request) == ""

    def test_none_value(self):
        request = types.SimpleNamespace(form={TOKEN_FIELD: None})

        assert extract_token(request) == ""

    def test_request_without_form(self):
        assert extract_token(object()) == ""


class TestRemoteHost:
    @pytest.mark.parametrize(
        "remote_addr, expected",
        [
            ("203.0.113.7:5123", "203.0.113.7"),
            ("[2001:db8::1]:443", "2001:db8::1"),
            ("203.0.113.7", "203.0.113.7"),
            ("2001:db8::1", "2001:db8::1"),
            ("localhost:8080", "localhost"),
        ],
    )
    def test_extracts_host(self, remote_addr, expected):
        assert remote_host(remote_addr) == expected

    @pytest.mark.parametrize(
        "remote_addr",
        [
            None,
            "",
            "not an address",
            "host:port",
            "[2001:db8::1",
            "[2001:db8::1]:abc",
            "[2001:db8::1]x",
            "a:b:c",
        ],
    )
    def test_unparseable_addresses_yield_empty(self, remote_addr):
        assert remote_host(remote_addr) == ""
