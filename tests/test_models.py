"""
Tests for request set decoding and visitor id resolution.
"""
import hashlib
import json

import pytest

from tracking_queue_app.exceptions import DecodeError, InvalidVisitorId
from tracking_queue_app.queue.models import Request, RequestSet

from conftest import make_request_set


class TestRequestSetDecode:
    """Test decoding of stored queue items"""

    def test_decode_bytes(self):
        """Test decoding a stored item as read from Redis"""
        raw = make_request_set({"idsite": "1", "_id": "5a2f0c1d9e8b7a6f"}, {"idsite": "1"}, ip="10.0.0.1")

        request_set = RequestSet.decode(raw.encode("utf-8"))

        assert request_set.get_number_of_requests() == 2
        first = request_set.get_requests()[0]
        assert first.get_param("_id") == "5a2f0c1d9e8b7a6f"
        assert first.get_ip_string() == "10.0.0.1"

    def test_missing_env_gives_empty_ip(self):
        request_set = RequestSet.decode(json.dumps({"requests": [{"idsite": "1"}]}))
        assert request_set.get_requests()[0].get_ip_string() == ""

    @pytest.mark.parametrize("raw", [
        b"not json",
        b"\xff\xfe",
        b"null",
        b"[1, 2]",
        b'{"env": {}}',
        b'{"requests": "abc"}',
        b'{"requests": [1, 2]}',
        b'{"requests": [], "time": "yesterday"}',
    ])
    def test_malformed_items_raise_decode_error(self, raw):
        """Test that anything not shaped like a request set is rejected"""
        with pytest.raises(DecodeError):
            RequestSet.decode(raw)


class TestRequest:
    """Test request accessors"""

    def test_cip_overrides_client_ip(self):
        request = Request(params={"cip": "8.8.8.8"}, client_ip="10.0.0.1")
        assert request.get_ip_string() == "8.8.8.8"

    def test_forced_ids(self):
        request = Request(params={"uid": "alice", "cid": "0123456789abcdef"})
        assert request.get_forced_user_id() == "alice"
        assert request.get_forced_visitor_id() == "0123456789abcdef"

    def test_empty_params_are_not_forced(self):
        request = Request(params={"uid": "", "cid": None})
        assert request.get_forced_user_id() is None
        assert request.get_forced_visitor_id() is None

    def test_visitor_id_from_user_id(self):
        """Test that the user id hash takes precedence"""
        request = Request(params={"uid": "alice", "cid": "0123456789abcdef"})
        expected = hashlib.sha1(b"alice").hexdigest()[:16]
        assert request.get_visitor_id().hex() == expected

    def test_visitor_id_from_forced_visitor_id(self):
        request = Request(params={"cid": "0123456789ABCDEF"})
        assert request.get_visitor_id() == bytes.fromhex("0123456789abcdef")

    def test_invalid_forced_visitor_id(self):
        """Test that a cid of the wrong length or not hex is invalid"""
        with pytest.raises(InvalidVisitorId):
            Request(params={"cid": "abc"}).get_visitor_id()
        with pytest.raises(InvalidVisitorId):
            Request(params={"cid": "zzzzzzzzzzzzzzzz"}).get_visitor_id()

    def test_visitor_id_from_cookie(self):
        """Test that only the first 16 characters of _id are used"""
        request = Request(params={"_id": "5a2f0c1d9e8b7a6f99"})
        assert request.get_visitor_id().hex() == "5a2f0c1d9e8b7a6f"

    def test_short_cookie_is_ignored(self):
        assert Request(params={"_id": "abc"}).get_visitor_id() is None

    def test_non_hex_cookie_is_invalid(self):
        with pytest.raises(InvalidVisitorId):
            Request(params={"_id": "not-a-hex-visitor"}).get_visitor_id()

    def test_no_visitor_id(self):
        assert Request(params={"idsite": "1"}).get_visitor_id() is None
