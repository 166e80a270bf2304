import httpx
import pytest

from clubify_checkout.exceptions import DecodeError
from clubify_checkout.repository import ResponseEnvelope


@pytest.mark.unit
class TestResponseEnvelope:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [(200, True), (204, True), (299, True), (199, False), (301, False), (404, False)],
    )
    def test_is_successful(self, status: int, expected: bool) -> None:
        assert ResponseEnvelope.is_successful(httpx.Response(status)) is expected

    def test_get_data_is_lenient(self) -> None:
        assert ResponseEnvelope.get_data(httpx.Response(200, content=b"")) is None
        assert ResponseEnvelope.get_data(httpx.Response(200, content=b"nope")) is None
        assert ResponseEnvelope.get_data(httpx.Response(200, content=b'"text"')) is None
        assert ResponseEnvelope.get_data(httpx.Response(200, json=[1, 2])) == [1, 2]

    def test_decode_rejects_scalars(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            ResponseEnvelope.decode(
                httpx.Response(200, content=b"42"), uri="users/1", resource="user"
            )

        assert "users/1" in str(exc_info.value)
        assert exc_info.value.resource == "user"

    def test_decode_empty_body(self) -> None:
        empty = httpx.Response(204, content=b"  ")

        assert ResponseEnvelope.decode(empty, required=False) is None
        with pytest.raises(DecodeError):
            ResponseEnvelope.decode(empty)

    def test_unwrap_walks_keys_in_order(self) -> None:
        keys = ("data", "tenant")
        inner = {"id": "t1"}

        assert ResponseEnvelope.unwrap({"data": {"tenant": inner}}, keys) == inner
        assert ResponseEnvelope.unwrap({"tenant": inner}, keys) == inner
        assert ResponseEnvelope.unwrap({"data": inner}, keys) == inner
        assert ResponseEnvelope.unwrap([inner], keys) == [inner]

    def test_unwrap_ignores_non_mapping_values(self) -> None:
        payload = {"data": [1, 2], "id": "x"}

        assert ResponseEnvelope.unwrap(payload, ("data",)) is payload

    def test_extract_items(self) -> None:
        keys = ("data", "webhooks", "configurations", "items")

        assert ResponseEnvelope.extract_items([{"id": 1}], keys) == [{"id": 1}]
        assert ResponseEnvelope.extract_items(
            {"data": {"configurations": [{"id": 2}]}}, keys
        ) == [{"id": 2}]
        assert ResponseEnvelope.extract_items({"items": []}, keys) == []
        assert ResponseEnvelope.extract_items("junk", keys) == []

    def test_structured_failure(self) -> None:
        assert ResponseEnvelope.is_structured_failure({"success": False})
        assert not ResponseEnvelope.is_structured_failure({"success": True})
        assert not ResponseEnvelope.is_structured_failure([])
