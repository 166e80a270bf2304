import pytest

from clubify_checkout.exceptions import (
    ClubifyError,
    DecodeError,
    EntityNotFoundError,
    RemoteError,
    TransportError,
    ValidationError,
)


@pytest.mark.unit
class TestErrors:
    def test_hierarchy(self) -> None:
        for error_type in (DecodeError, RemoteError, TransportError, ValidationError):
            assert issubclass(error_type, ClubifyError)
        assert issubclass(TransportError, RemoteError)

    @pytest.mark.parametrize(
        ("status", "client", "server", "retryable"),
        [
            (400, True, False, False),
            (404, True, False, False),
            (408, True, False, True),
            (429, True, False, True),
            (500, False, True, True),
            (None, False, False, True),
        ],
    )
    def test_remote_error_classification(
        self, status: int | None, client: bool, server: bool, retryable: bool
    ) -> None:
        error = RemoteError("failed", status_code=status)

        assert error.is_client_error is client
        assert error.is_server_error is server
        assert error.is_retryable is retryable

    def test_remote_error_to_dict(self) -> None:
        error = RemoteError(
            "GET users/1 failed with status 404",
            status_code=404,
            resource="user",
            operation="find_by_id",
            method="GET",
            uri="users/1",
        )

        data = error.to_dict()

        assert data["error"] == "RemoteError"
        assert data["status_code"] == 404
        assert data["uri"] == "users/1"
        assert error.is_not_found

    def test_validation_error_fields(self) -> None:
        error = ValidationError(
            "invalid",
            [{"loc": ("email",), "msg": "bad"}, {"loc": ("items", 0, "qty")}],
        )

        assert error.fields == ["email", "items.0.qty"]

    def test_entity_not_found(self) -> None:
        error = EntityNotFoundError("order", "o1")

        assert str(error) == "order with ID o1 not found"
        assert error.context == {"resource": "order", "entity_id": "o1"}
