from ._base import HttpGatewayProtocol, RequestsBase, ResponseProtocol, clean_params
from .httpx import Requests

__all__ = [
    "HttpGatewayProtocol",
    "Requests",
    "RequestsBase",
    "ResponseProtocol",
    "clean_params",
]
