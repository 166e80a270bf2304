from .client import ClubifyCheckout
from .config import SDK_VERSION, Config, Environment
from .events import Event, EventDispatcher
from .exceptions import (
    ClubifyError,
    ConfigurationError,
    DecodeError,
    EntityNotFoundError,
    RemoteError,
    RepositoryRegistryError,
    TransportError,
    ValidationError,
)
from .repository.registry import RepositoryFactory, RepositoryType

__version__ = SDK_VERSION

__all__ = [
    "ClubifyCheckout",
    "ClubifyError",
    "Config",
    "ConfigurationError",
    "DecodeError",
    "EntityNotFoundError",
    "Environment",
    "Event",
    "EventDispatcher",
    "RemoteError",
    "RepositoryFactory",
    "RepositoryRegistryError",
    "RepositoryType",
    "TransportError",
    "ValidationError",
    "__version__",
]
