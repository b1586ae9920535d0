"""
TrixDB Client

An async Python client for the TrixDB memory API, with automatic retries,
rate-limit handling and typed errors.
"""

__version__ = "1.0.0"

from .client import TrixDBClient
from .config import TrixDBClientConfig, TrixDBEnvironment
from .exceptions import ErrorKind, TrixDBConfigError, TrixDBError
from .pipeline import HttpPipeline


__all__ = [
    # Client classes
    "TrixDBClient",
    "TrixDBClientConfig",
    "TrixDBEnvironment",
    "HttpPipeline",
    # Exceptions
    "ErrorKind",
    "TrixDBError",
    "TrixDBConfigError",
]
