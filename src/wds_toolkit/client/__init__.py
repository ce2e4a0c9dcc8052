"""Discovery client layer public exports."""

from .auth import Authenticator, CloudPakAuthenticator, IamAuthenticator, build_authenticator
from .http import DEFAULT_TIMEOUT_SECONDS, HttpDiscoveryClient
from .interfaces import DiscoveryClient
from .memory import InMemoryDiscoveryClient
from .models import DocumentUpload, QueryParams

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "Authenticator",
    "CloudPakAuthenticator",
    "DiscoveryClient",
    "DocumentUpload",
    "HttpDiscoveryClient",
    "IamAuthenticator",
    "InMemoryDiscoveryClient",
    "QueryParams",
    "build_authenticator",
]
