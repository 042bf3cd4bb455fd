"""Service layer exports."""

from .auth import AuthService
from .gateway import ApiRequest, Gateway, GatewayResult
from .job_tracker import JobTracker
from .secret_codec import SecretCodec
from .token_store import TokenStore

__all__ = [
    "ApiRequest",
    "AuthService",
    "Gateway",
    "GatewayResult",
    "JobTracker",
    "SecretCodec",
    "TokenStore",
]
