"""Async client for the figo Connect API."""

__version__ = "1.0.0"

from .connection import Connection  # noqa: E402
from .core import (  # noqa: E402
    Access,
    Account,
    AccountBalance,
    ApiError,
    AuthMethod,
    AuthMethodSelectChallenge,
    Bank,
    ChallengeBase,
    Credential,
    DecoupledChallenge,
    EmbeddedChallenge,
    FigoConfig,
    FigoError,
    LoginSettings,
    MalformedResponseError,
    NetworkError,
    Notification,
    Payment,
    PaymentInitiation,
    Process,
    ProcessToken,
    RedirectChallenge,
    RequestTimeoutError,
    SdkUsageError,
    Security,
    Service,
    StandingOrder,
    Sync,
    SynchronizationStatus,
    TaskChallenge,
    TaskPoller,
    TaskState,
    TaskTimeoutError,
    TaskToken,
    TlsFingerprintMismatchError,
    Transaction,
    TransientNetworkError,
    UnknownChallenge,
    User,
)
from .session import Session  # noqa: E402

__all__ = [
    "__version__",
    "Connection",
    "Session",
    "FigoConfig",
    "TaskPoller",
    "FigoError",
    "ApiError",
    "MalformedResponseError",
    "NetworkError",
    "TransientNetworkError",
    "RequestTimeoutError",
    "TlsFingerprintMismatchError",
    "SdkUsageError",
    "TaskTimeoutError",
    "Access",
    "Account",
    "AccountBalance",
    "AuthMethod",
    "Bank",
    "Credential",
    "LoginSettings",
    "Notification",
    "Payment",
    "PaymentInitiation",
    "Process",
    "ProcessToken",
    "Security",
    "Service",
    "StandingOrder",
    "Sync",
    "SynchronizationStatus",
    "TaskChallenge",
    "TaskState",
    "TaskToken",
    "Transaction",
    "User",
    "ChallengeBase",
    "AuthMethodSelectChallenge",
    "EmbeddedChallenge",
    "RedirectChallenge",
    "DecoupledChallenge",
    "UnknownChallenge",
]
