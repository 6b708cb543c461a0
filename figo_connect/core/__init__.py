"""Core package: configuration, request execution and resource models."""

from .challenges import (
    AuthMethod,
    AuthMethodSelectChallenge,
    ChallengeBase,
    DecoupledChallenge,
    EmbeddedChallenge,
    RedirectChallenge,
    UnknownChallenge,
)
from .config import FigoConfig
from .data_models import (
    Access,
    Account,
    AccountBalance,
    Bank,
    Credential,
    LoginSettings,
    Notification,
    Payment,
    PaymentInitiation,
    Process,
    ProcessToken,
    Security,
    Service,
    StandingOrder,
    Sync,
    SynchronizationStatus,
    TaskChallenge,
    TaskState,
    TaskToken,
    Transaction,
    User,
)
from .errors import (
    ApiError,
    FigoError,
    MalformedResponseError,
    NetworkError,
    RequestTimeoutError,
    SdkUsageError,
    TaskTimeoutError,
    TlsFingerprintMismatchError,
    TransientNetworkError,
)
from .tasks import TaskPoller

__all__ = [
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
