"""
Account Provider Error Model

This module provides the error handling framework shared by every account
provider backend. Errors carry a taxonomy code and an actionable hint so
callers can give different guidance for each failure kind.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Error kinds shared by all account providers."""

    UNKNOWN = 1

    # Backend unreachable, sealed, or no session
    UNAVAILABLE = 100
    SEALED = 101
    NO_SESSION = 102
    SESSION_EXPIRED = 103

    # Account or key absent
    NOT_FOUND = 200

    # Human declined an approval
    REJECTED = 300
    PAIRING_REJECTED = 301
    SIGNING_REJECTED = 302

    # No response within the fixed budget
    TIMEOUT = 400
    PAIRING_TIMEOUT = 401
    SIGNING_TIMEOUT = 402

    # Operation invalid for this backend
    UNSUPPORTED = 500
    CANNOT_CREATE_ACCOUNT = 501
    WALLET_NOT_SUPPORTED = 502

    # Malformed input
    INVALID = 600
    ACCOUNT_EXISTS = 601

    # Backend client could not start
    INITIALIZATION_FAILED = 700
    BRIDGE_FETCH_FAILED = 701

    # Signing produced an unusable result
    SIGNING_FAILED = 800


class AccountError(Exception):
    """
    Base class for all account provider errors.

    Provides structured error information with a remediation hint.
    """

    default_hint: Optional[str] = None

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        """
        Initialize an account error.

        Args:
            message: Error message
            code: Error code
            hint: What the user can do about it
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint if hint is not None else self.default_hint
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result: Dict[str, Any] = {
            "code": self.code.value,
            "kind": self.code.name,
            "message": self.message,
        }
        if self.hint:
            result["hint"] = self.hint
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


# =============================================================================
# Taxonomy kinds
# =============================================================================

class UnavailableError(AccountError):
    """Backend unreachable, sealed, or no session exists."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNAVAILABLE,
                 hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, code, hint, details, cause)


class NotFoundError(AccountError):
    """Account or key absent."""

    def __init__(self, message: str = "Account not found", hint: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NOT_FOUND, hint, details, cause)


class RejectedError(AccountError):
    """A human declined an approval or signing request."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.REJECTED,
                 hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, code, hint, details, cause)


class OperationTimeoutError(AccountError):
    """No response within the fixed budget."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.TIMEOUT,
                 hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, code, hint, details, cause)


class UnsupportedError(AccountError):
    """Operation invalid for this backend."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNSUPPORTED,
                 hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, code, hint, details, cause)


class InvalidInputError(AccountError):
    """Malformed input such as a bad address."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID,
                 hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, code, hint, details, cause)


class InitializationError(AccountError):
    """Backend client could not start."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INITIALIZATION_FAILED,
                 hint: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, code, hint, details, cause)


# =============================================================================
# Keyring errors
# =============================================================================

class KeyringUnavailableError(UnavailableError):
    """No OS credential service is reachable."""

    default_hint = "Headless systems should use the Vault provider instead."

    def __init__(self, message: str = "Keyring not available",
                 cause: Optional[Exception] = None):
        super().__init__(message, cause=cause)


class AccountExistsError(InvalidInputError):
    """An account with this name already exists."""

    def __init__(self, name: str):
        super().__init__(f"Account already exists: {name}", ErrorCode.ACCOUNT_EXISTS,
                         hint="Choose a different account name or remove the existing one.",
                         details={"name": name})


# =============================================================================
# Vault errors
# =============================================================================

class VaultSealedError(UnavailableError):
    """Vault is sealed or not initialized."""

    default_hint = "Unseal Vault first: vibekit vault unseal"

    def __init__(self, message: str = "Vault is sealed", details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.SEALED, details=details, cause=cause)


class VaultTimeoutError(OperationTimeoutError):
    """A Vault request exceeded its time budget."""

    default_hint = "Check that Vault is running: vibekit vault status"

    def __init__(self, message: str = "Vault request timed out",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, details=details, cause=cause)


# =============================================================================
# Wallet errors
# =============================================================================

class NoSessionError(UnavailableError):
    """No active wallet session."""

    default_hint = "Use connect_walletconnect to connect a wallet."

    def __init__(self, message: str = "No active wallet session"):
        super().__init__(message, ErrorCode.NO_SESSION)


class SessionExpiredError(UnavailableError):
    """The wallet session has expired."""

    default_hint = "Use connect_walletconnect to reconnect."

    def __init__(self, message: str = "Wallet session has expired"):
        super().__init__(message, ErrorCode.SESSION_EXPIRED)


class PairingRejectedError(RejectedError):
    """The wallet declined the pairing or the relay dropped it."""

    default_hint = "Scan the QR code again and approve the connection in the wallet app."

    def __init__(self, message: str = "Connection was rejected or closed",
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.PAIRING_REJECTED, cause=cause)


class PairingTimeoutError(OperationTimeoutError):
    """No pairing decision arrived within the pairing window."""

    default_hint = "Request a new pairing and scan the QR code promptly."

    def __init__(self, message: str = "Pairing timed out"):
        super().__init__(message, ErrorCode.PAIRING_TIMEOUT)


class SigningRejectedError(RejectedError):
    """The user declined a signing request."""

    default_hint = "The user declined to sign in the wallet app."

    def __init__(self, message: str = "Transaction signing was rejected",
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.SIGNING_REJECTED, cause=cause)


class SigningTimeoutError(OperationTimeoutError):
    """The wallet did not answer a signing request in time."""

    default_hint = "The wallet did not respond in time. Check the wallet app."

    def __init__(self, message: str = "Transaction signing timed out"):
        super().__init__(message, ErrorCode.SIGNING_TIMEOUT)


class SigningError(AccountError):
    """The wallet returned an incomplete or unsigned result."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.SIGNING_FAILED, details=details)


class CannotCreateAccountError(UnsupportedError):
    """Wallet-backed accounts cannot be minted by this tool."""

    default_hint = "Accounts are managed by the wallet app, not vibekit."

    def __init__(self, message: str = "Cannot create accounts in external wallet"):
        super().__init__(message, ErrorCode.CANNOT_CREATE_ACCOUNT)


class WalletNotSupportedError(UnsupportedError):
    """Unknown wallet brand."""

    def __init__(self, wallet_id: str, supported: list):
        super().__init__(f'Wallet "{wallet_id}" is not supported', ErrorCode.WALLET_NOT_SUPPORTED,
                         hint=f"Supported wallets: {', '.join(supported)}")


class BridgeFetchError(InitializationError):
    """The bridge URL could not be resolved from the wallet's config endpoint."""

    default_hint = "Check your network connection."

    def __init__(self, cause_message: str, cause: Optional[Exception] = None):
        super().__init__(f"Failed to fetch WalletConnect bridge URL: {cause_message}",
                         ErrorCode.BRIDGE_FETCH_FAILED, cause=cause)


__all__ = [
    "ErrorCode",
    "AccountError",
    "UnavailableError",
    "NotFoundError",
    "RejectedError",
    "OperationTimeoutError",
    "UnsupportedError",
    "InvalidInputError",
    "InitializationError",
    "KeyringUnavailableError",
    "AccountExistsError",
    "VaultSealedError",
    "VaultTimeoutError",
    "NoSessionError",
    "SessionExpiredError",
    "PairingRejectedError",
    "PairingTimeoutError",
    "SigningRejectedError",
    "SigningTimeoutError",
    "SigningError",
    "CannotCreateAccountError",
    "WalletNotSupportedError",
    "BridgeFetchError",
]
