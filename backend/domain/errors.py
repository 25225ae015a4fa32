"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py. The error code in the response envelope is derived from the class
name, so every registry failure kind stays distinguishable for clients.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class NotFoundError(DomainError):
    """Resource not found (404)."""
    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class UnauthorizedError(DomainError):
    """Caller lacks the authorization level the action needs (403)."""
    def __init__(self, message: str = "Caller is not authorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class AlreadyExistsError(ConflictError):
    """A record already occupies the key being created (409)."""
    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        super().__init__(f"{resource_type} already exists: {identifier}", details=details)


class ExpiredError(DomainError):
    """An expiration is not in the future at evaluation time (400)."""
    def __init__(self, message: str = "Expiration is already in the past", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class SupplyOverflowError(DomainError):
    """Minting would exceed max_supply (400)."""
    def __init__(self, max_supply: int):
        super().__init__(
            f"Max supply of {max_supply} tokens reached",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"max_supply": max_supply},
        )


class MintPerWalletOverflowError(DomainError):
    """Wallet already minted max_nfts_per_wallet tokens (400)."""
    def __init__(self, wallet: str, max_per_wallet: int):
        super().__init__(
            f"Wallet has reached the limit of {max_per_wallet} mints",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"wallet": wallet, "max_nfts_per_wallet": max_per_wallet},
        )


class NotEnoughFundsError(DomainError):
    """No single attached coin covers the mint price (402)."""
    def __init__(self, amount: int, denom: str):
        super().__init__(
            f"Mint requires at least {amount}{denom} in a single coin",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details={"amount": str(amount), "denom": denom},
        )


class NoWithdrawAddressError(DomainError):
    """Treasury operation with no withdraw address configured (400)."""
    def __init__(self, message: str = "No withdraw address set"):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class BadAddressError(DomainError):
    """Address failed validation (400)."""
    def __init__(self, address: str | None, reason: str):
        shown = (address or "")[:16]
        super().__init__(
            f"Invalid address '{shown}': {reason}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
