import re
from abc import ABC, abstractmethod
from typing import Optional

from loguru import logger

from paystream.core.exceptions import Forbidden, ValidationFailure

WALLET_ADDRESS_PATTERN = r"^[1-9A-HJ-NP-Za-km-z]{32,44}$"

_wallet_re = re.compile(WALLET_ADDRESS_PATTERN)


def normalize_address(address: Optional[str]) -> str:
    return (address or "").strip()


def validate_address(address: Optional[str], field: str = "walletAddress") -> str:
    normalized = normalize_address(address)
    if not _wallet_re.match(normalized):
        raise ValidationFailure(f"{field} is not a valid wallet address")
    return normalized


class Authorizer(ABC):
    """Decides whether a caller may act as the owner of a resource."""

    @abstractmethod
    async def verify_caller(self, claimed_address: Optional[str], required_address: str, action: str = "perform this action") -> None:
        ...


class TrustedAddressAuthorizer(Authorizer):
    """Accepts the caller's claimed wallet address as-is.

    No signature is checked, so anyone who knows the owner's address can act
    as the owner. A signature-verifying Authorizer should replace this.
    """

    async def verify_caller(self, claimed_address: Optional[str], required_address: str, action: str = "perform this action") -> None:
        if not claimed_address or normalize_address(claimed_address) != normalize_address(required_address):
            logger.warning(f"Rejected {claimed_address!r}: not allowed to {action}")
            raise Forbidden(f"Not authorized to {action}")
