"""
Input validation helpers shared by the route layer.
"""

import re
from typing import Optional, Tuple

from src.core.exceptions.base import ValidationError

_EVM_ADDRESS_RE = re.compile(r'^0x[a-fA-F0-9]{40}$')

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50


class AddressValidator:
    """Validators for EVM wallet addresses."""

    @staticmethod
    def validate_evm_address(address: Optional[str]) -> bool:
        """0x prefix followed by 40 hex characters, any case."""
        if not address:
            return False
        return bool(_EVM_ADDRESS_RE.match(address.strip()))

    @staticmethod
    def normalize(address: str) -> str:
        """
        Validate and lowercase an address.

        Raises:
            ValidationError: if the address is malformed
        """
        if not AddressValidator.validate_evm_address(address):
            raise ValidationError("Invalid Ethereum address format")
        return address.strip().lower()


class PaginationValidator:
    """Query-string pagination for public listings."""

    @staticmethod
    def validate(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
        page = 1 if page is None else page
        limit = DEFAULT_PAGE_SIZE if limit is None else limit
        if page < 1:
            raise ValidationError("Invalid page parameter")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"Invalid limit parameter. Must be between 1 and {MAX_PAGE_SIZE}")
        return page, limit

    @staticmethod
    def build(total: int, page: int, limit: int) -> dict:
        total_pages = (total + limit - 1) // limit
        return {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        }
