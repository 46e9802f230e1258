import binascii
from eth_account.messages import encode_defunct
from eth_account import Account
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from typing import Optional, Tuple
from web3 import Web3

from src.core.logger.logger import logger


class SignatureVerificationService:
    """Verifies EIP-191 (personal_sign) signatures produced by EVM wallets"""

    @staticmethod
    def _to_checksum_address(address: str) -> ChecksumAddress:
        try:
            return Web3.to_checksum_address(address.lower())
        except ValueError as e:
            raise ValueError("Invalid Ethereum address format") from e

    @staticmethod
    def _to_signature_bytes(signature: str) -> HexBytes:
        if isinstance(signature, str) and not signature.startswith("0x"):
            signature = "0x" + signature
        return HexBytes(signature)

    def recover_address(self, message: str, signature: str) -> Tuple[Optional[str], Optional[str]]:
        """
        Recover the signer of ``message``

        Returns:
            Tuple[Optional[str], Optional[str]]: (recovered_address, error_message)
        """
        try:
            signature_bytes = self._to_signature_bytes(signature)
        except (ValueError, TypeError, binascii.Error) as e:
            return None, f"Invalid signature format: {e}"

        try:
            recovered = Account.recover_message(encode_defunct(text=message), signature=signature_bytes)
        except Exception as e:
            # eth_keys raises BadSignature / ValidationError subclasses for malformed input
            return None, f"Invalid signature format: {e}"

        return recovered, None

    def verify(self, message: str, signature: str, claimed_address: str) -> bool:
        """
        Check that ``signature`` over ``message`` was produced by ``claimed_address``

        Address comparison is case-insensitive. Malformed addresses or
        signatures resolve to False, this method never raises.
        """
        if not message or not signature or not claimed_address:
            return False

        try:
            checksum_address = self._to_checksum_address(claimed_address)
        except ValueError:
            logger.warning(
                "Invalid Ethereum address format",
                extra={"wallet_address": claimed_address}
            )
            return False

        recovered_address, error = self.recover_address(message, signature)
        if recovered_address is None:
            logger.warning(error, extra={"wallet_address": claimed_address})
            return False

        if recovered_address.lower() != checksum_address.lower():
            logger.warning(
                "Recovered address does not match claimed address",
                extra={
                    "wallet_address": claimed_address,
                    "recovered_address": recovered_address
                }
            )
            return False

        logger.debug(
            "Signature verified successfully",
            extra={"wallet_address": claimed_address}
        )
        return True
