"""
Test helpers shared across suites.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from eth_account import Account
from eth_account.messages import encode_defunct


def sign(account, message: str) -> str:
    """personal_sign ``message`` with a test account, 0x-prefixed"""
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    return "0x" + signed.signature.hex().removeprefix("0x")


class FakeClock:
    """Injectable UTC clock that tests move forward by hand"""

    def __init__(self, now: datetime = datetime(2025, 3, 11, 12, 0, tzinfo=timezone.utc)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def auth_headers(account) -> dict:
    return {"X-Wallet-Address": account.address}


def completion(content):
    """Minimal stand-in for an OpenAI chat completion"""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
