# tests/conftest.py
import pytest

from starchain.crypto.keys import WalletKeyPair


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: int = 1000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1000)


@pytest.fixture
def wallet() -> WalletKeyPair:
    return WalletKeyPair.generate()
