import os
import sys
from pathlib import Path

import pytest

# Ensure the flat 'offchain/python' modules are importable in tests
ROOT = Path(__file__).resolve().parents[1]
OFFCHAIN = ROOT / "offchain" / "python"
if str(OFFCHAIN) not in sys.path:
    sys.path.insert(0, str(OFFCHAIN))

# Charts render without a display
os.environ.setdefault("MPLBACKEND", "Agg")

from basic_data_structure import WhitelistEntry  # noqa: E402
from tree_config import reset_to_default_config  # noqa: E402

# Well-known EIP-55 checksummed addresses
ALICE = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
BOB = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
CAROL = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
DAVE = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
ERIN = "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB"
ACCOUNTS = [ALICE, BOB, CAROL, DAVE, ERIN]


@pytest.fixture(autouse=True)
def _default_tree_config():
    reset_to_default_config()
    yield
    reset_to_default_config()


@pytest.fixture
def three_entries():
    return [WhitelistEntry.of(a, 1000) for a in (ALICE, BOB, CAROL)]


@pytest.fixture
def make_entries():
    """Entries for n distinct synthetic accounts."""
    def _make(n, amount=10 ** 18):
        return [WhitelistEntry.of("0x" + format(i + 1, "040x"), amount) for i in range(n)]
    return _make
