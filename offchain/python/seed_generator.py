import random
from typing import Final

from eth_utils import to_checksum_address

from basic_data_structure import WhitelistEntry

# Set fixed seed for reproducible dataset generation
FIXED_SEED = 42


class WhitelistSeedGenerator:
    """
    Generates a reproducible airdrop whitelist for benchmarking.

    Accounts are random 20-byte addresses; amounts are drawn from a few
    allocation tiers, scaled to 18-decimal base units.
    """

    # Token allocation per tier (whole tokens) and the share of accounts in it.
    _AMOUNT_TIERS: Final[dict[int, float]] = {
        100: 0.55,
        500: 0.25,
        1000: 0.12,
        5000: 0.06,
        25000: 0.02,
    }

    DECIMALS: Final[int] = 18

    def __init__(self, total_accounts: int, random_seed: int = FIXED_SEED):
        if total_accounts < 1:
            raise ValueError("total_accounts must be at least 1")
        self.total_accounts = total_accounts
        self.random_seed = random_seed

    def _random_address(self, rng: random.Random) -> str:
        return to_checksum_address(rng.getrandbits(160).to_bytes(20, "big"))

    def generate_entries(self) -> list[WhitelistEntry]:
        """Create the whitelist; the same seed always yields the same entries."""
        rng = random.Random(self.random_seed)
        tiers = list(self._AMOUNT_TIERS.keys())
        weights = list(self._AMOUNT_TIERS.values())

        entries = []
        seen = set()
        while len(entries) < self.total_accounts:
            address = self._random_address(rng)
            if address in seen:
                continue
            seen.add(address)
            tokens = rng.choices(tiers, weights=weights, k=1)[0]
            entries.append(WhitelistEntry.of(address, tokens * 10 ** self.DECIMALS))
        return entries

    def sample_indices(self, leaf_count: int, subset_size: int, trial: int = 0) -> list[int]:
        """Reproducible subset of sorted-leaf indices for multiproof trials."""
        rng = random.Random(f"{self.random_seed}:{leaf_count}:{subset_size}:{trial}")
        return sorted(rng.sample(range(leaf_count), min(subset_size, leaf_count)))
