"""
Tree Configuration

Settings shared by the tree builder, the CLI and the benchmark suite:
1. Leaf encoding (ABI types of each whitelist field)
2. Parallel level hashing (thread pool, only for wide levels)
3. Verbose console output
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from leaf_encoder import DEFAULT_LEAF_ENCODING, normalize_leaf_encoding


@dataclass(frozen=True)
class TreeConfig:
    """Configuration for tree construction."""
    leaf_encoding: Tuple[str, ...] = DEFAULT_LEAF_ENCODING

    # Parallel hashing settings
    parallel_hashing: bool = False
    max_workers: Optional[int] = None    # None lets the executor pick
    parallel_threshold: int = 4096       # Only levels at least this wide use the pool

    # Debugging
    verbose_logging: bool = False

    def __post_init__(self):
        object.__setattr__(self, "leaf_encoding", normalize_leaf_encoding(self.leaf_encoding))
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.parallel_threshold < 2:
            raise ValueError("parallel_threshold must be at least 2")


# Global configuration
TREE_CONFIG = TreeConfig()


def get_tree_config() -> TreeConfig:
    """Get current tree configuration."""
    return TREE_CONFIG


def set_tree_config(**kwargs) -> TreeConfig:
    """Replace selected fields of the global configuration."""
    global TREE_CONFIG
    TREE_CONFIG = replace(TREE_CONFIG, **kwargs)
    return TREE_CONFIG


def enable_parallel_hashing(max_workers=None, parallel_threshold=None):
    """Hash wide levels on a thread pool."""
    settings = {"parallel_hashing": True, "max_workers": max_workers}
    if parallel_threshold is not None:
        settings["parallel_threshold"] = parallel_threshold
    return set_tree_config(**settings)


def reset_to_default_config():
    """Reset configuration to default values."""
    global TREE_CONFIG
    TREE_CONFIG = TreeConfig()
    return TREE_CONFIG
