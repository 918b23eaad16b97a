"""Iron Core ranking: weekly activity scores and the LP/MMR ladder."""

__version__ = "0.1.0"
