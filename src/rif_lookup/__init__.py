"""Identity and staking lookups for Rootstock addresses."""

__version__ = "0.1.0"
