"""AlphaLend markets, portfolio and reward-distributor claims."""
from .adapter import AlphaLendMarketAdapter, AlphaLendUserAdapter
from .claim import AlphaLendClaimBuilder

__all__ = ["AlphaLendClaimBuilder", "AlphaLendMarketAdapter", "AlphaLendUserAdapter"]
