"""Insider Lookup - SEC Forms 3/4/5 ownership ledger for a single ticker.

The pipeline is intentionally small:
- Resolve ticker -> CIK from the SEC company tickers directory.
- Pull the issuer's recent filing index and keep the newest Forms 3/4/5.
- Parse each ownershipDocument into classified buy/sell/exercise rows.
- Summarize, then cache the result in memory and in the database.

Entry point: `insider_lookup.service.InsiderLookupService.lookup`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
