"""
ideamarket — bonding-curve market for idea tokens.

Components:
- registry/  : markets and tokens (MarketRegistry)
- reserve/   : interest-bearing collateral reserve (InterestManager)
- exchange/  : bonding-curve pricing and trading (IdeaTokenExchange)
- ledger/    : fungible ledger and lending pool collaborators
- verifiers/ : pluggable token-name verifiers
- system     : create_idea_market(), wiring of all components
"""

__version__ = "0.1.0"
