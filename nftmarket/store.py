from typing import Dict

from nftmarket.chain import Chain, Journaled
from nftmarket.config import MarketConfig
from nftmarket.structs import Auction, Offer


class Store(Journaled):
    """Every piece of mutable marketplace state, owned by one marketplace."""

    _journaled = ('offers', 'latest_offer_id', 'auctions', 'donations', 'balances', 'operator', 'market_fee',
                  'donation_limit', 'min_bid_increment', 'extension_window', 'bid_retention')

    def __init__(self, chain: Chain, config: MarketConfig) -> None:
        self.offers: Dict[int, Offer] = {}
        self.latest_offer_id = 0
        self.auctions: Dict[int, Auction] = {}
        self.donations: Dict[int, int] = {}
        self.balances: Dict[str, int] = {}

        self.operator = config.operator
        self.market_fee = config.market_fee
        self.donation_limit = config.donation_limit
        self.min_bid_increment = config.min_bid_increment
        self.extension_window = config.extension_window
        self.bid_retention = config.bid_retention
        chain.register(self)

    def auction(self, asset_id: int) -> Auction:
        return self.auctions.get(asset_id, Auction())

    def donation(self, asset_id: int) -> int:
        return self.donations.get(asset_id, 0)
