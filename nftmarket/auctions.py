"""
Timed ascending auctions.

An auction escrows its asset from creation until it is cancelled or settled.
The first bid has to reach the buy-now price; every later bid has to beat the
standing one by 10% (rounded up), or by the configured minimum increment while 10% is
still below it. The platform keeps ``bid_retention`` of every bid: when a bid
is outbid or cancelled the bidder is credited the rest, and when the auction
settles the retained share of the winning bid is what gets split through
settlement. Bids landing inside the extension window push the end time out.
"""

import logging
from dataclasses import replace
from typing import Iterator, Tuple

from nftmarket.chain import Chain
from nftmarket.constants import BID_INCREMENT_RATE, SECONDS_PER_HOUR, ZERO_ADDRESS
from nftmarket.errors import AlreadyFinalized, InsufficientFunds, InvalidInput, NotFound, Unauthorized
from nftmarket.helpers import calculate_fee_rounded_up
from nftmarket.ledger import FundsLedger
from nftmarket.registry import AssetRegistry
from nftmarket.settlement import SettlementEngine
from nftmarket.store import Store
from nftmarket.structs import Auction

logger = logging.getLogger(__name__)


class AuctionListing:
    """Every registry asset paired with its auction record, in registry order."""

    def __init__(self, registry: AssetRegistry, store: Store) -> None:
        self.registry = registry
        self.store = store

    def __iter__(self) -> Iterator[Tuple[int, Auction]]:
        for index in range(self.registry.total_supply()):
            asset_id = self.registry.token_by_index(index)
            yield asset_id, self.store.auction(asset_id)

    def __len__(self) -> int:
        return self.registry.total_supply()


class AuctionHouse:

    def __init__(self, store: Store, registry: AssetRegistry, ledger: FundsLedger, settlement: SettlementEngine,
                 chain: Chain, custodian: str) -> None:
        self.store = store
        self.registry = registry
        self.ledger = ledger
        self.settlement = settlement
        self.chain = chain
        self.custodian = custodian

    def get_auction(self, asset_id: int) -> Auction:
        return self.store.auction(asset_id)

    def get_auctions(self) -> AuctionListing:
        return AuctionListing(self.registry, self.store)

    def _get_active_auction(self, asset_id: int) -> Auction:
        auction = self.store.auction(asset_id)
        if not auction.exists():
            raise NotFound(f"AuctionHouse: auction for asset {asset_id} not exists")
        return auction

    def required_bid(self, auction: Auction) -> int:
        """Smallest bid the auction accepts next."""
        if not auction.has_bid():
            return auction.buy_now_price
        increment = calculate_fee_rounded_up(auction.highest_bid, BID_INCREMENT_RATE)
        if increment > self.store.min_bid_increment:
            return auction.highest_bid + increment
        return auction.highest_bid + self.store.min_bid_increment

    def retained_cut(self, bid: int) -> int:
        return calculate_fee_rounded_up(bid, self.store.bid_retention)

    def _release_bid(self, bidder: str, bid: int) -> int:
        cut = self.retained_cut(bid)
        self.ledger.credit(self.store.operator, cut)
        self.ledger.credit(bidder, bid - cut)
        return bid - cut

    def make_auction(self, sender: str, asset_id: int, buy_now_price: int, period_hours: int) -> None:
        if buy_now_price <= 0:
            raise InvalidInput("AuctionHouse: buy now price is zero")
        if period_hours <= 0:
            raise InvalidInput("AuctionHouse: period is zero")
        if not self.registry.exists(asset_id):
            raise NotFound(f"AuctionHouse: asset {asset_id} not exists")
        if self.store.auction(asset_id).exists():
            raise AlreadyFinalized("AuctionHouse: auction exists")
        if self.registry.owner_of(asset_id) != sender:
            raise Unauthorized("AuctionHouse: not asset owner")
        if not self.registry.is_approved_by(asset_id, self.custodian):
            raise Unauthorized("AuctionHouse: marketplace not approved")

        end_time = self.chain.time() + period_hours * SECONDS_PER_HOUR
        self.store.auctions[asset_id] = Auction(buy_now_price=buy_now_price, end_time=end_time, seller=sender)

        self.registry.transfer(asset_id, sender, self.custodian, self.custodian)

        self.chain.emit('AuctionCreated', assetId=asset_id, seller=sender, buyNowPrice=buy_now_price,
                        endTime=end_time)
        logger.info(f"AuctionHouse: auction for asset {asset_id} created, ends at {end_time}")

    def make_bid(self, sender: str, asset_id: int, value: int) -> None:
        auction = self._get_active_auction(asset_id)
        now = self.chain.time()
        if now >= auction.end_time:
            raise AlreadyFinalized("AuctionHouse: auction ended")
        if sender == auction.seller:
            raise Unauthorized("AuctionHouse: seller cannot bid")
        required = self.required_bid(auction)
        logger.debug(f"AuctionHouse: asset {asset_id} requires a bid of {required}, got {value}")
        if value < required:
            raise InsufficientFunds("AuctionHouse: bid too low")

        end_time = auction.end_time
        if end_time - now < self.store.extension_window:
            end_time = now + self.store.extension_window
        self.store.auctions[asset_id] = replace(auction, highest_bid=value, highest_bidder=sender,
                                                end_time=end_time)

        if auction.has_bid():
            refund = self._release_bid(auction.highest_bidder, auction.highest_bid)
            self.chain.emit('BidRefunded', assetId=asset_id, bidder=auction.highest_bidder,
                            bid=auction.highest_bid, refund=refund)

        self.chain.emit('BidPlaced', assetId=asset_id, seller=auction.seller, bidder=sender, bid=value)
        if end_time != auction.end_time:
            self.chain.emit('AuctionExtended', assetId=asset_id, endTime=end_time)
            logger.info(f"AuctionHouse: auction for asset {asset_id} extended to {end_time}")

    def cancel_bid(self, sender: str, asset_id: int) -> None:
        auction = self._get_active_auction(asset_id)
        if self.chain.time() >= auction.end_time:
            raise AlreadyFinalized("AuctionHouse: auction ended")
        if sender != auction.highest_bidder:
            raise Unauthorized("AuctionHouse: not highest bidder")

        self.store.auctions[asset_id] = replace(auction, highest_bid=0, highest_bidder=ZERO_ADDRESS)
        refund = self._release_bid(sender, auction.highest_bid)

        self.chain.emit('BidCancelled', assetId=asset_id, bidder=sender, bid=auction.highest_bid, refund=refund)
        logger.info(f"AuctionHouse: bid on asset {asset_id} cancelled by {sender}")

    def cancel_auction(self, sender: str, asset_id: int) -> None:
        auction = self._get_active_auction(asset_id)
        if sender != auction.seller:
            raise Unauthorized("AuctionHouse: not seller")
        if auction.has_bid():
            raise AlreadyFinalized("AuctionHouse: auction has bid")

        del self.store.auctions[asset_id]
        self.registry.transfer(asset_id, self.custodian, auction.seller, self.custodian)

        self.chain.emit('AuctionCancelled', assetId=asset_id, seller=auction.seller)
        logger.info(f"AuctionHouse: auction for asset {asset_id} cancelled")

    def settle_auction(self, asset_id: int) -> None:
        auction = self._get_active_auction(asset_id)
        if self.chain.time() < auction.end_time:
            raise InvalidInput("AuctionHouse: auction not ended")

        del self.store.auctions[asset_id]
        if auction.has_bid():
            cut = self.retained_cut(auction.highest_bid)
            self.ledger.credit(auction.seller, auction.highest_bid - cut)
            if cut > 0:
                self.settlement.distribute(cut, asset_id, auction.seller)
            self.registry.transfer(asset_id, self.custodian, auction.highest_bidder, self.custodian)
        else:
            self.registry.transfer(asset_id, self.custodian, auction.seller, self.custodian)

        self.chain.emit('AuctionSettled', assetId=asset_id, seller=auction.seller,
                        winner=auction.highest_bidder, winningBid=auction.highest_bid)
        logger.info(f"AuctionHouse: auction for asset {asset_id} settled, winner {auction.highest_bidder}")
