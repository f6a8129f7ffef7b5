"""
Public surface of the marketplace.

Every entry point takes brownie-style transaction parameters,
``{'from': account, 'value': amount}``, runs as one atomic chain transaction
and returns a :class:`~nftmarket.chain.TransactionReceipt`. Attached value is
moved into marketplace custody before the operation runs; only
:meth:`Marketplace.fill_offer` and :meth:`Marketplace.make_bid` accept it.
"""

import logging
from typing import Any, Callable, Dict, Optional

from nftmarket.auctions import AuctionHouse, AuctionListing
from nftmarket.bank import ValueTransfer
from nftmarket.chain import Chain, TransactionReceipt
from nftmarket.config import MarketConfig
from nftmarket.constants import MAX_DONATION_LIMIT, MAX_MARKET_FEE
from nftmarket.errors import InvalidInput, Unauthorized
from nftmarket.helpers import is_zero_address, normalize_address, parse_tx
from nftmarket.ledger import FundsLedger
from nftmarket.offers import OfferBook
from nftmarket.registry import AssetRegistry
from nftmarket.settlement import SettlementEngine
from nftmarket.store import Store
from nftmarket.structs import Auction, Offer

logger = logging.getLogger(__name__)


class Marketplace:

    def __init__(self, chain: Chain, registry: AssetRegistry, bank: ValueTransfer, config: MarketConfig,
                 address: Optional[str] = None) -> None:
        config.validate()
        self.chain = chain
        self.registry = registry
        self.bank = bank
        self.address = normalize_address(address) if address else chain.new_address('marketplace')

        self.store = Store(chain, config)
        self.ledger = FundsLedger(self.store, bank, chain, self.address)
        self.settlement = SettlementEngine(self.store, registry, self.ledger, chain)
        self.offers = OfferBook(self.store, registry, self.ledger, self.settlement, chain, self.address)
        self.auctions = AuctionHouse(self.store, registry, self.ledger, self.settlement, chain, self.address)

    @classmethod
    def deploy(cls, config: MarketConfig, chain: Chain, registry: AssetRegistry, bank: ValueTransfer,
               address: Optional[str] = None) -> 'Marketplace':
        marketplace = cls(chain, registry, bank, config, address)
        logger.info(
            f"Marketplace deployed at {marketplace.address} (operator {config.operator}, "
            f"market fee {config.market_fee}, donation limit {config.donation_limit})"
        )
        return marketplace

    def _execute(self, tx: Dict[str, Any], action: Callable[[str, int], Any],
                 payable: bool = False) -> TransactionReceipt:
        sender, value = parse_tx(tx)
        if value and not payable:
            raise InvalidInput("Marketplace: function is not payable")
        with self.chain.atomic() as events:
            if value:
                self.bank.transfer(sender, self.address, value)
            result = action(sender, value)
        return TransactionReceipt.from_events(result, events)

    def _only_operator(self, sender: str) -> None:
        if sender != self.store.operator:
            raise Unauthorized("Ownable: caller is not the owner")

    def receive(self, tx: Dict[str, Any]) -> None:
        """Plain value transfers to the marketplace are always refused."""
        raise InvalidInput("Marketplace: direct payments not accepted")

    # offers

    def make_offer(self, asset_id: int, price: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.offers.make_offer(sender, asset_id, price))

    def fill_offer(self, offer_id: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.offers.fill_offer(sender, offer_id, value), payable=True)

    def cancel_offer(self, offer_id: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.offers.cancel_offer(sender, offer_id))

    def update_offer(self, offer_id: int, new_price: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.offers.update_offer(sender, offer_id, new_price))

    def get_offer(self, offer_id: int) -> Offer:
        return self.offers.get_offer(offer_id)

    def offer_count(self) -> int:
        return self.offers.offer_count()

    # auctions

    def make_auction(self, asset_id: int, buy_now_price: int, period_hours: int,
                     tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(
            tx, lambda sender, value: self.auctions.make_auction(sender, asset_id, buy_now_price, period_hours)
        )

    def make_bid(self, asset_id: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.auctions.make_bid(sender, asset_id, value), payable=True)

    def cancel_bid(self, asset_id: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.auctions.cancel_bid(sender, asset_id))

    def cancel_auction(self, asset_id: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.auctions.cancel_auction(sender, asset_id))

    def settle_auction(self, asset_id: int, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.auctions.settle_auction(asset_id))

    def get_auction(self, asset_id: int) -> Auction:
        return self.auctions.get_auction(asset_id)

    def has_auction(self, asset_id: int) -> bool:
        return self.auctions.get_auction(asset_id).exists()

    def get_auctions(self) -> AuctionListing:
        return self.auctions.get_auctions()

    def required_bid(self, asset_id: int) -> int:
        return self.auctions.required_bid(self.auctions.get_auction(asset_id))

    # funds

    def claim_funds(self, tx: Dict[str, Any]) -> TransactionReceipt:
        return self._execute(tx, lambda sender, value: self.ledger.withdraw(sender))

    def pending_funds(self, account: Any) -> int:
        return self.ledger.balance_of(normalize_address(account))

    def donation(self, asset_id: int) -> int:
        return self.store.donation(asset_id)

    # admin

    @property
    def operator(self) -> str:
        return self.store.operator

    @property
    def market_fee(self) -> int:
        return self.store.market_fee

    @property
    def donation_limit(self) -> int:
        return self.store.donation_limit

    @property
    def min_bid_increment(self) -> int:
        return self.store.min_bid_increment

    def update_market_fee(self, rate: int, tx: Dict[str, Any]) -> TransactionReceipt:
        def update(sender: str, value: int) -> None:
            self._only_operator(sender)
            if not 0 <= rate <= MAX_MARKET_FEE:
                raise InvalidInput("Marketplace: market fee out of range")
            self.store.market_fee = rate
            self.chain.emit('MarketFeeUpdated', marketFee=rate)
            logger.info(f"Marketplace: market fee updated to {rate}")
        return self._execute(tx, update)

    def update_donation_limit(self, limit: int, tx: Dict[str, Any]) -> TransactionReceipt:
        def update(sender: str, value: int) -> None:
            self._only_operator(sender)
            if not 0 <= limit <= MAX_DONATION_LIMIT:
                raise InvalidInput("Marketplace: donation limit out of range")
            self.store.donation_limit = limit
            for asset_id, donation in self.store.donations.items():
                if donation > limit:
                    self.store.donations[asset_id] = limit
            self.chain.emit('DonationLimitUpdated', donationLimit=limit)
            logger.info(f"Marketplace: donation limit updated to {limit}")
        return self._execute(tx, update)

    def update_min_bid_increment(self, amount: int, tx: Dict[str, Any]) -> TransactionReceipt:
        def update(sender: str, value: int) -> None:
            self._only_operator(sender)
            if amount <= 0:
                raise InvalidInput("Marketplace: min bid increment is zero")
            self.store.min_bid_increment = amount
            self.chain.emit('MinBidIncrementUpdated', minBidIncrement=amount)
            logger.info(f"Marketplace: min bid increment updated to {amount}")
        return self._execute(tx, update)

    def transfer_ownership(self, new_operator: Any, tx: Dict[str, Any]) -> TransactionReceipt:
        def update(sender: str, value: int) -> None:
            self._only_operator(sender)
            operator = normalize_address(new_operator)
            if is_zero_address(operator):
                raise InvalidInput("Ownable: new owner is the zero address")
            previous, self.store.operator = self.store.operator, operator
            self.chain.emit('OwnershipTransferred', previousOwner=previous, newOwner=operator)
            logger.info(f"Marketplace: ownership transferred from {previous} to {operator}")
        return self._execute(tx, update)
