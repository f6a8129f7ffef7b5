import logging
from dataclasses import replace

from nftmarket.chain import Chain
from nftmarket.errors import AlreadyFinalized, InsufficientFunds, InvalidInput, NotFound, Unauthorized
from nftmarket.ledger import FundsLedger
from nftmarket.registry import AssetRegistry
from nftmarket.settlement import SettlementEngine
from nftmarket.store import Store
from nftmarket.structs import Offer

logger = logging.getLogger(__name__)


class OfferBook:
    """Fixed-price offers. The offered asset sits in marketplace escrow until filled or cancelled."""

    def __init__(self, store: Store, registry: AssetRegistry, ledger: FundsLedger, settlement: SettlementEngine,
                 chain: Chain, custodian: str) -> None:
        self.store = store
        self.registry = registry
        self.ledger = ledger
        self.settlement = settlement
        self.chain = chain
        self.custodian = custodian

    def get_offer(self, offer_id: int) -> Offer:
        if offer_id not in self.store.offers:
            raise NotFound(f"OfferBook: offer {offer_id} not exists")
        return self.store.offers[offer_id]

    def offer_count(self) -> int:
        return self.store.latest_offer_id

    def _get_owned_open_offer(self, sender: str, offer_id: int) -> Offer:
        offer = self.get_offer(offer_id)
        if offer.owner != sender:
            raise Unauthorized("OfferBook: not offer owner")
        if not offer.is_open():
            raise AlreadyFinalized("OfferBook: offer finalized")
        return offer

    def make_offer(self, sender: str, asset_id: int, price: int) -> int:
        if price <= 0:
            raise InvalidInput("OfferBook: price is zero")
        if not self.registry.exists(asset_id):
            raise NotFound(f"OfferBook: asset {asset_id} not exists")
        if self.registry.owner_of(asset_id) != sender:
            raise Unauthorized("OfferBook: not asset owner")
        if not self.registry.is_approved_by(asset_id, self.custodian):
            raise Unauthorized("OfferBook: marketplace not approved")

        self.store.latest_offer_id += 1
        offer_id = self.store.latest_offer_id
        self.store.offers[offer_id] = Offer(offer_id, asset_id, price, sender)

        self.registry.transfer(asset_id, sender, self.custodian, self.custodian)

        self.chain.emit('OfferCreated', offerId=offer_id, assetId=asset_id, owner=sender, price=price)
        logger.info(f"OfferBook: offer {offer_id} created for asset {asset_id} at {price}")
        return offer_id

    def fill_offer(self, sender: str, offer_id: int, value: int) -> None:
        """
        Buy the asset of an open offer.

        ``value`` is what the buyer attached to the call; any shortfall is
        taken from the buyer's pending ledger balance and any surplus is
        credited to it.
        """
        offer = self.get_offer(offer_id)
        if offer.owner == sender:
            raise Unauthorized("OfferBook: owner cannot fill own offer")
        if not offer.is_open():
            raise AlreadyFinalized("OfferBook: offer finalized")
        if value + self.ledger.balance_of(sender) < offer.price:
            raise InsufficientFunds("OfferBook: insufficient funds")

        self.store.offers[offer_id] = replace(offer, fulfilled=True)
        if value >= offer.price:
            self.ledger.credit(sender, value - offer.price)
        else:
            self.ledger.debit(sender, offer.price - value)
        settlement = self.settlement.distribute(offer.price, offer.asset_id, offer.owner)

        self.registry.transfer(offer.asset_id, self.custodian, sender, self.custodian)

        self.chain.emit(
            'OfferFilled',
            offerId=offer_id,
            assetId=offer.asset_id,
            seller=offer.owner,
            buyer=sender,
            price=offer.price,
        )
        logger.info(f"OfferBook: offer {offer_id} filled by {sender}, seller receives {settlement.receiver_residual}")

    def cancel_offer(self, sender: str, offer_id: int) -> None:
        offer = self._get_owned_open_offer(sender, offer_id)
        self.store.offers[offer_id] = replace(offer, cancelled=True)

        self.registry.transfer(offer.asset_id, self.custodian, offer.owner, self.custodian)

        self.chain.emit('OfferCancelled', offerId=offer_id, assetId=offer.asset_id, owner=offer.owner)
        logger.info(f"OfferBook: offer {offer_id} cancelled")

    def update_offer(self, sender: str, offer_id: int, new_price: int) -> None:
        offer = self._get_owned_open_offer(sender, offer_id)
        if new_price <= 0:
            raise InvalidInput("OfferBook: price is zero")
        self.store.offers[offer_id] = replace(offer, price=new_price)

        self.chain.emit('OfferUpdated', offerId=offer_id, assetId=offer.asset_id, price=new_price)
        logger.info(f"OfferBook: offer {offer_id} price updated to {new_price}")
