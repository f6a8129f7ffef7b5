"""
Sale settlement.

Every completed sale is split four ways: the operator's market fee, the
operator's donation loan, the creator's residual royalty and the receiver's
residual. The donation loan lets the operator front the royalty of young
assets: until an asset's donation counter reaches the global donation limit,
the royalty (or part of it) is paid to the operator instead of the creator,
and the counter advances accordingly.
"""

import logging
from typing import Tuple

from nftmarket.chain import Chain
from nftmarket.constants import FEE_DENOMINATOR
from nftmarket.errors import InvalidInput, NotFound
from nftmarket.helpers import calculate_fee, calculate_fee_rounded_up, is_zero_address
from nftmarket.ledger import FundsLedger
from nftmarket.registry import AssetRegistry
from nftmarket.store import Store
from nftmarket.structs import Settlement

logger = logging.getLogger(__name__)


def split_sale(price: int, market_fee: int, royalty_rate: int, donation_limit: int,
               donation: int) -> Tuple[Settlement, int]:
    """
    Split ``price`` and return the settlement with the asset's new donation counter.

    The market fee is rounded up and the royalty fund down, and the receiver
    takes whatever remains, so the four parts always add up to ``price``.
    Assets with a zero royalty rate skip the donation loan.
    """
    platform_fee = calculate_fee_rounded_up(price, market_fee)
    royalty_fund = calculate_fee(price, royalty_rate)
    if platform_fee + royalty_fund > price:
        raise InvalidInput("SettlementEngine: price too low to settle")

    if royalty_rate == 0:
        operator_loan, creator_residual, new_donation = 0, royalty_fund, donation
    else:
        loan = calculate_fee(max(donation_limit - donation, 0), royalty_rate)
        if loan >= royalty_fund:
            operator_loan, creator_residual = royalty_fund, 0
            new_donation = donation + royalty_fund * FEE_DENOMINATOR // royalty_rate
        else:
            operator_loan, creator_residual = loan, royalty_fund - loan
            new_donation = donation_limit
        new_donation = min(new_donation, donation_limit)

    settlement = Settlement(
        operator_fee=platform_fee,
        operator_loan=operator_loan,
        creator_residual=creator_residual,
        receiver_residual=price - platform_fee - royalty_fund,
    )
    return settlement, new_donation


class SettlementEngine:

    def __init__(self, store: Store, registry: AssetRegistry, ledger: FundsLedger, chain: Chain) -> None:
        self.store = store
        self.registry = registry
        self.ledger = ledger
        self.chain = chain

    def distribute(self, price: int, asset_id: int, receiver: str) -> Settlement:
        if price <= 0:
            raise InvalidInput("SettlementEngine: price is zero")
        if not self.registry.exists(asset_id):
            raise NotFound(f"SettlementEngine: asset {asset_id} not exists")
        if is_zero_address(receiver):
            raise InvalidInput("SettlementEngine: receiver is the zero address")

        record = self.registry.royalty_record(asset_id)
        if is_zero_address(record.creator):
            raise InvalidInput("SettlementEngine: creator is the zero address")

        settlement, donation = split_sale(
            price,
            self.store.market_fee,
            record.royalty_rate,
            self.store.donation_limit,
            self.store.donation(asset_id),
        )
        self.store.donations[asset_id] = donation

        self.ledger.credit(self.store.operator, settlement.operator_fee + settlement.operator_loan)
        self.ledger.credit(record.creator, settlement.creator_residual)
        self.ledger.credit(receiver, settlement.receiver_residual)

        self.chain.emit(
            'SaleSettled',
            assetId=asset_id,
            price=price,
            receiver=receiver,
            creator=record.creator,
            operatorFee=settlement.operator_fee,
            operatorLoan=settlement.operator_loan,
            creatorResidual=settlement.creator_residual,
            receiverResidual=settlement.receiver_residual,
            donation=donation,
        )
        logger.debug(f"SettlementEngine: settled {price} for asset {asset_id}: {settlement}")
        return settlement
