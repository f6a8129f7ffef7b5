import pytest
from dataclasses import dataclass
from hypothesis import given, strategies as st
from typing import Callable
from nftmarket import Chain, Marketplace, Settlement
from nftmarket.constants import ZERO_ADDRESS
from nftmarket.errors import InvalidInput, NotFound
from nftmarket.settlement import split_sale
from utils.helpers import calculate_loan, calculate_market_fee, calculate_royalty_fee


@dataclass(frozen=True)
class SaleParams:
    price: int = 1_000
    market_fee: int = 250  # 2,5%
    royalty_rate: int = 1_000  # 10%


@pytest.fixture
def seller(user: str) -> str:
    return user


@pytest.fixture
def royalty_recipient(user_4: str) -> str:
    return user_4


@pytest.fixture
def distribute(chain: Chain, marketplace: Marketplace) -> Callable:
    def distribute_(price: int, asset_id: int, receiver: str) -> Settlement:
        with chain.atomic():
            return marketplace.settlement.distribute(price, asset_id, receiver)
    return distribute_


def test_distribute_without_donation_limit(
        marketplace: Marketplace,
        collection_mint: Callable,
        distribute: Callable,
        owner: str,
        seller: str,
        royalty_recipient: str
) -> None:
    """Test sale split when the donation pool is disabled"""
    token_id = collection_mint(seller, SaleParams.royalty_rate)

    settlement = distribute(SaleParams.price, token_id, seller)

    assert settlement == Settlement(operator_fee=25, operator_loan=0, creator_residual=100, receiver_residual=875)
    assert marketplace.pending_funds(owner) == 25
    assert marketplace.pending_funds(royalty_recipient) == 100
    assert marketplace.pending_funds(seller) == 875
    assert marketplace.donation(token_id) == 0


def test_distribute_partial_loan(
        marketplace: Marketplace,
        collection_mint: Callable,
        distribute: Callable,
        owner: str,
        seller: str,
        royalty_recipient: str
) -> None:
    """Test sale split when the remaining donation covers part of the royalty"""
    marketplace.update_donation_limit(200, {'from': owner})
    token_id = collection_mint(seller, SaleParams.royalty_rate)

    settlement = distribute(SaleParams.price, token_id, seller)

    assert settlement.operator_loan == calculate_loan(200, 0, SaleParams.royalty_rate) == 20
    assert marketplace.pending_funds(owner) == 45
    assert marketplace.pending_funds(royalty_recipient) == 80
    assert marketplace.pending_funds(seller) == 875
    assert marketplace.donation(token_id) == 200


def test_distribute_full_loan_until_limit(
        marketplace: Marketplace,
        collection_mint: Callable,
        distribute: Callable,
        owner: str,
        seller: str,
        royalty_recipient: str
) -> None:
    """Test royalty is fronted to the operator until the donation limit is reached"""
    marketplace.update_donation_limit(10_000, {'from': owner})
    token_id = collection_mint(seller, SaleParams.royalty_rate)
    royalty = calculate_royalty_fee(SaleParams.price, SaleParams.royalty_rate)

    for sale in range(1, 11):
        settlement = distribute(SaleParams.price, token_id, seller)
        assert settlement.operator_loan == royalty
        assert settlement.creator_residual == 0
        assert marketplace.donation(token_id) == sale * 1_000

    assert marketplace.pending_funds(royalty_recipient) == 0

    # pool exhausted, royalty flows to the creator
    settlement = distribute(SaleParams.price, token_id, seller)
    assert settlement.operator_loan == 0
    assert settlement.creator_residual == royalty
    assert marketplace.donation(token_id) == 10_000
    assert marketplace.pending_funds(royalty_recipient) == royalty


def test_distribute_donation_is_per_asset(
        marketplace: Marketplace,
        collection_mint: Callable,
        distribute: Callable,
        owner: str,
        seller: str
) -> None:
    """Test donation counters are tracked per asset"""
    marketplace.update_donation_limit(10_000, {'from': owner})
    token_id = collection_mint(seller)
    other_token_id = collection_mint(seller)

    distribute(SaleParams.price, token_id, seller)

    assert marketplace.donation(token_id) == 1_000
    assert marketplace.donation(other_token_id) == 0


def test_distribute_event(
        marketplace: Marketplace,
        chain: Chain,
        collection_mint: Callable,
        seller: str,
        royalty_recipient: str
) -> None:
    """Test settlement event"""
    token_id = collection_mint(seller)
    with chain.atomic() as events:
        marketplace.settlement.distribute(SaleParams.price, token_id, seller)

    name, fields = events[-1]
    assert name == 'SaleSettled'
    assert fields['assetId'] == token_id
    assert fields['receiver'] == seller
    assert fields['creator'] == royalty_recipient
    assert fields['receiverResidual'] == 875


def test_distribute_zero_price(collection_mint: Callable, distribute: Callable, seller: str) -> None:
    """Test settling a zero price"""
    token_id = collection_mint(seller)
    with pytest.raises(InvalidInput, match='price is zero'):
        distribute(0, token_id, seller)


def test_distribute_unknown_asset(distribute: Callable, seller: str) -> None:
    """Test settling an asset unknown to the registry"""
    with pytest.raises(NotFound):
        distribute(SaleParams.price, 1_000_000, seller)


def test_distribute_zero_receiver(collection_mint: Callable, distribute: Callable, seller: str) -> None:
    """Test settling to the zero address"""
    token_id = collection_mint(seller)
    with pytest.raises(InvalidInput, match='receiver is the zero address'):
        distribute(SaleParams.price, token_id, ZERO_ADDRESS)


def test_split_sale_zero_royalty_rate() -> None:
    """Test assets without royalty skip the donation loan"""
    settlement, donation = split_sale(1_000, 250, 0, 200, 0)
    assert settlement == Settlement(25, 0, 0, 975)
    assert donation == 0


def test_split_sale_rounds_fee_up() -> None:
    """Test the market fee remainder goes to the operator"""
    settlement, _ = split_sale(999, 250, 1_000, 0, 0)
    assert settlement.operator_fee == calculate_market_fee(999, 250) == 25
    assert settlement.creator_residual == 99
    assert settlement.receiver_residual == 875


@given(
    price=st.integers(min_value=1, max_value=10 ** 24),
    market_fee=st.integers(min_value=0, max_value=1_000),
    royalty_rate=st.one_of(st.just(0), st.integers(min_value=100, max_value=1_000)),
    donation_limit=st.integers(min_value=0, max_value=10 ** 24),
    donation=st.integers(min_value=0, max_value=10 ** 24),
)
def test_split_sale_conserves_value(
        price: int,
        market_fee: int,
        royalty_rate: int,
        donation_limit: int,
        donation: int
) -> None:
    """Test the four parts always add up to the price and the donation stays bounded"""
    donation = min(donation, donation_limit)

    settlement, new_donation = split_sale(price, market_fee, royalty_rate, donation_limit, donation)

    assert settlement.total == price
    assert min(settlement.operator_fee, settlement.operator_loan, settlement.creator_residual,
               settlement.receiver_residual) >= 0
    assert 0 <= new_donation <= donation_limit
    assert new_donation >= donation
    # fee rounding favours the operator by less than one unit
    assert 0 <= settlement.operator_fee * 10_000 - price * market_fee < 10_000
    assert settlement.operator_loan + settlement.creator_residual == calculate_royalty_fee(price, royalty_rate)
