import pytest
from typing import Callable, List
from nftmarket import Bank, Chain, Collection, MarketConfig, Marketplace
import utils.constants


@pytest.fixture
def chain() -> Chain:
    return Chain(start_time=1_700_000_000)


@pytest.fixture
def accounts(chain: Chain) -> List[str]:
    return chain.accounts


@pytest.fixture
def owner(accounts: List[str]) -> str:
    return accounts[0]


@pytest.fixture
def user(accounts: List[str]) -> str:
    return accounts[1]


@pytest.fixture
def user_2(accounts: List[str]) -> str:
    return accounts[2]


@pytest.fixture
def user_3(accounts: List[str]) -> str:
    return accounts[3]


@pytest.fixture
def user_4(accounts: List[str]) -> str:
    return accounts[4]


@pytest.fixture
def bank(chain: Chain, accounts: List[str]) -> Bank:
    bank = Bank(chain)
    for account in accounts:
        bank.mint(account, utils.constants.ACCOUNT_BALANCE)
    return bank


@pytest.fixture
def collection(chain: Chain) -> Collection:
    return Collection(chain, utils.constants.COLLECTION_NAME, utils.constants.COLLECTION_SYMBOL)


@pytest.fixture
def market_config(owner: str) -> MarketConfig:
    return MarketConfig(
        operator=owner,
        market_fee=utils.constants.MARKET_FEE,
        donation_limit=utils.constants.DONATION_LIMIT,
        min_bid_increment=utils.constants.MIN_BID_INCREMENT,
    )


@pytest.fixture
def marketplace(chain: Chain, collection: Collection, bank: Bank, market_config: MarketConfig) -> Marketplace:
    return Marketplace.deploy(market_config, chain, collection, bank)


@pytest.fixture
def collection_mint(collection: Collection, user_4: str) -> Callable:
    return lambda recipient, royalty_rate=1_000, creator=user_4: collection.mint(recipient, creator, royalty_rate)


@pytest.fixture
def collection_mint_with_approval(
        collection: Collection,
        collection_mint: Callable,
        marketplace: Marketplace
) -> Callable:
    def collection_mint_with_approval_(recipient: str, royalty_rate: int = 1_000) -> int:
        # mint token and set approval
        token_id = collection_mint(recipient, royalty_rate)
        collection.approve(marketplace, token_id, {'from': recipient})
        return token_id
    return collection_mint_with_approval_


@pytest.fixture
def fund_ledger(chain: Chain, bank: Bank, marketplace: Marketplace) -> Callable:
    def fund_ledger_(account: str, amount: int) -> None:
        # back the pending balance with value held in marketplace custody
        bank.mint(marketplace.address, amount)
        with chain.atomic():
            marketplace.ledger.credit(account, amount)
    return fund_ledger_
