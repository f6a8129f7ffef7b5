import pytest
from nftmarket import Bank, Chain, Collection, MarketConfig, Marketplace, TransactionReceipt
from nftmarket.errors import InsufficientFunds


def test_time_sleep_and_mine(chain: Chain) -> None:
    """Test clock handling"""
    start = chain.time()
    chain.sleep(60)
    assert chain.time() == start + 60

    height = chain.mine()
    assert height == 1

    chain.mine(timestamp=start + 3_600)
    assert chain.time() == start + 3_600

    with pytest.raises(ValueError):
        chain.mine(timestamp=start)


def test_accounts_are_distinct_checksummed_addresses(chain: Chain) -> None:
    """Test generated accounts"""
    assert len(set(chain.accounts)) == len(chain.accounts) == 10
    assert all(account.startswith('0x') and len(account) == 42 for account in chain.accounts)


def test_atomic_rolls_back_every_holder(chain: Chain, bank: Bank, collection: Collection, user: str,
                                        user_2: str) -> None:
    """Test failed transaction restores every registered state holder"""
    initial_balance = bank.balance_of(user)

    with pytest.raises(InsufficientFunds):
        with chain.atomic():
            token_id = collection.mint(user, user_2, 500)
            bank.transfer(user, user_2, 10)
            bank.transfer(user, user_2, initial_balance)

    assert collection.total_supply() == 0
    assert collection.exists(token_id) is False
    assert bank.balance_of(user) == initial_balance


def test_atomic_collects_events(chain: Chain, collection: Collection, user: str, user_2: str) -> None:
    """Test events of successful nested scopes reach the outer scope"""
    with chain.atomic() as events:
        collection.mint(user, user_2, 500)
        with pytest.raises(InsufficientFunds):
            with chain.atomic():
                collection.mint(user, user_2, 500)
                raise InsufficientFunds('nested failure')
        with chain.atomic():
            collection.mint(user_2, user_2, 500)

    receipt = TransactionReceipt.from_events(None, events)
    assert len(receipt.events['Minted']) == 2
    assert receipt.events['Minted']['tokenId'] == 1
    assert receipt.events['Minted'][1]['to'] == user_2


def test_snapshot_and_revert(chain: Chain, collection: Collection, user: str) -> None:
    """Test reverting to a snapshot restores state and time"""
    start = chain.time()
    chain.snapshot()

    collection.mint(user, user, 500)
    chain.sleep(100)

    chain.revert()
    assert collection.total_supply() == 0
    assert chain.time() == start

    # the snapshot can be reverted to again
    collection.mint(user, user, 500)
    chain.revert()
    assert collection.total_supply() == 0


def test_revert_without_snapshot(chain: Chain) -> None:
    """Test reverting without any snapshot"""
    with pytest.raises(ValueError):
        chain.revert()


def test_new_address_depends_only_on_chain(market_config: MarketConfig) -> None:
    """Test deployment addresses are derived per chain, not per process"""
    first_chain, second_chain = Chain(), Chain()

    first = Marketplace(first_chain, Collection(first_chain, 'A', 'A'), Bank(first_chain), market_config)
    other = Marketplace(first_chain, Collection(first_chain, 'B', 'B'), Bank(first_chain), market_config)
    second = Marketplace(second_chain, Collection(second_chain, 'A', 'A'), Bank(second_chain), market_config)

    assert first.address != other.address
    assert second.address == first.address
    assert first.address not in first_chain.accounts
