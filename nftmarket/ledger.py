"""
Pull-payment ledger.

Sale proceeds, royalties, fees and bid refunds are never pushed to their
recipients. They accumulate as pending balances here and each account pulls
its own balance with :meth:`FundsLedger.withdraw`, so a recipient that cannot
receive value only ever blocks itself.
"""

import logging

from nftmarket.bank import ValueTransfer
from nftmarket.chain import Chain
from nftmarket.errors import InsufficientFunds, InvalidInput, TransferFailed
from nftmarket.store import Store

logger = logging.getLogger(__name__)


class FundsLedger:

    def __init__(self, store: Store, bank: ValueTransfer, chain: Chain, custodian: str) -> None:
        self.store = store
        self.bank = bank
        self.chain = chain
        self.custodian = custodian

    def balance_of(self, account: str) -> int:
        return self.store.balances.get(account, 0)

    def credit(self, account: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInput("FundsLedger: negative credit")
        if amount == 0:
            return
        self.store.balances[account] = self.balance_of(account) + amount
        logger.debug(f"FundsLedger: credited {amount} to {account}")

    def debit(self, account: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInput("FundsLedger: negative debit")
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientFunds("FundsLedger: insufficient balance")
        self.store.balances[account] = balance - amount

    def withdraw(self, account: str) -> int:
        amount = self.balance_of(account)
        if amount == 0:
            raise InsufficientFunds("FundsLedger: no funds to claim")

        # zeroed before the payout so a re-entrant claim finds nothing left
        self.store.balances[account] = 0
        if not self.bank.send(self.custodian, account, amount):
            self.store.balances[account] = amount
            logger.warning(f"FundsLedger: payout of {amount} to {account} failed, balance restored")
            raise TransferFailed("FundsLedger: transfer failed")

        self.chain.emit('FundsClaimed', account=account, amount=amount)
        logger.info(f"FundsLedger: {account} claimed {amount}")
        return amount
