"""
Value transfer collaborator.

:class:`Bank` keeps native-currency wallets in memory. Attached value is
moved into marketplace custody with :meth:`Bank.transfer`, which fails loudly;
payouts use :meth:`Bank.send`, which reports success or failure instead of
raising, the way a low-level value call does.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, Protocol, Set

from nftmarket.chain import Chain, Journaled
from nftmarket.errors import InsufficientFunds, InvalidInput
from nftmarket.helpers import normalize_address

logger = logging.getLogger(__name__)

# hook(sender, amount) -> whether the recipient accepts the payment
PaymentHook = Callable[[str, int], bool]


class ValueTransfer(Protocol):

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    def send(self, sender: str, recipient: str, amount: int) -> bool: ...


class Bank(Journaled):
    _journaled = ('_balances',)

    def __init__(self, chain: Chain) -> None:
        self.chain = chain
        self._balances: DefaultDict[str, int] = defaultdict(int)
        self._receivers: Dict[str, PaymentHook] = {}
        self._rejecting: Set[str] = set()
        chain.register(self)

    def balance_of(self, account: Any) -> int:
        return self._balances.get(normalize_address(account), 0)

    def mint(self, account: Any, amount: int) -> None:
        if amount < 0:
            raise InvalidInput("Bank: negative amount")
        self._balances[normalize_address(account)] += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInput("Bank: negative amount")
        if self._balances.get(sender, 0) < amount:
            raise InsufficientFunds("Bank: insufficient balance")
        self._balances[sender] -= amount
        self._balances[recipient] += amount

    def send(self, sender: str, recipient: str, amount: int) -> bool:
        if self._balances.get(sender, 0) < amount:
            logger.warning(f"Bank: {sender} cannot cover payment of {amount}")
            return False
        if recipient in self._rejecting:
            logger.warning(f"Bank: {recipient} rejected payment of {amount}")
            return False

        self._balances[sender] -= amount
        self._balances[recipient] += amount

        hook = self._receivers.get(recipient)
        if hook is not None and not hook(sender, amount):
            self._balances[recipient] -= amount
            self._balances[sender] += amount
            logger.warning(f"Bank: {recipient} refused payment of {amount}")
            return False
        return True

    def reject_payments(self, account: Any, rejecting: bool = True) -> None:
        """Make every future :meth:`send` to ``account`` fail (or succeed again)."""
        account = normalize_address(account)
        if rejecting:
            self._rejecting.add(account)
        else:
            self._rejecting.discard(account)

    def register_receiver(self, account: Any, hook: PaymentHook) -> None:
        self._receivers[normalize_address(account)] = hook
