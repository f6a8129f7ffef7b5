"""
Asset registry collaborator.

The marketplace only relies on the :class:`AssetRegistry` protocol.
:class:`Collection` is an in-memory ERC721-style implementation used by the
tests and the CLI; it records a royalty rate and creator per token at mint
time and never lets the marketplace change them.
"""

import logging
from typing import Any, Callable, Dict, List, Protocol, Set

from nftmarket.chain import Chain, Journaled
from nftmarket.constants import MAX_ROYALTY_RATE, MIN_ROYALTY_RATE, ZERO_ADDRESS
from nftmarket.errors import InvalidInput, NotFound, Unauthorized
from nftmarket.helpers import is_zero_address, normalize_address, parse_tx
from nftmarket.structs import RoyaltyRecord

logger = logging.getLogger(__name__)

# called as hook(operator, sender, asset_id) after custody of an asset moved to the hook's owner
ReceiverHook = Callable[[str, str, int], None]


class AssetRegistry(Protocol):

    def owner_of(self, asset_id: int) -> str: ...

    def is_approved_by(self, asset_id: int, operator: str) -> bool: ...

    def transfer(self, asset_id: int, sender: str, recipient: str, operator: str) -> None: ...

    def total_supply(self) -> int: ...

    def token_by_index(self, index: int) -> int: ...

    def exists(self, asset_id: int) -> bool: ...

    def royalty_record(self, asset_id: int) -> RoyaltyRecord: ...


class Collection(Journaled):
    _journaled = ('_owners', '_token_approvals', '_operator_approvals', '_royalties', '_all_tokens',
                  '_latest_token_id')

    def __init__(self, chain: Chain, name: str, symbol: str) -> None:
        self.chain = chain
        self.name = name
        self.symbol = symbol
        self._owners: Dict[int, str] = {}
        self._token_approvals: Dict[int, str] = {}
        self._operator_approvals: Dict[str, Set[str]] = {}
        self._royalties: Dict[int, RoyaltyRecord] = {}
        self._all_tokens: List[int] = []
        self._latest_token_id = 0
        self._receivers: Dict[str, ReceiverHook] = {}
        chain.register(self)

    def mint(self, recipient: Any, creator: Any, royalty_rate: int) -> int:
        """Mint a new token to ``recipient`` carrying a fixed royalty record."""
        recipient = normalize_address(recipient)
        creator = normalize_address(creator)
        if is_zero_address(recipient):
            raise InvalidInput("Collection: mint to the zero address")
        if is_zero_address(creator):
            raise InvalidInput("Collection: creator is the zero address")
        if royalty_rate < MIN_ROYALTY_RATE:
            raise InvalidInput("Collection: royalty too low")
        if royalty_rate > MAX_ROYALTY_RATE:
            raise InvalidInput("Collection: royalty too high")

        self._latest_token_id += 1
        token_id = self._latest_token_id
        self._owners[token_id] = recipient
        self._royalties[token_id] = RoyaltyRecord(royalty_rate, creator)
        self._all_tokens.append(token_id)
        self.chain.emit('Minted', tokenId=token_id, to=recipient, creator=creator, royaltyRate=royalty_rate)
        logger.debug(f"{self.symbol}: minted token {token_id} to {recipient}")
        return token_id

    def get_latest_token_id(self) -> int:
        return self._latest_token_id

    def exists(self, asset_id: int) -> bool:
        return asset_id in self._owners

    def owner_of(self, asset_id: int) -> str:
        if asset_id not in self._owners:
            raise NotFound(f"Collection: token {asset_id} not exists")
        return self._owners[asset_id]

    def approve(self, spender: Any, asset_id: int, tx: Dict[str, Any]) -> None:
        sender, _ = parse_tx(tx)
        if self.owner_of(asset_id) != sender:
            raise Unauthorized("Collection: approve caller is not owner")
        self._token_approvals[asset_id] = normalize_address(spender)

    def set_approval_for_all(self, operator: Any, approved: bool, tx: Dict[str, Any]) -> None:
        sender, _ = parse_tx(tx)
        operators = self._operator_approvals.setdefault(sender, set())
        if approved:
            operators.add(normalize_address(operator))
        else:
            operators.discard(normalize_address(operator))

    def get_approved(self, asset_id: int) -> str:
        self.owner_of(asset_id)
        return self._token_approvals.get(asset_id, ZERO_ADDRESS)

    def is_approved_by(self, asset_id: int, operator: str) -> bool:
        """Whether ``operator`` may move ``asset_id`` on behalf of its owner."""
        owner = self.owner_of(asset_id)
        operator = normalize_address(operator)
        return (
            self._token_approvals.get(asset_id) == operator
            or operator in self._operator_approvals.get(owner, set())
        )

    def transfer(self, asset_id: int, sender: str, recipient: str, operator: str) -> None:
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        operator = normalize_address(operator)
        if self.owner_of(asset_id) != sender:
            raise Unauthorized("Collection: transfer from incorrect owner")
        if operator != sender and not self.is_approved_by(asset_id, operator):
            raise Unauthorized("Collection: caller is not token owner or approved")
        if is_zero_address(recipient):
            raise InvalidInput("Collection: transfer to the zero address")

        self._token_approvals.pop(asset_id, None)
        self._owners[asset_id] = recipient
        self.chain.emit('Transfer', tokenId=asset_id, sender=sender, to=recipient)

        hook = self._receivers.get(recipient)
        if hook is not None:
            hook(operator, sender, asset_id)

    def total_supply(self) -> int:
        return len(self._all_tokens)

    def token_by_index(self, index: int) -> int:
        if not 0 <= index < len(self._all_tokens):
            raise NotFound(f"Collection: index {index} out of bounds")
        return self._all_tokens[index]

    def royalty_record(self, asset_id: int) -> RoyaltyRecord:
        if asset_id not in self._royalties:
            raise NotFound(f"Collection: token {asset_id} not exists")
        return self._royalties[asset_id]

    def register_receiver(self, address: Any, hook: ReceiverHook) -> None:
        """Call ``hook`` whenever a token is transferred to ``address``."""
        self._receivers[normalize_address(address)] = hook
