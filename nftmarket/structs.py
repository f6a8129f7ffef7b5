from dataclasses import dataclass

from nftmarket.constants import ZERO_ADDRESS


@dataclass(frozen=True)
class Offer:
    offer_id: int
    asset_id: int
    price: int
    owner: str
    fulfilled: bool = False
    cancelled: bool = False

    def exists(self) -> bool:
        return self.offer_id > 0

    def is_open(self) -> bool:
        return not (self.fulfilled or self.cancelled)


@dataclass(frozen=True)
class Auction:
    buy_now_price: int = 0
    highest_bid: int = 0
    end_time: int = 0
    highest_bidder: str = ZERO_ADDRESS
    seller: str = ZERO_ADDRESS

    def exists(self) -> bool:
        return self.seller != ZERO_ADDRESS

    def has_bid(self) -> bool:
        return self.highest_bidder != ZERO_ADDRESS


@dataclass(frozen=True)
class RoyaltyRecord:
    royalty_rate: int
    creator: str


@dataclass(frozen=True)
class Settlement:
    """How one sale price was split between the parties."""
    operator_fee: int
    operator_loan: int
    creator_residual: int
    receiver_residual: int

    @property
    def total(self) -> int:
        return self.operator_fee + self.operator_loan + self.creator_residual + self.receiver_residual
