from nftmarket.bank import Bank
from nftmarket.chain import Chain, TransactionReceipt
from nftmarket.config import MarketConfig, load_config
from nftmarket.errors import AlreadyFinalized, ConfigError, InsufficientFunds, InvalidInput, MarketplaceError, \
    NotFound, TransferFailed, Unauthorized
from nftmarket.marketplace import Marketplace
from nftmarket.registry import Collection
from nftmarket.structs import Auction, Offer, RoyaltyRecord, Settlement

__version__ = '0.1.0'
