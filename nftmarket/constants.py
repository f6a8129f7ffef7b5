from eth_utils import to_wei

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'

# all rates are integers over this denominator, i.e. 250 = 2,5%
FEE_DENOMINATOR = 10_000

# market fee bounds (0% - 10%)
MAX_MARKET_FEE = 1_000
DEFAULT_MARKET_FEE = 250

# royalty rate bounds enforced when an asset is minted (1% - 10%)
MIN_ROYALTY_RATE = 100
MAX_ROYALTY_RATE = 1_000

DEFAULT_DONATION_LIMIT = 0
MAX_DONATION_LIMIT = to_wei(1_000_000, 'ether')

# bids must grow by 10% or by the fixed minimum increment, whichever is applicable
BID_INCREMENT_RATE = 1_000
DEFAULT_MIN_BID_INCREMENT = to_wei('0.01', 'ether')

# share of every bid kept by the platform (10%)
DEFAULT_BID_RETENTION = 1_000

# bids placed this close to the end push the end time out (10 minutes)
DEFAULT_EXTENSION_WINDOW = 60 * 10

SECONDS_PER_HOUR = 60 * 60
