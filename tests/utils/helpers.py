def calculate_market_fee(price: int, percents: int) -> int:
    # rounded up, the operator keeps the remainder
    return (price * percents + 9_999) // 10_000


def calculate_royalty_fee(price: int, percents: int) -> int:
    return price * percents // 10_000


def calculate_loan(donation_limit: int, donation: int, percents: int) -> int:
    return (donation_limit - donation) * percents // 10_000


def calculate_retained_cut(bid: int, percents: int = 1_000) -> int:
    return (bid * percents + 9_999) // 10_000
