import logging

import click
from eth_utils import is_address, to_checksum_address

from nftmarket.config import MarketConfig, dump_config, load_config
from nftmarket.constants import DEFAULT_DONATION_LIMIT, DEFAULT_MARKET_FEE, DEFAULT_MIN_BID_INCREMENT, \
    MAX_DONATION_LIMIT, MAX_MARKET_FEE, MAX_ROYALTY_RATE, MIN_ROYALTY_RATE
from nftmarket.errors import MarketplaceError
from nftmarket.settlement import split_sale


def validate_eth_address(value):
    if not is_address(value):
        raise click.UsageError("Invalid address!")
    return to_checksum_address(value)


def _load(path: str) -> MarketConfig:
    try:
        return load_config(path)
    except MarketplaceError as exc:
        raise click.ClickException(exc.message) from exc


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Log debug output.')
def cli(verbose: bool) -> None:
    """Configure and inspect an nftmarket marketplace."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


@cli.command()
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
def init(path: str) -> None:
    """Prompt for marketplace parameters and write them to PATH."""
    click.echo("You are configuring a marketplace")
    market_fee = click.prompt('Insert market fee (basis points i.e. 250 = 2,5%)',
                              type=click.IntRange(min=0, max=MAX_MARKET_FEE), default=DEFAULT_MARKET_FEE)
    donation_limit = click.prompt('Insert donation limit (wei)',
                                  type=click.IntRange(min=0, max=MAX_DONATION_LIMIT), default=DEFAULT_DONATION_LIMIT)
    min_bid_increment = click.prompt('Insert min bid increment (wei)',
                                     type=click.IntRange(min=1), default=DEFAULT_MIN_BID_INCREMENT)
    operator = click.prompt('Insert operator address', value_proc=validate_eth_address)

    click.echo(
        f"""
    Marketplace Parameters
           market fee: {market_fee}
       donation limit: {donation_limit}
    min bid increment: {min_bid_increment}
             operator: {operator}
    """
    )

    if not click.confirm("Write configuration"):
        return

    config = MarketConfig(
        operator=operator,
        market_fee=market_fee,
        donation_limit=donation_limit,
        min_bid_increment=min_bid_increment,
    )
    dump_config(config, path)
    click.echo(f"Configuration written to {path}")


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def show(path: str) -> None:
    """Print the marketplace parameters stored in PATH."""
    config = _load(path)
    for key, value in config.to_dict().items():
        click.echo(f"{key.replace('_', ' '):>18}: {value}")


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--price', type=click.IntRange(min=1), required=True, help='Sale price in wei.')
@click.option('--royalty-rate', type=click.IntRange(min=MIN_ROYALTY_RATE, max=MAX_ROYALTY_RATE), required=True,
              help='Royalty rate of the asset in basis points.')
@click.option('--donation', type=click.IntRange(min=0), default=0, show_default=True,
              help='Current donation counter of the asset.')
def quote(path: str, price: int, royalty_rate: int, donation: int) -> None:
    """Show how a sale at PRICE would be split under the configuration in PATH."""
    config = _load(path)
    try:
        settlement, new_donation = split_sale(
            price, config.market_fee, royalty_rate, config.donation_limit, min(donation, config.donation_limit)
        )
    except MarketplaceError as exc:
        raise click.ClickException(exc.message) from exc

    click.echo(
        f"""
    Sale Split
         operator fee: {settlement.operator_fee}
        operator loan: {settlement.operator_loan}
     creator residual: {settlement.creator_residual}
    receiver residual: {settlement.receiver_residual}
         new donation: {new_donation}
    """
    )


def main() -> None:
    cli()
