"""CLI entrypoint for auctionledger."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import CONFIG_FILENAME, load_config
from .harness import Harness
from .lifecycle import AuctionContract
from .store import FileStore


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="auctionledger")
@click.option(
    "--state-dir",
    "-s",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    envvar="AUCTIONLEDGER_STATE_DIR",
    help="Directory holding state.json and audit.log (overrides the config file)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to config file (defaults to ./{CONFIG_FILENAME} if present)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx: click.Context, state_dir: Path | None, config_path: Path | None, log_level: str | None) -> None:
    """auctionledger - asset ownership and multi-platform auctions.

    Every command runs as one transaction against the state directory.
    """
    ctx.ensure_object(dict)

    if config_path is not None and not config_path.exists():
        raise click.BadParameter(f"File '{config_path}' does not exist.", param_hint="--config")
    try:
        config = load_config(config_path or Path.cwd() / CONFIG_FILENAME)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    _configure_logging((log_level or config.log_level).upper())

    resolved = (state_dir or config.state_dir).resolve()
    ctx.obj["state_dir"] = resolved
    ctx.obj["harness"] = Harness(
        FileStore(resolved),
        contract=AuctionContract(config.policy()),
        state_dir=resolved,
    )


# =============================================================================
# Asset commands
# =============================================================================


@cli.group()
def asset() -> None:
    """Register and inspect assets."""
    pass


@asset.command("add")
@click.argument("asset_id")
@click.argument("owner")
@click.pass_context
def asset_add(ctx: click.Context, asset_id: str, owner: str) -> None:
    """Register ASSET_ID owned by OWNER."""
    from .commands.asset_cmd import run_asset_add

    sys.exit(run_asset_add(ctx.obj["harness"], asset_id, owner))


@asset.command("show")
@click.argument("asset_id")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def asset_show(ctx: click.Context, asset_id: str, output_json: bool) -> None:
    """Show one asset."""
    from .commands.asset_cmd import run_asset_show

    sys.exit(run_asset_show(ctx.obj["harness"], asset_id, output_json=output_json))


@asset.command("list")
@click.pass_context
def asset_list(ctx: click.Context) -> None:
    """List all assets."""
    from .commands.asset_cmd import run_asset_list

    sys.exit(run_asset_list(ctx.obj["harness"]))


# =============================================================================
# Auction commands
# =============================================================================


@cli.group()
def auction() -> None:
    """Run auctions: start → bind → ending → end."""
    pass


@auction.command("start")
@click.argument("asset_id")
@click.argument("platforms", nargs=-1, required=True)
@click.pass_context
def auction_start(ctx: click.Context, asset_id: str, platforms: tuple[str, ...]) -> None:
    """Start an auction for ASSET_ID on one or more PLATFORMS.

    Prints the new auction id on stdout.
    """
    from .commands.auction_cmd import run_auction_start

    sys.exit(run_auction_start(ctx.obj["harness"], asset_id, list(platforms)))


@auction.command("bind")
@click.argument("auction_id", type=click.IntRange(min=1))
@click.argument("cross_auction_ids", nargs=-1, required=True)
@click.pass_context
def auction_bind(ctx: click.Context, auction_id: int, cross_auction_ids: tuple[str, ...]) -> None:
    """Record each platform's own auction id, in platform order."""
    from .commands.auction_cmd import run_auction_bind

    sys.exit(run_auction_bind(ctx.obj["harness"], auction_id, list(cross_auction_ids)))


@auction.command("ending")
@click.argument("asset_id")
@click.pass_context
def auction_ending(ctx: click.Context, asset_id: str) -> None:
    """Mark the pending auction of ASSET_ID as ending."""
    from .commands.auction_cmd import run_auction_ending

    sys.exit(run_auction_ending(ctx.obj["harness"], asset_id))


@auction.command("end")
@click.argument("auction_id", type=click.IntRange(min=1))
@click.argument("bids", nargs=-1, required=True, metavar="BIDDER:AMOUNT...")
@click.pass_context
def auction_end(ctx: click.Context, auction_id: int, bids: tuple[str, ...]) -> None:
    """End an auction with each platform's highest bid, in platform order.

    Examples:

        auctionledger auction end 1 bob:5 carol:9
    """
    from .commands.auction_cmd import run_auction_end

    sys.exit(run_auction_end(ctx.obj["harness"], auction_id, list(bids)))


@auction.command("show")
@click.argument("auction_id", type=click.IntRange(min=1))
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def auction_show(ctx: click.Context, auction_id: int, output_json: bool) -> None:
    """Show one auction."""
    from .commands.auction_cmd import run_auction_show

    sys.exit(run_auction_show(ctx.obj["harness"], auction_id, output_json=output_json))


@auction.command("list")
@click.option(
    "--status",
    type=click.Choice(["Started", "Bind", "Ending", "Ended"], case_sensitive=False),
    default=None,
    help="Only show auctions in this status",
)
@click.pass_context
def auction_list(ctx: click.Context, status: str | None) -> None:
    """List all auctions."""
    from .commands.auction_cmd import run_auction_list

    sys.exit(run_auction_list(ctx.obj["harness"], status=status))


# =============================================================================
# Raw invocation and journal
# =============================================================================


@cli.command()
@click.argument("operation")
@click.argument("args_json", default="{}")
@click.pass_context
def invoke(ctx: click.Context, operation: str, args_json: str) -> None:
    """Invoke OPERATION with a JSON object of arguments.

    Examples:

        auctionledger invoke asset.add '{"asset_id": "A1", "owner": "alice"}'

        auctionledger invoke asset.get '{"asset_id": {"base64": "QTE="}}'
    """
    from .commands.ledger_cmd import run_invoke

    sys.exit(run_invoke(ctx.obj["harness"], operation, args_json))


@cli.command()
@click.option("--last", "last_n", type=click.IntRange(min=1), default=None, help="Only the last N entries")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def log(ctx: click.Context, last_n: int | None, output_json: bool) -> None:
    """Show committed transactions."""
    from .commands.ledger_cmd import run_log

    sys.exit(run_log(ctx.obj["state_dir"], last_n=last_n, output_json=output_json))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
