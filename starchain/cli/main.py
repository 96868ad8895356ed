# starchain/cli/main.py
"""
CLI for registering items on the star ledger, querying it and checking its integrity.
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from starchain.chain.challenge import OwnershipChallenge
from starchain.core.types import Block
from starchain.crypto.keys import WalletKeyPair
from starchain.registry import StarRegistry
from starchain.storage import SQLiteStorage

app = typer.Typer(
    name="starchain",
    help="Register items under a wallet address on a tamper-evident ledger",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def get_db_path(db_flag: Optional[Path] = None) -> Path:
    """Resolve DB path in this order:
    1. --db flag
    2. STARCHAIN_DB_PATH environment variable
    3. Default: ~/.starchain/starchain.db
    """
    if db_flag:
        path = db_flag.resolve()
    else:
        env_path = os.environ.get("STARCHAIN_DB_PATH")
        if env_path:
            path = Path(env_path).resolve()
        else:
            path = Path.home() / ".starchain" / "starchain.db"

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def open_registry(db_path: Path, must_exist: bool = True) -> StarRegistry:
    if must_exist and not db_path.exists():
        console.print(f"[red]Database file not found: {db_path}[/]")
        console.print("[yellow]To get started:[/]")
        console.print("  • Submit a first claim (creates the ledger with its genesis block)")
        console.print("  • Set env var: export STARCHAIN_DB_PATH=/path/to/ledger.db")
        console.print("  • Or use --db: starchain height --db /custom/path.db")
        raise typer.Exit(1)

    try:
        return StarRegistry(storage=SQLiteStorage(db_path))
    except Exception as e:
        console.print(f"[red]Failed to open database: {str(e)}[/]")
        console.print("[yellow]The file may be corrupted or not a valid SQLite DB.[/]")
        raise typer.Exit(1)


def parse_item(raw: str):
    """ITEM arguments are JSON when they parse as JSON, plain strings otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def print_block(block: Block) -> None:
    table = Table(title=f"Block {block.sequence_position}", show_header=False)
    table.add_column("Field")
    table.add_column("Value", overflow="fold")
    table.add_row("digest", block.digest or "—")
    table.add_row("previous_digest", block.previous_digest or "—")
    table.add_row("created_at", str(block.created_at))

    record = block.decoded_content()
    if record is None:
        table.add_row("claim", "— (genesis)" if block.sequence_position == 0 else "—")
    else:
        table.add_row("owner", record.owner)
        table.add_row("item", escape(json.dumps(record.item)))
    console.print(table)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)"),
):
    """Manage the star registry ledger."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def height(
    db: Optional[Path] = typer.Option(None, "--db", help="Path to SQLite database (overrides STARCHAIN_DB_PATH)"),
):
    """Show the height of the chain (position of the newest block)."""
    with open_registry(get_db_path(db)) as registry:
        console.print(f"Chain height: {registry.get_chain_height()}")


@app.command()
def challenge(
    address: str = typer.Argument(..., help="Wallet address requesting ownership verification"),
):
    """Issue a challenge message to be signed with the wallet key (valid for 5 minutes)."""
    typer.echo(OwnershipChallenge().issue(address))


@app.command()
def keygen():
    """Generate a new wallet key pair."""
    keys = WalletKeyPair.generate()
    typer.echo(f"address: {keys.address}")
    typer.echo(f"private: {keys.private_key_b64url()}")


@app.command()
def sign(
    message: str = typer.Argument(..., help="Challenge message to sign"),
    key: str = typer.Option(..., "--key", "-k", help="base64url private key (from `starchain keygen`)"),
):
    """Sign a challenge message with a wallet private key."""
    try:
        keys = WalletKeyPair.from_private_b64url(key)
    except Exception as e:
        console.print(f"[red]Invalid private key: {str(e)}[/]")
        raise typer.Exit(1)
    typer.echo(keys.sign_text(message))


@app.command()
def submit(
    address: str = typer.Argument(..., help="Wallet address of the owner"),
    message: str = typer.Argument(..., help="Challenge message returned by `starchain challenge`"),
    signature: str = typer.Argument(..., help="Signature of the challenge message"),
    item: str = typer.Argument(..., help="Item to register (JSON or plain text)"),
    db: Optional[Path] = typer.Option(None, "--db", help="Path to SQLite database (overrides STARCHAIN_DB_PATH)"),
):
    """Register an item under ADDRESS using a signed challenge."""
    with open_registry(get_db_path(db), must_exist=False) as registry:
        result = registry.submit(address, message, signature, parse_item(item))
        if not result.is_valid:
            console.print(f"[red]✗ {result.message}[/]")
            raise typer.Exit(1)

        console.print(f"[green]✓ {result.message}[/]")
        print_block(result.block)


@app.command()
def block(
    digest: Optional[str] = typer.Option(None, "--hash", help="Digest of the block"),
    position: Optional[int] = typer.Option(None, "--height", help="Height of the block"),
    db: Optional[Path] = typer.Option(None, "--db", help="Path to SQLite database (overrides STARCHAIN_DB_PATH)"),
):
    """Show a single block, looked up by digest or by height."""
    if (digest is None) == (position is None):
        console.print("[red]Pass exactly one of --hash or --height[/]")
        raise typer.Exit(2)

    with open_registry(get_db_path(db)) as registry:
        found = registry.get_block_by_hash(digest) if digest is not None else registry.get_block_by_height(position)

    if found is None:
        console.print("[yellow]Block not found[/]")
        raise typer.Exit(1)
    print_block(found)


@app.command()
def items(
    address: str = typer.Argument(..., help="Wallet address of the owner"),
    db: Optional[Path] = typer.Option(None, "--db", help="Path to SQLite database (overrides STARCHAIN_DB_PATH)"),
):
    """List the items registered by a wallet address, oldest first."""
    with open_registry(get_db_path(db)) as registry:
        owned = registry.get_items_by_owner(address)

    if not owned:
        console.print(f"[yellow]No items registered for {address}[/]")
        return

    for i, owned_item in enumerate(owned):
        console.print(f"{i:4d} | {escape(json.dumps(owned_item))}")


@app.command()
def validate(
    db: Optional[Path] = typer.Option(None, "--db", help="Path to SQLite database (overrides STARCHAIN_DB_PATH)"),
):
    """Check every block's digest and its link to the previous block."""
    with open_registry(get_db_path(db)) as registry:
        result = registry.ledger.verify()

    if result.is_valid:
        console.print("[green]✓ Chain is valid[/]")
        console.print(f"  {result.message}")
        return

    table = Table(title="Integrity failures")
    table.add_column("Height")
    table.add_column("Check")
    table.add_column("Problem")
    for failure in result.failures:
        table.add_row(str(failure.index), failure.category, failure.message)
    console.print("[red]✗ Chain validation failed[/]")
    console.print(table)
    raise typer.Exit(1)


@app.command()
def export(
    db: Optional[Path] = typer.Option(None, "--db", help="Path to SQLite database (overrides STARCHAIN_DB_PATH)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: starchain.jsonl)"),
):
    """Export the chain as JSONL (one block per line)."""
    with open_registry(get_db_path(db)) as registry:
        chain = registry.ledger.blocks()

    out_path = output or Path("starchain.jsonl")
    with open(out_path, "w", encoding="utf-8") as f:
        for b in chain:
            json.dump(b.to_dict(), f, separators=(",", ":"))
            f.write("\n")

    console.print(f"[green]Exported {len(chain)} blocks to {out_path}[/]")
    console.print("Format: JSONL — one block per line")


if __name__ == "__main__":
    app()
