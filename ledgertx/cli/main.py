# ledgertx/cli/main.py
"""
CLI for creating keys and inspecting, verifying, signing and re-enveloping transaction files.
"""

import json
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ledgertx import __version__
from ledgertx.codec import FORMAT_PLAIN, FormatType, deserialize, parse_format, read_format, serialize
from ledgertx.core.canon import canonical_json, decode_canonical_json
from ledgertx.core.config import fit_id
from ledgertx.core.encoding import hex_id, parse_hex_id
from ledgertx.core.errors import TransactionError
from ledgertx.core.logging import configure_logging
from ledgertx.crypto.keys import KeyPair, KeyType
from ledgertx.model.transaction import Transaction
from ledgertx.verify.verifier import TransactionVerifier

app = typer.Typer(
    name="ledgertx",
    help="Create keys and inspect, verify, sign or convert ledger transaction files",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

FORMAT_ENV = "LEDGERTX_FORMAT"
CURVES = {"p256": KeyType.ECDSA_P256V1, "secp256k1": KeyType.ECDSA_SECP256K1}
KEY_TYPE_NAMES = {int(k): k.name for k in KeyType}


def get_format(format_flag: Optional[str] = None, current: Optional[FormatType] = None) -> FormatType:
    """Resolve the envelope format in this order:
    1. --format flag
    2. LEDGERTX_FORMAT environment variable
    3. The input file's own format (when there is one)
    4. Default: plain
    """
    if format_flag:
        return parse_format(format_flag)
    env_format = os.environ.get(FORMAT_ENV)
    if env_format:
        return parse_format(env_format)
    return current if current is not None else FORMAT_PLAIN


def _load(path: Path) -> Transaction:
    if not path.exists():
        console.print(f"[red]File not found: {path}[/]")
        raise typer.Exit(1)
    try:
        return deserialize(path.read_bytes())
    except TransactionError as e:
        console.print(f"[red]Failed to decode {path}: {e}[/]")
        raise typer.Exit(1)


def _load_key(path: Path) -> KeyPair:
    if not path.exists():
        console.print(f"[red]Key file not found: {path}[/]")
        raise typer.Exit(1)
    try:
        return KeyPair.from_key_file(decode_canonical_json(path.read_bytes()))
    except (TransactionError, ValueError, KeyError) as e:
        console.print(f"[red]Invalid key file {path}: {e}[/]")
        raise typer.Exit(1)


def _link_references(tx: Transaction, ref_paths: List[Path]) -> None:
    """Re-link every Reference of tx that points at one of the given transaction files."""
    for ref_path in ref_paths:
        ref_tx = _load(ref_path)
        ref_id = fit_id(ref_tx.transaction_id, tx.id_conf.transaction_id_len)
        matched = [ref for ref in tx.references if ref.ref_transaction_id == ref_id]
        if not matched:
            console.print(f"[red]Not referenced by this transaction: {ref_path}[/]")
            raise typer.Exit(1)
        for ref in matched:
            ref.add(ref_transaction=ref_tx)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (overrides LEDGERTX_LOG_LEVEL env var)",
    ),
):
    """Work with binary ledger transactions."""
    configure_logging(log_level)


@app.command()
def version():
    """Print the package version."""
    console.print(__version__)


@app.command()
def keygen(
    curve: str = typer.Option("p256", "--curve", help="p256 or secp256k1"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Key file (default: print to stdout)"),
):
    """Generate a signing key pair."""
    if curve not in CURVES:
        console.print(f"[red]Unknown curve '{curve}' (choose from {', '.join(CURVES)})[/]")
        raise typer.Exit(1)
    keypair = KeyPair.generate(CURVES[curve])
    data = canonical_json(keypair.to_key_file())
    if output is None:
        typer.echo(data.decode("utf-8"))
        return
    output.write_bytes(data)
    console.print(f"[green]Wrote {curve} key to {output}[/]")
    console.print(f"  public key: {keypair.public_key_b64url()}")


@app.command()
def inspect(
    path: Path = typer.Argument(..., help="Serialized transaction file"),
    as_json: bool = typer.Option(False, "--json", help="Dump every field as JSON"),
):
    """Show the content of a transaction file."""
    tx = _load(path)
    if as_json:
        typer.echo(json.dumps(tx.to_dict(), indent=2))
        return

    console.print(f"[bold cyan]transaction_id[/] {hex_id(tx.transaction_id)}")
    console.print(f"version {tx.version} | timestamp {tx.timestamp} | format {read_format(path.read_bytes()).name.lower()}")

    table = Table(title="Objects")
    table.add_column("Kind")
    table.add_column("#")
    table.add_column("Asset group")
    table.add_column("Detail")
    for i, evt in enumerate(tx.events):
        table.add_row("event", str(i), hex_id(evt.asset_group_id) or "—",
                      f"{len(evt.mandatory_approvers)} mandatory, "
                      f"{evt.option_quorum_numerator}/{evt.option_quorum_denominator} optional")
    for i, ref in enumerate(tx.references):
        table.add_row("reference", str(i), hex_id(ref.asset_group_id) or "—",
                      f"{hex_id(ref.ref_transaction_id)}[{ref.ref_event_index}] slots {ref.sig_slot_indices}")
    for i, rtn in enumerate(tx.relations):
        table.add_row("relation", str(i), hex_id(rtn.asset_group_id) or "—", f"{len(rtn.pointers)} pointers")
    if tx.witness is not None:
        table.add_row("witness", "", "—", f"{len(tx.witness.user_ids)} users")
    if tx.crossref is not None:
        table.add_row("crossref", "", "—", hex_id(tx.crossref.transaction_id) or "—")
    for i, sig in enumerate(tx.signatures):
        state = KEY_TYPE_NAMES.get(sig.key_type, f"key_type {sig.key_type}") if sig.initialized else "unsigned"
        table.add_row("signature", str(i), "—", state)
    console.print(table)


@app.command()
def verify(
    path: Path = typer.Argument(..., help="Serialized transaction file"),
):
    """Verify every signature of a transaction."""
    tx = _load(path)
    result = TransactionVerifier().verify(tx)

    if result.is_valid:
        console.print(f"[green]✓ Transaction {hex_id(tx.transaction_id)} is valid[/]")
        console.print(f"  {result.message}")
    else:
        console.print(f"[red]✗ Verification failed for {hex_id(tx.transaction_id)}[/]")
        for failure in result.failures:
            console.print(f"  • [{failure.index}] {failure.category}: {failure.message}")
        raise typer.Exit(1)


@app.command()
def sign(
    path: Path = typer.Argument(..., help="Serialized transaction file"),
    key: Path = typer.Option(..., "--key", "-k", help="Key file written by keygen"),
    user: str = typer.Option(..., "--user", "-u", help="Signer user_id (hex)"),
    refs: Optional[List[Path]] = typer.Option(None, "--ref", "-r",
                                              help="Transaction spent by a Reference (repeatable)"),
    no_pubkey: bool = typer.Option(False, "--no-pubkey", help="Do not embed the public key"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: overwrite input)"),
):
    """
    Add (or replace) the signature of one user.

    Transactions with References need every referenced transaction (--ref) so the
    signature lands in the slot its Reference recorded.
    """
    tx = _load(path)
    keypair = _load_key(key)
    try:
        user_id = parse_hex_id(user)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)

    try:
        _link_references(tx, refs or [])
        idx = tx.sign_and_add(keypair, user_id, omit_public_key=no_pubkey)
        out = serialize(tx, read_format(path.read_bytes()))
    except TransactionError as e:
        console.print(f"[red]Signing failed: {e}[/]")
        raise typer.Exit(1)

    out_path = output or path
    out_path.write_bytes(out)
    console.print(f"[green]Signed slot {idx} of {hex_id(tx.transaction_id)} → {out_path}[/]")


@app.command()
def convert(
    path: Path = typer.Argument(..., help="Serialized transaction file"),
    format_name: Optional[str] = typer.Option(None, "--format", "-f",
                                              help="plain or zlib (overrides LEDGERTX_FORMAT env var)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: overwrite input)"),
):
    """Re-envelope a transaction in another format."""
    tx = _load(path)
    try:
        fmt = get_format(format_name, read_format(path.read_bytes()))
        out = serialize(tx, fmt)
    except TransactionError as e:
        console.print(f"[red]Conversion failed: {e}[/]")
        raise typer.Exit(1)

    out_path = output or path
    out_path.write_bytes(out)
    console.print(f"[green]Wrote {fmt.name.lower()} envelope ({len(out)} bytes) to {out_path}[/]")


if __name__ == "__main__":
    app()
