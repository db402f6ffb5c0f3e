"""
fairdraw.cli
------------

Offline CLI over the allocation core. Every command delegates to the JSON
method shims in `fairdraw.api.methods` and prints JSON.

Commands:
  - commit    : Build a commitment for (seed, nonce, committer).
  - vrf       : Derive one output + proof at a ledger height.
  - verify    : Check a proof JSON file against an input and height (exit 1 if invalid).
  - batch     : Derive a batch of outputs + the batch digest.
  - allocate  : Run a strategy over a JSON request file.
  - fairness  : Score a list of results against the eligible pool size.
  - config    : Show the effective configuration (env and/or file).

Example:
  fairdraw vrf --seed 0x01020304 --nonce 0 --height 120
  fairdraw vrf --seed 0x01020304 --height 120 > proof.json
  fairdraw verify proof.json --expected-ledger 120
  fairdraw allocate request.json
"""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Dict, Mapping, Optional

import typer
from pydantic import ValidationError

from ..api.methods import (
    fd_allocate,
    fd_commit,
    fd_fairness,
    fd_generate_batch,
    fd_verify_proof,
    fd_vrf,
)
from ..config import FairdrawConfig
from ..errors import FairdrawError

__all__ = ["app", "main"]

app = typer.Typer(
    name="fairdraw",
    help="Verifiable fair allocation: commit→reveal, VRF batches, strategies, audits.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def _root(
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    cfg = FairdrawConfig(log_level=log_level)
    try:
        cfg.validate()
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level")
    cfg.configure_logging()


# -----------------------
# Helpers
# -----------------------

def _emit(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _call(handler: Callable[[Mapping[str, Any]], Dict[str, Any]], args: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        return handler(args)
    except ValidationError as e:
        typer.echo(f"invalid parameters:\n{e}", err=True)
        raise typer.Exit(code=2)
    except FairdrawError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)


def _load_json(path: str) -> Any:
    try:
        if path == "-":
            txt = sys.stdin.read()
        else:
            with open(path, "r", encoding="utf-8") as f:
                txt = f.read()
    except OSError as e:
        typer.echo(f"cannot read {path}: {e}", err=True)
        raise typer.Exit(code=2)
    try:
        return json.loads(txt)
    except json.JSONDecodeError as e:
        typer.echo(f"invalid JSON in {path}: {e}", err=True)
        raise typer.Exit(code=2)


# -----------------------
# Commands
# -----------------------

@app.command("commit")
def cmd_commit(
    seed: str = typer.Option(..., "--seed", "-s", help="0x-hex secret seed."),
    nonce: int = typer.Option(..., "--nonce", "-n", help="u32 nonce."),
    committer: str = typer.Option(..., "--committer", "-c", help="Participant identifier."),
) -> None:
    """Build the commitment SHA-256(seed || nonce_le32 || committer)."""
    _emit(_call(fd_commit, {"seed": seed, "nonce": nonce, "committer": committer}))


@app.command("vrf")
def cmd_vrf(
    seed: str = typer.Option(..., "--seed", "-s", help="0x-hex seed."),
    nonce: int = typer.Option(0, "--nonce", "-n", help="u32 nonce."),
    height: int = typer.Option(0, "--height", help="Ledger height to derive at."),
) -> None:
    """Derive one randomness output and its proof."""
    _emit(_call(fd_vrf, {"seed": seed, "nonce": nonce, "ledger_sequence": height}))


@app.command("verify")
def cmd_verify(
    proof_file: str = typer.Argument(..., help="Path to proof JSON (or '-' for stdin)."),
    expected_ledger: int = typer.Option(..., "--expected-ledger", "-e", help="Height the proof must bind to."),
    input_hex: Optional[str] = typer.Option(
        None, "--input", "-i", help="0x-hex input to check against (default: the proof's own input)."
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only set the exit code."),
) -> None:
    """Verify a proof; exits 0 when valid and 1 otherwise."""
    obj = _load_json(proof_file)
    # `fairdraw vrf` output wraps the proof; a bare proof has a hex "proof" blob
    proof = obj["proof"] if isinstance(obj, dict) and isinstance(obj.get("proof"), dict) else obj
    if not isinstance(proof, dict):
        typer.echo("proof JSON must be an object", err=True)
        raise typer.Exit(code=2)
    args = {
        "proof": proof,
        "input": input_hex if input_hex is not None else proof.get("input", ""),
        "expected_ledger": expected_ledger,
    }
    res = _call(fd_verify_proof, args)
    if not quiet:
        _emit(res)
    raise typer.Exit(code=0 if res["valid"] else 1)


@app.command("batch")
def cmd_batch(
    seed: str = typer.Option(..., "--seed", "-s", help="0x-hex seed."),
    size: int = typer.Option(..., "--size", "-k", help="Number of outputs."),
    height: int = typer.Option(0, "--height", help="Ledger height to derive at."),
) -> None:
    """Derive a batch of outputs (nonce = index) and the batch digest."""
    _emit(_call(fd_generate_batch, {"seed": seed, "batch_size": size, "ledger_sequence": height}))


@app.command("allocate")
def cmd_allocate(
    request_file: str = typer.Argument(..., help="Path to allocation request JSON (or '-' for stdin)."),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Override the request's strategy."),
) -> None:
    """
    Run a strategy. The request mirrors fd.allocate:

        {"strategy": "lottery", "quantity": 2,
         "entries": [{"participant": "alice", "entry_time": 100}, ...],
         "randomness_values": ["123", "0xff"]}

    Without a strategy in the request or on the command line, the configured
    default (FAIRDRAW_DEFAULT_STRATEGY) is used.
    """
    req = _load_json(request_file)
    if not isinstance(req, dict):
        typer.echo("request JSON must be an object", err=True)
        raise typer.Exit(code=2)
    if strategy is not None:
        req["strategy"] = strategy
    elif "strategy" not in req:
        try:
            req["strategy"] = FairdrawConfig.from_env().default_strategy
        except ValueError as e:
            typer.echo(f"invalid configuration: {e}", err=True)
            raise typer.Exit(code=2)
    _emit(_call(fd_allocate, req))


@app.command("fairness")
def cmd_fairness(
    results_file: str = typer.Argument(..., help="Results JSON: a list, or an object with a 'results' key."),
    total_entries: int = typer.Option(..., "--total-entries", "-t", help="Size of the eligible pool."),
) -> None:
    """Score results against the eligible pool size (0..100)."""
    obj = _load_json(results_file)
    results = obj.get("results", []) if isinstance(obj, dict) else obj
    _emit(_call(fd_fairness, {"results": results, "total_entries": total_entries}))


@app.command("config")
def cmd_config(
    path: Optional[str] = typer.Option(None, "--file", "-f", help="JSON/YAML config file (default: environment)."),
) -> None:
    """Show the effective configuration."""
    try:
        cfg = FairdrawConfig.from_file(path) if path else FairdrawConfig.from_env()
    except (OSError, ValueError) as e:
        typer.echo(f"invalid configuration: {e}", err=True)
        raise typer.Exit(code=2)
    typer.echo(cfg.to_json())


def main() -> None:  # pragma: no cover - thin wrapper
    """Console entry point (`fairdraw`)."""
    try:
        app(prog_name="fairdraw")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
