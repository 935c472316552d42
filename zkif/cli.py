import json
import logging

import click
from pathlib import Path

from zkif.backend import verify_artifacts, zkif_backend
from zkif.config import DEFAULT_CONFIG, load_config
from zkif.errors import SynthesisError
from zkif.messages import Messages


def _load_messages(paths):
    messages = Messages()
    for path in paths:
        messages.read_file(path)
    return messages


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON file overriding the default configuration")
@click.option("--verbose", "-v", count=True, help="Repeat for more logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """zkif command line interface"""
    config = load_config(config_path) if config_path else dict(DEFAULT_CONFIG)
    level = {0: config["log_level"], 1: "INFO"}.get(verbose, "DEBUG")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = config


@cli.command(name="prove")
@click.argument("message_files", nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False))
@click.option("--out-dir", type=click.Path(file_okay=False), default="local", show_default=True,
              help="Directory for the key and proof artifacts")
@click.option("--seed", default=None, help="Deterministic randomness (testing only)")
@click.pass_obj
def prove_cmd(config, message_files, out_dir, seed):
    """Generate a key and/or proof for the circuit in MESSAGE_FILES."""
    try:
        messages = _load_messages(message_files)
        written = zkif_backend(messages, Path(out_dir), config=config, seed=seed)
    except SynthesisError as exc:
        raise click.ClickException(f"{type(exc).__name__}: {exc}")
    for kind, path in written.items():
        if path is not None:
            click.echo(f"{kind}: {path}")


@cli.command(name="verify")
@click.option("--out-dir", type=click.Path(file_okay=False), default="local", show_default=True)
@click.pass_obj
def verify_cmd(config, out_dir):
    """Check the proof artifact against the key artifact."""
    try:
        ok = verify_artifacts(Path(out_dir), config=config)
    except SynthesisError as exc:
        raise click.ClickException(f"{type(exc).__name__}: {exc}")
    click.echo("valid" if ok else "invalid")
    if not ok:
        raise click.exceptions.Exit(1)


@cli.command(name="inspect")
@click.argument("message_files", nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def inspect_cmd(config, message_files):
    """Summarize a message stream."""
    try:
        messages = _load_messages(message_files)
        circuit = messages.last_circuit()
        summary = {
            "messages": len(messages),
            "has_circuit": circuit is not None,
            "constraints": sum(1 for _ in messages.iter_constraints()),
            "witness_values": sum(1 for _ in messages.iter_witness()),
        }
        if circuit is not None:
            private_vars = messages.private_variables(limit=config["max_private_variables"])
    except SynthesisError as exc:
        raise click.ClickException(f"{type(exc).__name__}: {exc}")
    if circuit is not None:
        summary.update({
            "connections": len(circuit.connections.variable_ids),
            "private_variables": len(private_vars),
            "free_variable_id": circuit.free_variable_id,
            "r1cs_generation": circuit.r1cs_generation,
            "witness_generation": circuit.witness_generation,
        })
    click.echo(json.dumps(summary, indent=2))


def main():
    cli()

if __name__ == "__main__":
    main()
