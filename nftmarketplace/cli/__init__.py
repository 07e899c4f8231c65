"""nftmarketplace CLI — Typer-based command-line interface.

Provides the ``nftmarketplace`` command with subcommands for deploying the
contracts to a local chain, running an end-to-end demo, and inspecting and
verifying the transaction journal.

All output uses Rich for formatted terminal display.
"""
