"""Relbundle CLI — Typer-based command-line interface.

Provides the ``relbundle`` command with subcommands for compiling a
release tarball, resolving single builds, and checking whether a
release is already built.

All output uses Rich for formatted terminal display.
"""
