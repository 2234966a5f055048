"""Individual ``relbundle`` subcommands."""
