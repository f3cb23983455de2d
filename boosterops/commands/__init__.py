"""Click subcommands for boosterops."""
