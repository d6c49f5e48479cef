"""taskdeck: a single-user command-line task manager backed by a JSON file."""
