"""Allow running the CLI with ``python -m neurosched.cli``."""

from neurosched.cli.main import main

main()
