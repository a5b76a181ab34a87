"""Allow ``python -m weave.cli`` execution."""

from weave.cli.main import main

main()
