# =============================================================================
# src/cli/__main__.py — Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m src.cli <source> [--json] [--output FILE]
#
# Delegates to the generate command, the only CLI tool.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.generate import main

main()
