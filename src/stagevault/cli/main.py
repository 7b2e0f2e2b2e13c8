"""
Main CLI entry point for StageVault.
"""

import logging
import sys

from stagevault.cli.vault_commands import cli

# Configure module logger
logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point"""
    logger.debug("Starting StageVault CLI")
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main() or 0)
