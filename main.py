"""Main entry point for the contract indexer."""

import sys

from contract_indexer.service import main as service_main


def main():
    """Run the indexer and exit with its status (0 on signal, 1 on failure)."""
    try:
        code = service_main()
    except KeyboardInterrupt:
        print("\nIndexer interrupted by user")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
