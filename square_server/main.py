"""
Main entry point for the Square World server.

Usage:
    python -m square_server.main

Or:
    square-world-server
"""

from square_server.network.server import main


if __name__ == "__main__":
    main()
