"""
Entry point for running lnbridge as a module: python -m lnbridge
"""

from lnbridge.cli.commands import app

if __name__ == "__main__":
    app()
