"""CLI module for lnbridge."""
