"""Keep a UniFi release table and news list up to date from public feeds."""

__version__ = "0.1.0"
