"""A two-player bomb-laying arcade game kept in sync over TCP or UDP."""

__version__ = "0.1.0"