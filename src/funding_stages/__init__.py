"""Funding-stage lifecycle tracking for incubator startups."""

__version__ = "0.1.0"
