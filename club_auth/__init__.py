"""Identity and credential lifecycle service for The Big Screen Club."""

__version__ = "1.0.0"
