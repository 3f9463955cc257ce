"""bcasync - synchronize KlikBCA transactions with YNAB, Firefly III or CSV."""

__version__ = "1.2.0"
