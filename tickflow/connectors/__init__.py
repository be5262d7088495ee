"""Message sources for external market-data providers."""
