"""On-chain clients."""
