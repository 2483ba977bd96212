"""React to finalized Solana blocks, and fan out balance queries and transfers."""

__version__ = "0.1.0"
