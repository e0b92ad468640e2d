"""Simulated on-chain programs (vault, voting, marketplace, fundraiser) over an in-memory account model."""

__version__ = "0.1.0"
__all__ = ["runtime", "vault", "voting", "marketplace", "fundraiser"]