"""vaultsmith: provision and register vaults into a multi-root workspace."""

__version__ = "0.1.0"
