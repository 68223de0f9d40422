"""Vaultsmith error hierarchy."""


class VaultsmithError(Exception):
    """Base exception for all vaultsmith errors.

    ``stage`` names the vault-add stage that was running when the error was
    raised; the orchestrator fills it in.
    """

    stage: str | None = None


class InputError(VaultsmithError):
    """Source type, path, or name is missing or unusable."""


class ConfigError(VaultsmithError):
    """Workspace config file missing or malformed."""


class ConfigConflictError(ConfigError):
    """Adding a vault would break vault or workspace-remote uniqueness."""


class MaterializeError(VaultsmithError):
    """Vault contents could not be created, copied, or cloned."""


class GitError(MaterializeError):
    """A git operation (clone) failed."""


class ClassificationError(VaultsmithError):
    """A cloned remote is neither a recognizable vault nor a workspace."""


class IgnoreFileError(VaultsmithError):
    """An ignore file could not be read or written."""
