class PatchError(ValueError):
    """Any problem detected while applying change chunks."""


class ChunkApplyError(PatchError):
    """Raised while splicing a single resolved chunk into the working copy."""


class PatchPathError(PatchError):
    """Raised when a requested file path is absolute or escapes the base directory."""
