from .patch import (  # noqa: F401
    ChangeChunkProcessor,
    FileApplyPatchChunk,
    FileApplyPatchRequest,
    ProcessResult,
    apply_patch_file,
)
from .settings import ChangeChunkConfig, load_config  # noqa: F401
