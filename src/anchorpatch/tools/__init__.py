# Re-export the base tool interfaces and registry
from .base import (  # noqa: F401
    BaseTool,
    ToolResponseType,
    ToolSpec,
    ToolTextResponse,
    register,
    register_tool,
    unregister_tool,
    get_tool,
    get_all_tools,
)

# Built-in tools register themselves on import
from . import file_apply_patch_tool  # noqa: F401,E402
