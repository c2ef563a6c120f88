from typing import Any, Dict, Optional

from pydantic import ValidationError

from anchorpatch.logger import logger
from anchorpatch.patch import FileApplyPatchRequest, FileApplyPatchResponse, apply_patch_file
from anchorpatch.settings import ChangeChunkConfig
from anchorpatch.tools import base as tools_base

# Tool config keys forwarded to ChangeChunkConfig
CONFIG_KEYS = tuple(ChangeChunkConfig.model_fields.keys())


@tools_base.register("file_apply_patch")
class FileApplyPatchTool(tools_base.BaseTool):
    """
    Apply change chunks to one file under base_path using context markers and
    fuzzy anchor matching. Engine options come from the tool config.
    Returns the JSON-encoded FileApplyPatchResponse.
    """

    name = "file_apply_patch"

    def _config_from_spec(self, spec: tools_base.ToolSpec) -> ChangeChunkConfig:
        options = {k: v for k, v in (spec.config or {}).items() if k in CONFIG_KEYS}
        return ChangeChunkConfig.model_validate(options)

    async def run(
        self, spec: tools_base.ToolSpec, args: Any
    ) -> Optional[tools_base.ToolTextResponse]:
        if not spec.enabled:
            resp = FileApplyPatchResponse(
                success=False, error=f"Error: Tool '{self.name}' is disabled"
            )
            return tools_base.ToolTextResponse(text=resp.to_json())

        try:
            if isinstance(args, FileApplyPatchRequest):
                request = args
            else:
                request = FileApplyPatchRequest.model_validate(args)
        except ValidationError as e:
            logger.warning("Invalid file_apply_patch arguments", err=str(e))
            resp = FileApplyPatchResponse(success=False, error=f"Invalid arguments: {e}")
            return tools_base.ToolTextResponse(text=resp.to_json())

        config = self._config_from_spec(spec)
        resp = apply_patch_file(request, self.base_path, config=config)
        return tools_base.ToolTextResponse(text=resp.to_json())

    async def openapi_spec(self, spec: tools_base.ToolSpec) -> Dict[str, Any]:
        schema = FileApplyPatchRequest.model_json_schema()
        schema["additionalProperties"] = False
        return {
            "name": self.name,
            "description": (
                "Apply change chunks to modify a file using contextual markers and "
                "fuzzy matching. Each chunk names an anchor line ('@@ <text>') and "
                "lists changes prefixed with '+' (add), '-' (remove) or ' ' (context)."
            ),
            "parameters": schema,
        }
