"""Positional text-editing tools.

Each tool reads the whole file, applies one of the pure transformations from
:mod:`mcp_toolkit.text_editing` and writes the whole result back. No lock is
held between the read and the write, so concurrent edits to the same file
race and the last writer wins.
"""

import logging
import os
from enum import Enum

from pydantic import Field

from mcp_toolkit.exceptions import NoMatchesError, ResourceNotFoundError
from mcp_toolkit.text_editing import (
    delete_at,
    effective_delete_length,
    insert_at,
    replace_between_markers,
    search_and_replace,
    search_positions,
)
from mcp_toolkit.tools.toolset import (
    CallContext,
    OperationSpec,
    ToolDescriptor,
    ToolParameters,
    Toolset,
    define_tool,
)

logger = logging.getLogger(__name__)

NO_MATCHES = "No matches found"


class WriteFileAtPositionOperation(str, Enum):
    WRITE_FILE_AT_POSITION = "WriteFileAtPosition"


class WriteFileAtPositionParameters(ToolParameters):
    operation: WriteFileAtPositionOperation
    path: str | None = Field(default=None, description="Full path of the file to modify")
    content: str | None = Field(default=None, description="Content to insert")
    position: int | None = Field(default=None, description="Insertion position in the file")


class DeleteAtPositionOperation(str, Enum):
    DELETE_AT_POSITION = "DeleteAtPosition"


class DeleteAtPositionParameters(ToolParameters):
    operation: DeleteAtPositionOperation
    path: str | None = Field(default=None, description="Full path of the file to modify")
    position: int | None = Field(default=None, description="Starting position for deletion")
    length: int | None = Field(default=None, description="Number of characters to delete")
    preserve_length: bool = Field(default=False, description="Replace with spaces instead of removing")


class SearchPositionOperation(str, Enum):
    SEARCH_POSITION_IN_FILE_WITH_REGEX = "SearchPositionInFileWithRegex"


class SearchPositionParameters(ToolParameters):
    operation: SearchPositionOperation
    path: str | None = Field(default=None, description="Full path of the file to examine")
    regex: str | None = Field(default=None, description="Regular expression pattern to search for")


class SearchAndReplaceOperation(str, Enum):
    SEARCH_AND_REPLACE = "SearchAndReplace"


class SearchAndReplaceParameters(ToolParameters):
    operation: SearchAndReplaceOperation
    path: str | None = Field(default=None, description="Full path of the file to modify")
    regex: str | None = Field(default=None, description="Regular expression pattern to search for")
    replacement: str | None = Field(default=None, description="Replacement content")
    preserve_length: bool = Field(default=False, description="Pad or truncate to keep file length")


class ReplaceFunctionOperation(str, Enum):
    REPLACE_FUNCTION = "ReplaceFunction"


class ReplaceFunctionParameters(ToolParameters):
    operation: ReplaceFunctionOperation
    path: str | None = Field(default=None, description="Full path of the file to modify")
    function_signature: str | None = Field(
        default=None, description="Signature of the function to replace"
    )
    start_markers: list[str] = Field(
        default_factory=list, description="Possible function start markers"
    )
    end_markers: list[str] = Field(default_factory=list, description="Possible function end markers")
    new_function_code: str | None = Field(default=None, description="New function code content")


class TextEditTools(Toolset):
    """Character-offset editing of files inside the allowed directories."""

    def get_tools(self) -> list[ToolDescriptor]:
        """Get list of text editing tools."""
        return [
            define_tool(
                "WriteFileAtPosition",
                WriteFileAtPositionParameters,
                {
                    WriteFileAtPositionOperation.WRITE_FILE_AT_POSITION: OperationSpec(
                        handler=self.write_file_at_position,
                        description="Insert content into a file at a specific position",
                        parameters=(
                            "path: Full path of the file to modify",
                            "content: Content to insert",
                            "position: Insertion position in the file",
                        ),
                        required=("path", "content", "position"),
                    )
                },
            ),
            define_tool(
                "DeleteAtPosition",
                DeleteAtPositionParameters,
                {
                    DeleteAtPositionOperation.DELETE_AT_POSITION: OperationSpec(
                        handler=self.delete_at_position,
                        description="Deletes a specific number of characters at the given position",
                        parameters=(
                            "path: Full path of the file to modify",
                            "position: Starting position for deletion",
                            "length: Number of characters to delete",
                            "preserveLength: Option to replace with spaces",
                        ),
                        required=("path", "position", "length"),
                    )
                },
            ),
            define_tool(
                "SearchPositionInFileWithRegex",
                SearchPositionParameters,
                {
                    SearchPositionOperation.SEARCH_POSITION_IN_FILE_WITH_REGEX: OperationSpec(
                        handler=self.search_position_in_file,
                        description="Searches for positions of regex pattern matches in a file",
                        parameters=(
                            "path: Full path of the file to examine",
                            "regex: Regular expression pattern to search for",
                        ),
                        required=("path", "regex"),
                    )
                },
            ),
            define_tool(
                "SearchAndReplace",
                SearchAndReplaceParameters,
                {
                    SearchAndReplaceOperation.SEARCH_AND_REPLACE: OperationSpec(
                        handler=self.search_and_replace,
                        description="Replaces occurrences of a regular expression with replacement content",
                        parameters=(
                            "path: Full path of the file to modify",
                            "regex: Regular expression pattern to search for",
                            "replacement: Replacement content",
                            "preserveLength: Option to preserve file length",
                        ),
                        required=("path", "regex", "replacement"),
                    )
                },
            ),
            define_tool(
                "ReplaceFunction",
                ReplaceFunctionParameters,
                {
                    ReplaceFunctionOperation.REPLACE_FUNCTION: OperationSpec(
                        handler=self.replace_function,
                        description="Replaces function content in source code using signature and markers",
                        parameters=(
                            "path: Full path of the file to modify",
                            "functionSignature: Signature of the function to replace",
                            "startMarkers: Array of possible function start markers",
                            "endMarkers: Array of possible function end markers",
                            "newFunctionCode: New function code content",
                        ),
                        required=(
                            "path",
                            "function_signature",
                            "start_markers",
                            "end_markers",
                            "new_function_code",
                        ),
                    )
                },
            ),
        ]

    def _read_existing(self, valid_path: str, display_path: str) -> str:
        if not os.path.isfile(valid_path):
            raise ResourceNotFoundError(f"File not found: {display_path}")
        # newline="" keeps \r\n intact so offsets match the bytes on disk
        with open(valid_path, encoding="utf-8", newline="") as f:
            return f.read()

    @staticmethod
    def _write(valid_path: str, text: str) -> None:
        with open(valid_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)

    async def write_file_at_position(
        self, params: WriteFileAtPositionParameters, context: CallContext
    ) -> str:
        """Insert content at a character offset; missing files are created."""
        if params.position < 0:
            raise ValueError("Position cannot be negative")
        valid_path = self._validate_path(params.path)

        if not os.path.exists(valid_path):
            self._write(valid_path, params.content)
        else:
            text = self._read_existing(valid_path, params.path)
            self._write(valid_path, insert_at(text, params.position, params.content))

        return f"Successfully wrote content at position {params.position} in {params.path}"

    async def delete_at_position(
        self, params: DeleteAtPositionParameters, context: CallContext
    ) -> str:
        if params.position < 0:
            raise ValueError("Position cannot be negative")
        if params.length <= 0:
            raise ValueError("Length must be greater than zero")
        valid_path = self._validate_path(params.path)
        text = self._read_existing(valid_path, params.path)

        updated = delete_at(text, params.position, params.length, params.preserve_length)
        self._write(valid_path, updated)

        effective = effective_delete_length(text, params.position, params.length)
        return (
            f"Successfully deleted {effective} characters at position {params.position} "
            f"in {params.path}"
        )

    async def search_position_in_file(
        self, params: SearchPositionParameters, context: CallContext
    ) -> str:
        valid_path = self._validate_path(params.path)
        text = self._read_existing(valid_path, params.path)

        matches = search_positions(text, params.regex)
        if not matches:
            return NO_MATCHES
        return "\n".join(str(match) for match in matches)

    async def search_and_replace(
        self, params: SearchAndReplaceParameters, context: CallContext
    ) -> str:
        valid_path = self._validate_path(params.path)
        text = self._read_existing(valid_path, params.path)

        try:
            updated, count = search_and_replace(
                text, params.regex, params.replacement, params.preserve_length
            )
        except NoMatchesError:
            return NO_MATCHES

        self._write(valid_path, updated)
        logger.debug(f"[{context.correlation_id}] Replaced {count} matches in {valid_path}")
        return f"Successfully replaced {count} occurrences in {params.path}"

    async def replace_function(
        self, params: ReplaceFunctionParameters, context: CallContext
    ) -> str:
        """Replace a marker-delimited block; not-found cases are reported as results."""
        valid_path = self._validate_path(params.path)
        text = self._read_existing(valid_path, params.path)

        replacement = replace_between_markers(
            text,
            params.function_signature,
            params.start_markers,
            params.end_markers,
            params.new_function_code,
        )
        if not replacement.found:
            logger.info(f"[{context.correlation_id}] ReplaceFunction: {replacement.failure}")
            return replacement.failure

        self._write(valid_path, replacement.text)
        return f"Successfully replaced function in {params.path}"
