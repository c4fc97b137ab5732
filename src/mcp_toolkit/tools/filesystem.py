"""Filesystem tools for sandboxed file operations.

Every path argument goes through the shared PathAuthorizer before any I/O.
Paths discovered while walking a directory tree are re-checked and silently
skipped when they fall outside the allow-list.

Key Features:
- Whole-file text reads and writes
- Directory listing, creation and file moves
- Recursive name and content search with cancellation between files
- File metadata
"""

import asyncio
import fnmatch
import logging
import os
import re
import shutil
from collections.abc import Iterator
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import Field

from mcp_toolkit.exceptions import ResourceNotFoundError, ToolkitError, ToolValidationError
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


class ListAllowedDirectoriesOperation(str, Enum):
    LIST_ALLOWED_DIRECTORIES = "ListAllowedDirectories"


class ListAllowedDirectoriesParameters(ToolParameters):
    operation: ListAllowedDirectoriesOperation


class ReadFileOperation(str, Enum):
    READ_FILE = "ReadFile"


class ReadFileParameters(ToolParameters):
    operation: ReadFileOperation
    path: str | None = Field(default=None, description="Full path of the file to read")


class ReadMultipleFilesOperation(str, Enum):
    READ_MULTIPLE_FILES = "ReadMultipleFiles"


class ReadMultipleFilesParameters(ToolParameters):
    operation: ReadMultipleFilesOperation
    paths: list[str] = Field(default_factory=list, description="Full paths of files to read")


class WriteFileOperation(str, Enum):
    WRITE_FILE = "WriteFile"


class WriteFileParameters(ToolParameters):
    operation: WriteFileOperation
    path: str | None = Field(default=None, description="Complete path of the file to write")
    content: str | None = Field(default=None, description="Content to write to the file")


class CreateDirectoryOperation(str, Enum):
    CREATE_DIRECTORY = "CreateDirectory"


class CreateDirectoryParameters(ToolParameters):
    operation: CreateDirectoryOperation
    path: str | None = Field(default=None, description="Full path of the directory to create")


class ListDirectoryOperation(str, Enum):
    LIST_DIRECTORY = "ListDirectory"


class ListDirectoryParameters(ToolParameters):
    operation: ListDirectoryOperation
    path: str | None = Field(default=None, description="Full path of the directory to list")


class MoveFileOperation(str, Enum):
    MOVE_FILE = "MoveFile"


class MoveFileParameters(ToolParameters):
    operation: MoveFileOperation
    source: str | None = Field(default=None, description="Source path of the file")
    destination: str | None = Field(default=None, description="Destination path for the file")


class SearchFilesOperation(str, Enum):
    SEARCH_FILES = "SearchFiles"


class SearchFilesParameters(ToolParameters):
    operation: SearchFilesOperation
    path: str | None = Field(default=None, description="Directory to search in")
    pattern: str | None = Field(default=None, description="Search pattern for file names")


class SearchInFilesOperation(str, Enum):
    SEARCH_IN_FILES = "SearchInFiles"


class SearchInFilesParameters(ToolParameters):
    operation: SearchInFilesOperation
    path: str | None = Field(default=None, description="Directory to search in")
    pattern: str | None = Field(default=None, description="Regex pattern to search in file contents")
    file_extensions: list[str] | None = Field(
        default=None, description='Optional file extensions to filter (e.g. [".txt", ".py"])'
    )


class GetFileInfoOperation(str, Enum):
    GET_FILE_INFO = "GetFileInfo"


class GetFileInfoParameters(ToolParameters):
    operation: GetFileInfoOperation
    path: str | None = Field(default=None, description="Full path of the file or directory")


class DeleteFileOperation(str, Enum):
    DELETE_FILE = "DeleteFile"


class DeleteFileParameters(ToolParameters):
    operation: DeleteFileOperation
    path: str | None = Field(default=None, description="Full path of the file to delete")


def _format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


class FileSystemTools(Toolset):
    """Filesystem tools restricted to the configured allowed directories.

    Example:
        >>> tools = FileSystemTools(ToolkitSettings(allowed_directories=["/work"]))
        >>> await tools.read_file(ReadFileParameters(operation="ReadFile", path="/work/a.txt"), ctx)
        'file contents'
    """

    def get_tools(self) -> list[ToolDescriptor]:
        """Get list of filesystem tools."""
        return [
            define_tool(
                "ListAllowedDirectories",
                ListAllowedDirectoriesParameters,
                {
                    ListAllowedDirectoriesOperation.LIST_ALLOWED_DIRECTORIES: OperationSpec(
                        handler=self.list_allowed_directories,
                        description="List all directories authorized for file operations",
                    )
                },
            ),
            define_tool(
                "ReadFile",
                ReadFileParameters,
                {
                    ReadFileOperation.READ_FILE: OperationSpec(
                        handler=self.read_file,
                        description="Reads the content of a file from a specified path",
                        parameters=("path: Full path of the file to read",),
                        required=("path",),
                    )
                },
            ),
            define_tool(
                "ReadMultipleFiles",
                ReadMultipleFilesParameters,
                {
                    ReadMultipleFilesOperation.READ_MULTIPLE_FILES: OperationSpec(
                        handler=self.read_multiple_files,
                        description="Reads the contents of multiple files from specified paths",
                        parameters=("paths: List of full paths of files to read",),
                        required=("paths",),
                    )
                },
            ),
            define_tool(
                "WriteFile",
                WriteFileParameters,
                {
                    WriteFileOperation.WRITE_FILE: OperationSpec(
                        handler=self.write_file,
                        description="Writes content to a file, overwriting existing content",
                        parameters=(
                            "path: Complete path of the file to write",
                            "content: Content to write to the file",
                        ),
                        required=("path", "content"),
                    )
                },
            ),
            define_tool(
                "CreateDirectory",
                CreateDirectoryParameters,
                {
                    CreateDirectoryOperation.CREATE_DIRECTORY: OperationSpec(
                        handler=self.create_directory,
                        description="Creates a new directory at a specified path",
                        parameters=("path: Full path of the directory to create",),
                        required=("path",),
                    )
                },
            ),
            define_tool(
                "ListDirectory",
                ListDirectoryParameters,
                {
                    ListDirectoryOperation.LIST_DIRECTORY: OperationSpec(
                        handler=self.list_directory,
                        description="Lists all files and subdirectories in a specified directory",
                        parameters=("path: Full path of the directory to list",),
                        required=("path",),
                    )
                },
            ),
            define_tool(
                "MoveFile",
                MoveFileParameters,
                {
                    MoveFileOperation.MOVE_FILE: OperationSpec(
                        handler=self.move_file,
                        description="Move or rename a file from one location to another",
                        parameters=(
                            "source: Source path of the file",
                            "destination: Destination path for the file",
                        ),
                        required=("source", "destination"),
                    )
                },
            ),
            define_tool(
                "SearchFiles",
                SearchFilesParameters,
                {
                    SearchFilesOperation.SEARCH_FILES: OperationSpec(
                        handler=self.search_files,
                        description="Search for files matching a pattern in a directory",
                        parameters=(
                            "path: Directory to search in",
                            "pattern: Search pattern for files",
                        ),
                        required=("path", "pattern"),
                    )
                },
            ),
            define_tool(
                "SearchInFiles",
                SearchInFilesParameters,
                {
                    SearchInFilesOperation.SEARCH_IN_FILES: OperationSpec(
                        handler=self.search_in_files,
                        description="Search in files content using a regex pattern",
                        parameters=(
                            "path: Directory to search in",
                            "pattern: Regex pattern to search in file contents",
                            'fileExtensions: Optional array of file extensions to filter (e.g. [".txt", ".py"])',
                        ),
                        required=("path", "pattern"),
                    )
                },
            ),
            define_tool(
                "GetFileInfo",
                GetFileInfoParameters,
                {
                    GetFileInfoOperation.GET_FILE_INFO: OperationSpec(
                        handler=self.get_file_info,
                        description="Retrieve detailed metadata about a file or directory",
                        parameters=("path: Full path of the file or directory",),
                        required=("path",),
                    )
                },
            ),
            define_tool(
                "DeleteFile",
                DeleteFileParameters,
                {
                    DeleteFileOperation.DELETE_FILE: OperationSpec(
                        handler=self.delete_file,
                        description="Deletes a file at the specified path",
                        parameters=("path: Full path of the file to delete",),
                        required=("path",),
                    )
                },
            ),
        ]

    def _walk_files(self, root: str) -> Iterator[str]:
        """Yield files under ``root`` that the authorizer allows, in sorted order."""
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                candidate = os.path.join(dirpath, filename)
                if self.authorizer.is_allowed(candidate):
                    yield candidate

    async def _list_files(self, root: str) -> list[str]:
        return await asyncio.to_thread(lambda: list(self._walk_files(root)))

    @staticmethod
    def _read_text(path: str) -> str:
        # newline="" keeps \r\n so offsets agree with the positional edit tools
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()

    async def list_allowed_directories(
        self, params: ListAllowedDirectoriesParameters, context: CallContext
    ) -> str:
        return "Allowed directories:\n" + "\n".join(self.authorizer.allowed_directories)

    async def read_file(self, params: ReadFileParameters, context: CallContext) -> str:
        valid_path = self._validate_path(params.path)
        if not os.path.isfile(valid_path):
            raise ResourceNotFoundError(f"File not found: {params.path}")
        return await asyncio.to_thread(self._read_text, valid_path)

    async def read_multiple_files(
        self, params: ReadMultipleFilesParameters, context: CallContext
    ) -> str:
        """Read each file; a failure for one path is reported inline."""
        results = []
        for path in params.paths:
            if context.cancelled:
                break
            try:
                valid_path = self._validate_path(path)
                content = await asyncio.to_thread(self._read_text, valid_path)
                results.append(f"{path}:\n{content}")
            except (ToolkitError, OSError, ValueError) as e:
                logger.warning(f"[{context.correlation_id}] Failed to read {path}: {e}")
                results.append(f"{path}: Error - {e}")
        return "\n---\n".join(results)

    async def write_file(self, params: WriteFileParameters, context: CallContext) -> str:
        valid_path = self._validate_path(params.path)
        Path(valid_path).write_text(params.content, encoding="utf-8")
        return f"Successfully wrote to {params.path}"

    async def create_directory(
        self, params: CreateDirectoryParameters, context: CallContext
    ) -> str:
        valid_path = self._validate_path(params.path)
        # Intermediate directories are created too, so the parent must be allowed
        self._validate_path(os.path.dirname(valid_path))
        Path(valid_path).mkdir(parents=True, exist_ok=True)
        return f"Successfully created directory {params.path}"

    async def list_directory(self, params: ListDirectoryParameters, context: CallContext) -> str:
        valid_path = self._validate_path(params.path)
        if not os.path.isdir(valid_path):
            raise ResourceNotFoundError(f"Directory not found: {params.path}")

        entries = []
        for entry in sorted(os.scandir(valid_path), key=lambda e: e.name):
            prefix = "[DIR]" if entry.is_dir() else "[FILE]"
            entries.append(f"{prefix} {entry.name}")
        return "\n".join(entries)

    async def move_file(self, params: MoveFileParameters, context: CallContext) -> str:
        source = self._validate_path(params.source)
        destination = self._validate_path(params.destination)

        if not os.path.exists(source):
            raise ResourceNotFoundError(f"Source not found: {params.source}")
        if os.path.exists(destination):
            raise ToolValidationError(
                f"Destination already exists: {params.destination}",
                operation=MoveFileOperation.MOVE_FILE.value,
                field="destination",
            )

        shutil.move(source, destination)
        return f"Successfully moved {params.source} to {params.destination}"

    async def search_files(self, params: SearchFilesParameters, context: CallContext) -> str:
        """Recursively find files whose name contains ``pattern`` (wildcards allowed)."""
        valid_path = self._validate_path(params.path)
        if not os.path.isdir(valid_path):
            raise ResourceNotFoundError(f"Directory not found: {params.path}")

        name_pattern = f"*{params.pattern}*"
        results = []
        for file_path in await self._list_files(valid_path):
            if context.cancelled:
                logger.info(f"[{context.correlation_id}] SearchFiles cancelled")
                break
            if fnmatch.fnmatch(os.path.basename(file_path), name_pattern):
                results.append(file_path)
            await asyncio.sleep(0)

        return "\n".join(results) if results else NO_MATCHES

    async def search_in_files(self, params: SearchInFilesParameters, context: CallContext) -> str:
        """Search file contents line by line; unreadable files are skipped."""
        valid_path = self._validate_path(params.path)
        if not os.path.isdir(valid_path):
            raise ResourceNotFoundError(f"Directory not found: {params.path}")

        regex = re.compile(params.pattern)
        extensions = {ext.lower() for ext in params.file_extensions or []}
        results: list[str] = []

        for file_path in await self._list_files(valid_path):
            if context.cancelled:
                logger.info(f"[{context.correlation_id}] SearchInFiles cancelled")
                break
            if extensions and os.path.splitext(file_path)[1].lower() not in extensions:
                continue

            try:
                content = await asyncio.to_thread(self._read_text, file_path)
            except (OSError, ValueError) as e:
                logger.warning(f"[{context.correlation_id}] Error processing file {file_path}: {e}")
                continue

            if regex.search(content):
                results.append(f"Found match in: {file_path}")
                for line_number, line in enumerate(content.split("\n"), start=1):
                    if regex.search(line):
                        results.append(f"  Line {line_number}: {line.strip()}")
                results.append("")
            await asyncio.sleep(0)

        return "\n".join(results) if results else NO_MATCHES

    async def get_file_info(self, params: GetFileInfoParameters, context: CallContext) -> str:
        valid_path = self._validate_path(params.path)
        if not os.path.exists(valid_path):
            raise ResourceNotFoundError(f"Path not found: {params.path}")

        stat = os.stat(valid_path)
        is_directory = os.path.isdir(valid_path)
        created = getattr(stat, "st_birthtime", stat.st_ctime)
        info = {
            "size": stat.st_size,
            "created": _format_timestamp(created),
            "modified": _format_timestamp(stat.st_mtime),
            "accessed": _format_timestamp(stat.st_atime),
            "isDirectory": is_directory,
            "isFile": not is_directory,
            "permissions": format(stat.st_mode & 0o777, "o"),
        }
        return "\n".join(f"{key}: {value}" for key, value in info.items())

    async def delete_file(self, params: DeleteFileParameters, context: CallContext) -> str:
        valid_path = self._validate_path(params.path)
        if not os.path.isfile(valid_path):
            raise ResourceNotFoundError(f"File not found: {params.path}")
        os.remove(valid_path)
        return f"File {valid_path} has been successfully deleted."
