"""Shared dependencies: ToolStore and structured logger."""

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from app.catalog.models import ToolRecord
from app.config import get_settings

# Attributes present on every LogRecord; anything else came in via ``extra``.
_RESERVED_LOG_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_LOG_ATTRS:
                data[key] = value
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging() -> logging.Logger:
    """Configure and return the application logger."""
    settings = get_settings()
    logger = logging.getLogger("tool_directory")
    logger.setLevel(getattr(logging, settings.log_level.upper()))
    logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


logger = setup_logging()


class DirectoryError(Exception):
    """Base exception for tool directory operations."""

    pass


class ToolNotFoundError(DirectoryError):
    """Raised when a tool id is not present in the dataset."""

    pass


class DatasetError(DirectoryError):
    """Raised when a tool file cannot be parsed into a record."""

    pass


class CountsStoreError(DirectoryError):
    """Raised when the view/vote counter store cannot be read or written."""

    pass


TEMPLATE_FILE = "template.json"


@dataclass
class ToolStore:
    """Read-only provider for the tool dataset.

    Every ``*.json`` file in ``data_path`` holds one tool record. The
    store re-reads the directory on each call; there is no cache.
    """

    data_path: Path

    def _parse_file(self, path: Path) -> ToolRecord:
        """Parse a single tool file.

        Raises:
            DatasetError: If the file is not valid JSON or not a valid record
        """
        try:
            return ToolRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise DatasetError(f"Invalid tool file {path.name}: {e}") from e

    async def load_tools(self) -> list[ToolRecord]:
        """Load every tool record, sorted by name.

        Files that fail to parse are logged and skipped, as are later files
        (in file-name order) reusing an id already loaded. A missing data
        directory yields an empty list.

        Returns:
            Tool records ordered alphabetically (case-insensitive)
        """
        if not self.data_path.is_dir():
            logger.warning("tools_directory_missing", extra={"path": str(self.data_path)})
            return []

        tools: dict[str, ToolRecord] = {}
        for path in sorted(self.data_path.glob("*.json")):
            if path.name == TEMPLATE_FILE:
                continue
            try:
                tool = self._parse_file(path)
            except DatasetError as e:
                logger.error("tool_file_invalid", extra={"file": path.name, "error": str(e)})
                continue
            if tool.id in tools:
                logger.warning("duplicate_tool_id", extra={"file": path.name, "tool_id": tool.id})
                continue
            tools[tool.id] = tool

        return sorted(tools.values(), key=lambda t: t.name.casefold())

    async def get_tool(self, tool_id: str) -> ToolRecord:
        """Get a tool by id.

        Raises:
            ToolNotFoundError: If no record has this id
        """
        for tool in await self.load_tools():
            if tool.id == tool_id:
                return tool
        raise ToolNotFoundError(f"Tool not found: {tool_id}")

    async def list_ids(self) -> list[str]:
        """List all tool ids."""
        return [t.id for t in await self.load_tools()]

    async def list_categories(self) -> list[str]:
        """List categories that have at least one tool, in first-seen order."""
        return list(dict.fromkeys(t.category for t in await self.load_tools()))


async def get_tool_store() -> AsyncIterator[ToolStore]:
    """FastAPI dependency provider for ToolStore."""
    yield ToolStore(data_path=get_settings().tools_data_path)
