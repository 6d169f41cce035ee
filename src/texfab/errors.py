"""
Errors - Exception hierarchy for texture handling and external tool runs.
"""

from __future__ import annotations


class TextureError(Exception):
    """Base class for all texture, shape, format and container errors."""


class DimensionError(TextureError):
    """Invalid texture dimensions."""


class ShapeError(TextureError):
    """A set of surfaces cannot form the requested texture shape."""


class FormatError(TextureError):
    """The pixel format is unknown or not supported by this operation."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Unsupported format: {message}")
        self.detail = message


class CapabilityError(TextureError):
    """The texture cannot be represented by the chosen container."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Texture exceeds container's capabilities: {message}")
        self.detail = message


class HeaderError(TextureError):
    """Malformed container header or truncated texture data."""


class ToolError(Exception):
    """Base class for external tool failures."""


class ToolNotFoundError(ToolError):
    def __init__(self, tool: str) -> None:
        super().__init__(f"{tool} not found. Install it or set its path in texfab.yaml")
        self.tool = tool


class ToolFailedError(ToolError):
    def __init__(self, tool: str, exit_code: int, stderr: str = "") -> None:
        tail = stderr.strip()[-500:]
        message = f"{tool} failed with exit code {exit_code}"
        if tail:
            message = f"{message}: {tail}"
        super().__init__(message)
        self.tool = tool
        self.exit_code = exit_code
        self.stderr = stderr


class ToolTimeoutError(ToolError):
    def __init__(self, tool: str, timeout_seconds: int) -> None:
        super().__init__(f"{tool} timed out after {timeout_seconds}s")
        self.tool = tool
        self.timeout_seconds = timeout_seconds


class OutputMissingError(ToolError):
    """A pipeline step finished but did not produce an expected file."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Expected output not found: {path}")
        self.path = path


class InputMissingError(ToolError):
    """A pipeline step cannot start because an input file is absent."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Required input not found: {path}")
        self.path = path


class ConfigError(Exception):
    """``texfab.yaml`` cannot be parsed or holds keys texfab does not know."""
