"""
Texfab Configuration - External tools, asset recipes and release settings.

Loaded from YAML (``texfab.yaml``) with environment variable overrides for
tool paths (``TEXFAB_<TOOL>``) and release secrets.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path("texfab.yaml")

KNOWN_TOOLS = ("blender", "cmft", "nvassemble", "nvcompress", "yaclog", "gh")


@dataclass
class ToolConfig:
    """Configuration for one external executable."""

    name: str
    path: str = ""  # explicit executable, otherwise discovered
    timeout_seconds: int = 600
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class CubemapOutput:
    """One cmft output: container plus pixel format."""

    container: str = "dds"
    pixel_format: str = "bgr8"


@dataclass
class CubemapConfig:
    """Blender render + cmft filter recipe."""

    blend_file: str = "cubemap.blend"
    prefix: str = "cubemap"
    frame: int = 0
    render_format: str = "HDR"
    generate_mip_chain: bool = True
    outputs: list[CubemapOutput] = field(
        default_factory=lambda: [CubemapOutput("dds", "bgr8"), CubemapOutput("ktx", "rgb8")]
    )

    def face_file(self, suffix: str) -> str:
        """Name Blender gives a rendered face, e.g. ``cubemap0000+X.hdr``."""
        return f"{self.prefix}{self.frame:04d}{suffix}.{self.render_format.lower()}"


@dataclass
class AssembleConfig:
    """nvassemble recipe: six PNG faces into one cubemap DDS."""

    prefix: str = "cubemap"
    noalpha: bool = True
    output: str = "cubemap.dds"

    def face_file(self, suffix: str) -> str:
        return f"{self.prefix}{suffix}.png"


@dataclass
class CompressJob:
    """One nvcompress invocation."""

    source: str
    format: str = "bc1"
    output: str = ""
    mipmaps: bool = False

    @property
    def output_name(self) -> str:
        return self.output or f"{Path(self.source).stem}-{self.format}.dds"


@dataclass
class ReleaseConfig:
    """Commands and tools used by ``texfab release``."""

    check_command: str = "ruff check ."
    test_command: str = "pytest"
    repository: str = "pypi"
    changelog_tool: str = "yaclog"
    dist_dir: str = "dist"
    timeout_seconds: int = 1800


@dataclass
class TexfabConfig:
    """Main texfab configuration."""

    tools: dict[str, ToolConfig] = field(default_factory=dict)
    cubemap: CubemapConfig = field(default_factory=CubemapConfig)
    assemble: AssembleConfig = field(default_factory=AssembleConfig)
    compress: list[CompressJob] = field(default_factory=list)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    log_dir: Path | None = None
    keep_intermediates: bool = False

    @classmethod
    def load(cls, config_path: Path | None = None) -> TexfabConfig:
        """Load configuration from YAML. A missing file yields the defaults."""
        config_path = config_path or DEFAULT_CONFIG_PATH
        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Cannot parse {config_path}: {e}") from None

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TexfabConfig:
        """Create config from a dictionary. Unknown keys raise ConfigError."""
        data = _mapping(data, "config")
        _check_keys(data, {f.name for f in fields(cls)}, "config")

        tools = {}
        for name, tool_data in _mapping(data.get("tools"), "tools").items():
            if isinstance(tool_data, str):
                tool_data = {"path": tool_data}
            tool_data = _mapping(tool_data, f"tools.{name}")
            _check_keys(tool_data, {"path", "timeout_seconds", "env"}, f"tools.{name}")
            tools[name] = ToolConfig(
                name=name,
                path=str(tool_data.get("path") or ""),
                timeout_seconds=int(tool_data.get("timeout_seconds", 600)),
                env={k: str(v) for k, v in (tool_data.get("env") or {}).items()},
            )

        cubemap_data = _mapping(data.get("cubemap"), "cubemap")
        outputs_data = cubemap_data.pop("outputs", None)
        cubemap = _build(CubemapConfig, cubemap_data, "cubemap")
        if outputs_data is not None:
            cubemap.outputs = [
                _build(CubemapOutput, o, "cubemap.outputs")
                if isinstance(o, Mapping)
                else CubemapOutput(*o)
                for o in outputs_data
            ]

        assemble = _build(AssembleConfig, data.get("assemble"), "assemble")
        compress = [_build(CompressJob, job, "compress") for job in data.get("compress") or []]
        release = _build(ReleaseConfig, data.get("release"), "release")

        log_dir = data.get("log_dir")

        return cls(
            tools=tools,
            cubemap=cubemap,
            assemble=assemble,
            compress=compress,
            release=release,
            log_dir=Path(log_dir) if log_dir else None,
            keep_intermediates=bool(data.get("keep_intermediates", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a YAML-friendly dictionary."""
        return {
            "tools": {
                name: {
                    "path": tool.path,
                    "timeout_seconds": tool.timeout_seconds,
                    "env": dict(tool.env),
                }
                for name, tool in self.tools.items()
            },
            "cubemap": asdict(self.cubemap),
            "assemble": asdict(self.assemble),
            "compress": [asdict(job) for job in self.compress],
            "release": asdict(self.release),
            "log_dir": str(self.log_dir) if self.log_dir else None,
            "keep_intermediates": self.keep_intermediates,
        }

    def save(self, config_path: Path) -> None:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)

    def tool(self, name: str) -> ToolConfig:
        """Return the configuration for ``name``, defaults if it is not configured."""
        return self.tools.get(name) or ToolConfig(name=name)


def _mapping(value: Any, section: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Expected a mapping for {section}, got {type(value).__name__}")
    return dict(value)


def _check_keys(data: Mapping[str, Any], known: set[str], section: str) -> None:
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(
            f"Unknown key(s) in {section}: {', '.join(unknown)} "
            f"(expected one of: {', '.join(sorted(known))})"
        )


def _build(cls: type, value: Any, section: str) -> Any:
    data = _mapping(value, section)
    _check_keys(data, {f.name for f in fields(cls)}, section)
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigError(f"Invalid {section}: {e}") from None
