"""Configuration system for fps-monitor."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit


@dataclass
class CaptureConfig:
    """Capture binary location and acquisition hints.

    Resolution order: dev_path, then resource_dir (or the bin/ directory
    bundled with the package when empty), then the system PATH.
    """

    binary_name: str = "PresentMon.exe"
    dev_path: str = "bin/PresentMon.exe"  # Relative to the working directory
    resource_dir: str = ""  # Empty = package bin/ directory
    download_url: str = "https://github.com/GameTechDev/PresentMon/releases"


@dataclass
class MetricsConfig:
    """Frame metrics aggregation configuration."""

    window_seconds: float = 1.0  # Snapshot cadence (wall-clock, not frame count)
    status_recent_frames: int = 60  # Frames averaged for status().current_fps


@dataclass
class SystemConfig:
    """Process-level configuration."""

    # Log file rotation
    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    capture: CaptureConfig = field(default_factory=CaptureConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "fps-monitor"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs and other expendable persistent state."""
        return Path.home() / ".local" / "state" / "fps-monitor"

    @property
    def log_path(self) -> Path:
        """Monitor log path (JSON Lines)."""
        return self.state_dir / "monitor.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("capture", "metrics", "system"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions, so Config() and
        Config.load() agree when the file is absent or partial.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        sys_data = data.get("system", {})
        sys_defaults = defaults.system

        return cls(
            capture=_load_capture_config(data.get("capture", {})),
            metrics=_load_metrics_config(data.get("metrics", {})),
            system=SystemConfig(
                log_max_bytes=sys_data.get("log_max_bytes", sys_defaults.log_max_bytes),
                log_backup_count=sys_data.get("log_backup_count", sys_defaults.log_backup_count),
            ),
        )


def _load_capture_config(data: dict) -> CaptureConfig:
    """Load capture config from TOML data."""
    d = CaptureConfig()
    binary_name = data.get("binary_name", d.binary_name)
    if not binary_name:
        raise ValueError("capture.binary_name must not be empty")

    return CaptureConfig(
        binary_name=binary_name,
        dev_path=data.get("dev_path", d.dev_path),
        resource_dir=data.get("resource_dir", d.resource_dir),
        download_url=data.get("download_url", d.download_url),
    )


def _load_metrics_config(data: dict) -> MetricsConfig:
    """Load metrics config from TOML data, validating ranges."""
    d = MetricsConfig()
    window_seconds = data.get("window_seconds", d.window_seconds)
    status_recent_frames = data.get("status_recent_frames", d.status_recent_frames)

    if window_seconds <= 0:
        raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
    if status_recent_frames < 1:
        raise ValueError(f"status_recent_frames must be >= 1, got {status_recent_frames}")

    return MetricsConfig(
        window_seconds=float(window_seconds),
        status_recent_frames=int(status_recent_frames),
    )
