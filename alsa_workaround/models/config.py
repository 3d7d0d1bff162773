"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_WATCHED_PACKAGES = [
    "alsa-card-profiles",
    "wireplumber",
    "pipewire-alsa",
    "alsa-firmware",
]


class WorkaroundConfig(BaseModel):
    """A validated configuration model for the application."""

    # Mixer profile paths
    common_path: Path = Path(
        "/usr/share/alsa-card-profile/mixer/paths/analog-output.conf.common"
    )
    headphones_path: Path = Path(
        "/usr/share/alsa-card-profile/mixer/paths/analog-output-headphones.conf"
    )
    keep_backups: bool = False

    # Soft-mixer fallback
    global_softmixer_dir: Path = Path("/etc/wireplumber/wireplumber.conf.d")
    user_softmixer_dir: str = "wireplumber/wireplumber.conf.d"
    softmixer_filename: str = "51-alsa-soft-mixer.conf"
    card_match: str = "~alsa_card.*"

    # Session service restart
    service: str = "wireplumber.service"
    restart_service: bool = True
    min_uid: int = 1000
    max_uid: int = 60000
    shadow_path: Path = Path("/etc/shadow")
    runtime_dir_root: Path = Path("/run/user")

    # Package manager hooks
    status_file: Path = Path("/var/lib/alsa_workaround_status")
    watched_packages: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WATCHED_PACKAGES)
    )
    pacman_hook_path: Path = Path("/etc/pacman.d/hooks/alsa-workaround.hook")
    pacman_targets: list[str] = Field(default_factory=lambda: ["alsa-card-profiles"])
    apt_conf_path: Path = Path("/etc/apt/apt.conf.d/99alsa-workaround")
    executable: Path = Path("/usr/local/bin/alsa-workaround")

    # Optional JSON-lines event log; empty disables it
    log_dir: str = ""

    # Internal fields not loaded from INI file
    dry_run: bool = Field(False, repr=False)
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("user_softmixer_dir")
    @classmethod
    def validate_user_dir(cls, v: str) -> str:
        """The per-user directory is resolved below the user's config home."""
        if not v or v.startswith("/") or ".." in v:
            raise ValueError(
                "user_softmixer_dir must be a relative path below ~/.config."
            )
        return v

    @field_validator("softmixer_filename")
    @classmethod
    def validate_softmixer_filename(cls, v: str) -> str:
        """WirePlumber only reads *.conf fragments."""
        if "/" in v or not v.endswith(".conf"):
            raise ValueError("softmixer_filename must be a bare '*.conf' file name.")
        return v

    @field_validator("service")
    @classmethod
    def validate_service(cls, v: str) -> str:
        if not v or any(c.isspace() for c in v):
            raise ValueError("service must be a single systemd unit name.")
        return v

    @field_validator("executable")
    @classmethod
    def validate_executable(cls, v: Path) -> Path:
        """Hooks run outside of any shell PATH, so the command must be absolute."""
        if not v.is_absolute():
            raise ValueError(f"executable must be an absolute path, got: {v}")
        return v

    @field_validator("watched_packages", "pacman_targets")
    @classmethod
    def validate_package_list(cls, v: list[str]) -> list[str]:
        packages = [p.strip() for p in v if p.strip()]
        if not packages:
            raise ValueError("At least one package name is required.")
        if any(" " in p for p in packages):
            raise ValueError("Package names cannot contain spaces.")
        return packages

    @model_validator(mode="after")
    def validate_uid_range(self) -> "WorkaroundConfig":
        """Checks the range used to tell human accounts from system accounts."""
        if self.min_uid < 1 or self.max_uid < self.min_uid:
            raise ValueError(
                f"Invalid uid range: min_uid={self.min_uid}, max_uid={self.max_uid}."
            )
        return self

    @model_validator(mode="after")
    def validate_distinct_profiles(self) -> "WorkaroundConfig":
        if self.common_path == self.headphones_path:
            raise ValueError("common_path and headphones_path must differ.")
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "dry_run"}
        return {key for key in cls.model_fields if key not in internal_fields}
