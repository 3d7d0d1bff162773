"""Shared fixtures for alsa-workaround unit tests."""

import pwd
import subprocess
from pathlib import Path

import pytest

from alsa_workaround.models.config import WorkaroundConfig

COMMON_CONF = """\
[General]
description-key = analog-output

[Element Hardware Master]
switch = mute
volume = merge

[Element PCM]
switch = mute
volume = merge
override-map.1 = all
override-map.2 = all-left,all-right
"""

HEADPHONES_CONF = """\
[General]
priority = 99
description-key = analog-output-headphones

[Element Master]
switch = mute
volume = merge
override-map.1 = all

[Element Headphone]
switch = mute
volume = merge
"""


def make_account(name: str, uid: int, shell: str = "/bin/bash") -> pwd.struct_passwd:
    return pwd.struct_passwd((name, "x", uid, uid, "", f"/home/{name}", shell))


class FakeRunner:
    """
    Stands in for subprocess.run and answers who, su, systemctl and dpkg-query
    calls.
    """

    def __init__(self, who: str = "", versions: dict | None = None, fail_users=()):
        self.who = who
        self.versions = versions or {}
        self.fail_users = set(fail_users)
        self.calls: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        if cmd[0] == "who":
            return subprocess.CompletedProcess(cmd, 0, stdout=self.who, stderr="")
        if cmd[0] == "su":
            if cmd[1] in self.fail_users:
                return subprocess.CompletedProcess(
                    cmd, 1, stdout="", stderr="Failed to connect to bus"
                )
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        if cmd[0] == "systemctl":
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        if cmd[0] == "dpkg-query":
            version = self.versions.get(cmd[-1])
            if version is None:
                return subprocess.CompletedProcess(
                    cmd, 1, stdout="", stderr="no packages found"
                )
            return subprocess.CompletedProcess(cmd, 0, stdout=version, stderr="")
        raise AssertionError(f"unexpected command: {cmd}")

    @property
    def restarted(self) -> list[str]:
        return [cmd[1] for cmd in self.calls if cmd[0] == "su"]


@pytest.fixture(autouse=True)
def _isolated_user_env(tmp_path, monkeypatch):
    """Keep per-user config lookups inside the test's temp directory."""
    monkeypatch.delenv("SUDO_USER", raising=False)
    monkeypatch.delenv("ALSA_WORKAROUND_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "home" / ".config"))


@pytest.fixture
def profiles(tmp_path) -> tuple[Path, Path]:
    """Writes stock copies of both mixer profiles."""
    paths_dir = tmp_path / "mixer" / "paths"
    paths_dir.mkdir(parents=True)
    common = paths_dir / "analog-output.conf.common"
    headphones = paths_dir / "analog-output-headphones.conf"
    common.write_text(COMMON_CONF)
    headphones.write_text(HEADPHONES_CONF)
    return common, headphones


@pytest.fixture
def config_settings(tmp_path, profiles) -> dict:
    """Settings that point every system path into the temp directory."""
    common, headphones = profiles
    executable = tmp_path / "bin" / "alsa-workaround"
    executable.parent.mkdir()
    executable.write_text("#!/bin/sh\n")
    executable.chmod(0o755)
    return {
        "common_path": common,
        "headphones_path": headphones,
        "global_softmixer_dir": tmp_path / "etc" / "wireplumber" / "wireplumber.conf.d",
        "shadow_path": tmp_path / "shadow",
        "runtime_dir_root": tmp_path / "run" / "user",
        "status_file": tmp_path / "var" / "alsa_workaround_status",
        "pacman_hook_path": tmp_path / "pacman.d" / "hooks" / "alsa-workaround.hook",
        "apt_conf_path": tmp_path / "apt.conf.d" / "99alsa-workaround",
        "executable": executable,
    }


@pytest.fixture
def config(config_settings) -> WorkaroundConfig:
    return WorkaroundConfig(**config_settings)


@pytest.fixture
def accounts(tmp_path) -> dict[str, pwd.struct_passwd]:
    """A password database of human, system and odd accounts."""
    table = {
        "alice": make_account("alice", 1000),
        "bob": make_account("bob", 1001),
        "carol": make_account("carol", 1002),
        "dave": make_account("dave", 1003, shell="/usr/sbin/nologin"),
        "erin": make_account("erin", 1004),
        "gdm": make_account("gdm", 120),
    }
    for name in ("alice", "bob", "carol", "dave", "gdm"):
        (tmp_path / "run" / "user" / str(table[name].pw_uid)).mkdir(parents=True)
    (tmp_path / "shadow").write_text(
        "root:*:19000:0:99999:7:::\n"
        "alice:$6$salt$hash:19000:0:99999:7:::\n"
        "carol:!$6$salt$hash:19000:0:99999:7:::\n"
    )
    return table


@pytest.fixture
def user_lookup(accounts):
    def _lookup(name: str) -> pwd.struct_passwd:
        return accounts[name]

    return _lookup


@pytest.fixture
def su_available(monkeypatch):
    """Run as root with su on PATH."""
    import alsa_workaround.core.sessions as sessions_mod

    monkeypatch.setattr(sessions_mod.os, "geteuid", lambda: 0)
    monkeypatch.setattr(
        sessions_mod.shutil,
        "which",
        lambda cmd: f"/usr/bin/{cmd}" if cmd == "su" else None,
    )
