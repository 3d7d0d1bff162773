"""Tests for pacman/APT hook rendering and installation."""

from pathlib import Path

import pytest

import alsa_workaround.core.hooks as hooks_mod
from alsa_workaround.core.hooks import (
    HookInstaller,
    render_apt_conf,
    render_pacman_hook,
    require_root,
)
from alsa_workaround.exceptions import HookInstallError, NotRootError


@pytest.fixture
def detect(monkeypatch):
    """Pretend only the given package-manager commands are on PATH."""

    def _detect(*commands: str):
        monkeypatch.setattr(
            hooks_mod.shutil,
            "which",
            lambda cmd: f"/usr/bin/{cmd}" if cmd in commands else None,
        )

    return _detect


def test_render_pacman_hook(config):
    assert render_pacman_hook(config) == (
        "[Trigger]\n"
        "Operation = Upgrade\n"
        "Operation = Install\n"
        "Type = Package\n"
        "Target = alsa-card-profiles\n"
        "\n"
        "[Action]\n"
        "Description = Reapplying ALSA workaround after upgrade of one or more"
        " key packages...\n"
        "When = PostTransaction\n"
        f"Exec = {config.executable} apply\n"
    )


def test_render_pacman_hook_multiple_targets(config):
    config.pacman_targets = ["alsa-card-profiles", "wireplumber"]
    hook = render_pacman_hook(config)
    assert "Target = alsa-card-profiles\nTarget = wireplumber\n" in hook


def test_render_apt_conf(config):
    assert render_apt_conf(config) == (
        "DPkg::Post-Invoke {\n"
        f'    "if [ -x {config.executable} ]; then'
        f' {config.executable} apt-hook; fi";\n'
        "};\n"
    )


class TestHookInstaller:
    def test_installs_only_detected(self, config, detect):
        detect("pacman")

        installed = HookInstaller(config).install()

        assert [spec.manager for spec in installed] == ["pacman"]
        assert config.pacman_hook_path.read_text() == render_pacman_hook(config)
        assert not config.apt_conf_path.exists()

    def test_installs_both(self, config, detect):
        detect("pacman", "apt-get")

        installed = HookInstaller(config).install()

        assert len(installed) == 2
        assert config.apt_conf_path.read_text() == render_apt_conf(config)

    def test_nothing_detected(self, config, detect, caplog):
        detect()
        assert HookInstaller(config).install() == []
        assert "no hooks installed" in caplog.text

    def test_reinstall_is_current(self, config, detect):
        detect("apt-get")
        installer = HookInstaller(config)
        installer.install()
        installer.install()

        spec = next(s for s in installer.specs() if s.manager == "apt")
        assert spec.installed()
        assert spec.current()

    def test_outdated_hook_detected(self, config, detect):
        detect("pacman")
        installer = HookInstaller(config)
        installer.install()
        config.pacman_hook_path.write_text("[Trigger]\n")

        spec = next(s for s in installer.specs() if s.manager == "pacman")
        assert not spec.current()

    def test_uninstall(self, config, detect):
        detect("pacman", "apt-get")
        installer = HookInstaller(config)
        installer.install()

        removed = installer.uninstall()

        assert {spec.manager for spec in removed} == {"pacman", "apt"}
        assert not config.pacman_hook_path.exists()
        assert not config.apt_conf_path.exists()
        assert installer.uninstall() == []


    def test_missing_executable_blocks_install(self, config, detect, tmp_path):
        detect("pacman", "apt-get")
        config.executable = tmp_path / "absent" / "alsa-workaround"

        with pytest.raises(HookInstallError, match="not an executable file"):
            HookInstaller(config).install()

        assert not config.pacman_hook_path.exists()
        assert not config.apt_conf_path.exists()

    def test_non_executable_file_blocks_install(self, config, detect):
        detect("pacman")
        config.executable.chmod(0o644)

        with pytest.raises(HookInstallError):
            HookInstaller(config).install()

        assert not config.pacman_hook_path.exists()

    def test_executable_not_checked_without_package_manager(
        self, config, detect, tmp_path
    ):
        detect()
        config.executable = tmp_path / "absent"
        assert HookInstaller(config).install() == []


def test_default_executable(detect):
    detect("alsa-workaround")
    assert hooks_mod.default_executable() == Path("/usr/bin/alsa-workaround")


def test_default_executable_not_on_path(detect):
    detect()
    assert hooks_mod.default_executable() is None


class TestRequireRoot:
    def test_non_root(self, monkeypatch):
        monkeypatch.setattr(hooks_mod.os, "geteuid", lambda: 1000)
        with pytest.raises(NotRootError, match="must be run as root"):
            require_root()

    def test_root(self, monkeypatch):
        monkeypatch.setattr(hooks_mod.os, "geteuid", lambda: 0)
        require_root()
