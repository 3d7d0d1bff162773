"""
Core workaround engine.

`WorkaroundManager` runs the single apply operation: it patches the mixer
profiles through the pure transforms in `mixer_profile`, falls back to a
`SoftMixerOverride` when they are not writable, and hands the session restart
to `SessionRestarter`. `HookInstaller` and `PackageMonitor` keep the
workaround applied across package upgrades.
"""
