"""
Text transforms for ALSA card-profile mixer path files.

The files are sequences of '[Section]' headers followed by 'key = value'
lines. Matching is done on whole lines, exactly as written, so the transforms
never touch anything but the lines they target and are safe to rerun.
"""

import logging

log = logging.getLogger(__name__)

MASTER_SECTION = "Element Master"
MARKER_SECTION = "Element PCM"

MASTER_BLOCK = "[Element Master]\nswitch = mute\nvolume = ignore\n\n"
VOLUME_PREFIX = "volume ="
VOLUME_OVERRIDE = "volume = ignore"


def _lines(text: str) -> list[str]:
    """Lines with their endings kept, split on '\\n' only."""
    lines = [line + "\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    return lines if lines[-1] else lines[:-1]


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _eol(line: str) -> str:
    return line[len(_strip_eol(line)) :]


def has_section(text: str, name: str) -> bool:
    """True when a line reads exactly '[name]'."""
    header = f"[{name}]"
    return any(_strip_eol(line) == header for line in _lines(text))


def insert_master_block(text: str) -> str:
    """
    Inserts the fixed [Element Master] block before the first [Element PCM]
    section. Text that already has a Master block is returned unchanged.
    """
    if has_section(text, MASTER_SECTION):
        return text

    marker = f"[{MARKER_SECTION}]"
    lines = _lines(text)
    for index, line in enumerate(lines):
        if _strip_eol(line) == marker:
            return "".join(lines[:index]) + MASTER_BLOCK + "".join(lines[index:])

    log.warning(
        f"[yellow]No [{MARKER_SECTION}] section found; "
        f"[{MASTER_SECTION}] block not inserted.[/yellow]"
    )
    return text


def override_master_volume(text: str) -> str:
    """
    Rewrites every 'volume =' line inside the [Element Master] block to
    'volume = ignore'. The block ends at the next line starting with '['.
    """
    master = f"[{MASTER_SECTION}]"
    in_master = False
    out = []
    for line in _lines(text):
        bare = _strip_eol(line)
        if bare == master:
            in_master = True
        elif in_master and bare.startswith("["):
            in_master = False
        elif in_master and bare.startswith(VOLUME_PREFIX):
            line = VOLUME_OVERRIDE + _eol(line)
        out.append(line)
    return "".join(out)


def is_patched(common_text: str, headphones_text: str) -> bool:
    """True when both transforms would leave the texts as they are."""
    return insert_master_block(common_text) == common_text and (
        override_master_volume(headphones_text) == headphones_text
    )
