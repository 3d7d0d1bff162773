"""Tests for the mixer profile text transforms."""

import logging

from alsa_workaround.core.mixer_profile import (
    MASTER_BLOCK,
    has_section,
    insert_master_block,
    is_patched,
    override_master_volume,
)

from .conftest import COMMON_CONF, HEADPHONES_CONF


class TestHasSection:
    def test_exact_header(self):
        assert has_section("[General]\n[Element PCM]\n", "Element PCM")

    def test_similar_header_does_not_match(self):
        assert not has_section("[Element Hardware Master]\n", "Element Master")

    def test_indented_header_does_not_match(self):
        assert not has_section("  [Element Master]\n", "Element Master")

    def test_crlf_header(self):
        assert has_section("[Element Master]\r\nvolume = merge\r\n", "Element Master")

    def test_form_feed_is_not_a_line_break(self):
        assert not has_section("a\x0c[Element Master]\n", "Element Master")


class TestInsertMasterBlock:
    def test_inserts_before_pcm(self):
        result = insert_master_block(COMMON_CONF)

        head, _, tail = COMMON_CONF.partition("[Element PCM]\n")
        assert result == head + MASTER_BLOCK + "[Element PCM]\n" + tail

    def test_block_content(self):
        result = insert_master_block("[Element PCM]\nvolume = merge\n")
        assert result == (
            "[Element Master]\n"
            "switch = mute\n"
            "volume = ignore\n"
            "\n"
            "[Element PCM]\n"
            "volume = merge\n"
        )

    def test_only_first_marker(self):
        text = "[Element PCM]\na = 1\n[Element PCM]\nb = 2\n"
        result = insert_master_block(text)
        assert result.count("[Element Master]") == 1
        assert result.startswith(MASTER_BLOCK)

    def test_existing_master_left_alone(self):
        text = "[Element Master]\nvolume = merge\n\n[Element PCM]\n"
        assert insert_master_block(text) == text

    def test_reapplying_is_a_no_op(self):
        once = insert_master_block(COMMON_CONF)
        assert insert_master_block(once) == once

    def test_header_after_form_feed_is_not_a_master_block(self):
        text = "x\x0c[Element Master]\n[Element PCM]\n"
        assert insert_master_block(text) == (
            "x\x0c[Element Master]\n" + MASTER_BLOCK + "[Element PCM]\n"
        )

    def test_missing_marker_leaves_text_and_warns(self, caplog):
        text = "[General]\ndescription-key = x\n"
        with caplog.at_level(logging.WARNING):
            assert insert_master_block(text) == text
        assert "not inserted" in caplog.text


class TestOverrideMasterVolume:
    def test_rewrites_volume_inside_master_only(self):
        result = override_master_volume(HEADPHONES_CONF)

        master = result.split("[Element Master]\n")[1].split("[Element Headphone]")[0]
        headphone = result.split("[Element Headphone]\n")[1]
        assert "volume = ignore\n" in master
        assert "volume = merge" not in master
        assert headphone == "switch = mute\nvolume = merge\n"

    def test_other_keys_untouched(self):
        result = override_master_volume(HEADPHONES_CONF)
        assert "override-map.1 = all\n" in result
        assert "priority = 99\n" in result

    def test_every_volume_line_in_block(self):
        text = "[Element Master]\nvolume = merge\nvolume = off\n[Element PCM]\nvolume = merge\n"
        assert override_master_volume(text) == (
            "[Element Master]\nvolume = ignore\nvolume = ignore\n"
            "[Element PCM]\nvolume = merge\n"
        )

    def test_without_master_block(self):
        text = "[Element PCM]\nvolume = merge\n"
        assert override_master_volume(text) == text

    def test_preserves_crlf(self):
        text = "[Element Master]\r\nvolume = merge\r\nswitch = mute\r\n"
        assert override_master_volume(text) == (
            "[Element Master]\r\nvolume = ignore\r\nswitch = mute\r\n"
        )

    def test_last_line_without_newline(self):
        assert override_master_volume("[Element Master]\nvolume = merge") == (
            "[Element Master]\nvolume = ignore"
        )

    def test_only_newline_ends_a_line(self):
        text = "[Element Master]\nx\x0bvolume = merge\n"
        assert override_master_volume(text) == text

    def test_reapplying_is_a_no_op(self):
        once = override_master_volume(HEADPHONES_CONF)
        assert override_master_volume(once) == once


def test_is_patched():
    assert not is_patched(COMMON_CONF, HEADPHONES_CONF)
    assert is_patched(
        insert_master_block(COMMON_CONF), override_master_volume(HEADPHONES_CONF)
    )
