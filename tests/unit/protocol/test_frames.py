"""Unit tests for the fixed-length frame codec."""

from __future__ import annotations

import pytest

from tesmart_comm.protocol import frames
from tesmart_comm.protocol.exceptions import FrameDecodeError
from tesmart_comm.protocol.frames import (
    DISABLE_AUTO_INPUT_DETECTION,
    ENABLE_AUTO_INPUT_DETECTION,
    FRAME_LENGTH,
    GET_CURRENT_INPUT,
    MUTE_BUZZER,
    SET_LED_TIMEOUT,
    STATUS_RESPONSE_PREFIX,
    SWITCH_INPUT,
    UNMUTE_BUZZER,
    build_status_frame,
    decode_status,
    encode_command,
    format_frame,
    is_status_frame,
)

COMMAND_TEMPLATES = [
    SWITCH_INPUT,
    SET_LED_TIMEOUT,
    MUTE_BUZZER,
    UNMUTE_BUZZER,
    ENABLE_AUTO_INPUT_DETECTION,
    DISABLE_AUTO_INPUT_DETECTION,
    GET_CURRENT_INPUT,
]


class TestCommandTemplates:
    """Wire bytes of each command template."""

    @pytest.mark.parametrize(
        ("template", "expected_hex"),
        [
            (SWITCH_INPUT, "aabb030100ee"),
            (SET_LED_TIMEOUT, "aabb030300ee"),
            (MUTE_BUZZER, "aabb030200ee"),
            (UNMUTE_BUZZER, "aabb030201ee"),
            (ENABLE_AUTO_INPUT_DETECTION, "aabb038101ee"),
            (DISABLE_AUTO_INPUT_DETECTION, "aabb038100ee"),
            (GET_CURRENT_INPUT, "aabb031000ee"),
        ],
    )
    def test_template_bytes(self, template: bytes, expected_hex: str):
        assert template.hex() == expected_hex

    @pytest.mark.parametrize("template", COMMAND_TEMPLATES)
    def test_templates_share_marker_and_length(self, template: bytes):
        assert len(template) == FRAME_LENGTH
        assert template[:3] == bytes([0xAA, 0xBB, 0x03])
        assert template[5] == 0xEE


class TestEncodeCommand:
    """Tests for encode_command()."""

    def test_switch_input_zero_based_index(self):
        """Input 3 is sent as index 2."""
        assert encode_command(SWITCH_INPUT, 2) == bytes.fromhex("aabb030102ee")

    def test_led_timeout_value(self):
        assert encode_command(SET_LED_TIMEOUT, 30) == bytes.fromhex("aabb03031eee")

    def test_does_not_mutate_template(self):
        before = bytes(SWITCH_INPUT)
        encode_command(SWITCH_INPUT, 7)
        assert before == SWITCH_INPUT

    @pytest.mark.parametrize("template", COMMAND_TEMPLATES)
    def test_injective_in_value(self, template: bytes):
        encoded = {encode_command(template, value) for value in range(256)}
        assert len(encoded) == 256

    @pytest.mark.parametrize("template", COMMAND_TEMPLATES)
    def test_only_parameter_byte_changes(self, template: bytes):
        command = encode_command(template, 0x5A)
        assert len(command) == FRAME_LENGTH
        assert command[:4] == template[:4]
        assert command[4] == 0x5A
        assert command[5] == template[5]

    def test_value_out_of_byte_range(self):
        with pytest.raises(ValueError):
            encode_command(SWITCH_INPUT, 256)


class TestDecodeStatus:
    """Tests for decode_status() and is_status_frame()."""

    def test_decode_reference_frame(self):
        """AA BB 03 11 02 18 reports input 3."""
        assert decode_status(bytes.fromhex("aabb03110218")) == 3

    def test_first_and_last_input(self):
        assert decode_status(bytes.fromhex("aabb03110016")) == 1
        assert decode_status(bytes.fromhex("aabb03110f25")) == 16

    @pytest.mark.parametrize("value", range(256))
    def test_status_template_recovers_value(self, value: int):
        frame = encode_command(STATUS_RESPONSE_PREFIX + b"\x00\x00", value)
        frame = frame[:5] + bytes([(value + 0x16) & 0xFF])
        assert decode_status(frame) == value + 1

    def test_checksum_wraps_modulo_256(self):
        """Index 0xF0 carries checksum 0x06 on the wire."""
        frame = STATUS_RESPONSE_PREFIX + bytes([0xF0, 0x06])
        assert is_status_frame(frame)
        assert decode_status(frame) == 0xF1

    @pytest.mark.parametrize(
        ("frame_hex", "reason"),
        [
            ("aabb031102", "wrong_length"),
            ("aabb0311021800", "wrong_length"),
            ("", "wrong_length"),
            ("abbb03110218", "bad_marker"),
            ("aabc03110218", "bad_marker"),
            ("aabb04110218", "bad_marker"),
            ("aabb03100218", "bad_opcode"),
            ("aabb030102ee", "bad_opcode"),
            ("aabb03110219", "bad_checksum"),
            ("aabb03110202", "bad_checksum"),
        ],
    )
    def test_rejects_invalid_frames(self, frame_hex: str, reason: str):
        frame = bytes.fromhex(frame_hex)
        assert is_status_frame(frame) is False
        with pytest.raises(FrameDecodeError) as exc_info:
            decode_status(frame)
        assert exc_info.value.reason == reason

    @pytest.mark.parametrize("position", [0, 1, 2, 3])
    def test_header_mutation_fails_even_with_valid_checksum(self, position: int):
        frame = bytearray(build_status_frame(5))
        frame[position] ^= 0xFF
        assert (frame[5] - frame[4]) & 0xFF == 0x16
        assert is_status_frame(bytes(frame)) is False

    def test_decode_error_keeps_preview(self):
        frame = bytes.fromhex("aabb03110219")
        with pytest.raises(FrameDecodeError) as exc_info:
            decode_status(frame)
        assert exc_info.value.data_preview == frame


class TestHelpers:
    """Tests for build_status_frame() and format_frame()."""

    def test_build_status_frame(self):
        assert build_status_frame(3) == bytes.fromhex("aabb03110218")

    def test_format_frame(self):
        assert format_frame(bytes.fromhex("aabb03110218")) == "AA BB 03 11 02 18"

    def test_format_empty(self):
        assert frames.format_frame(b"") == ""
