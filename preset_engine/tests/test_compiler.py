"""
Tests for the preset compiler.
"""

import pytest

from daemon_config.keys import NEUTRAL_CONFIG, SIMPLE_KEYS
from preset_engine.compiler import (
    DISPLAY_MODE_OPTIONS,
    compile_preset,
    generate_neutral_config,
    render,
)
from preset_engine.models import (
    DELETE,
    KEEP_MARKER,
    AssuranceMode,
    AudioConfig,
    AudioMode,
    DisplayConfig,
    Preset,
    Resolution,
    ResolutionStrategy,
    Value,
)
from preset_engine.profiles import ENCODER_PROFILES, EncoderProfile, get_profile_config


class TestNeutralConfig:
    """Test the flush baseline."""

    def test_neutral_covers_only_simple_keys(self):
        """Test that every neutral key is a simple key."""
        assert set(generate_neutral_config()) <= SIMPLE_KEYS

    def test_neutral_encoder_keys_are_balanced(self):
        """Test that neutral encoder values match the balanced profile."""
        neutral = generate_neutral_config()
        for key, value in get_profile_config(EncoderProfile.BALANCED).items():
            assert neutral[key] == value

    def test_neutral_is_a_copy(self):
        """Test that callers cannot mutate the shared table."""
        neutral = generate_neutral_config()
        neutral["fps"] = "1"

        assert NEUTRAL_CONFIG["fps"] == "60"


class TestCompilePreset:
    """Test compile_preset rules."""

    def test_scenario_fps_bitrate_device(self):
        """Test the documented fps/bitrate/device scenario."""
        preset = Preset(
            id="p",
            name="P",
            display=DisplayConfig(fps=120, bitrate=50, device_id="{X}"),
        )

        overlay = compile_preset(preset)

        assert overlay["fps"] == Value("120")
        assert overlay["minimum_fps_target"] == Value("120")
        assert overlay["max_bitrate"] == Value("50")
        assert overlay["output_name"] == Value("{X}")

    def test_output_name_omitted_without_device(self):
        """Test that output_name is only set when a device is targeted."""
        overlay = compile_preset(Preset(id="p", name="P"))

        assert "output_name" not in overlay

    @pytest.mark.parametrize("mode", list(AssuranceMode))
    def test_display_modes(self, mode: AssuranceMode):
        """Test assurance mode mapping."""
        preset = Preset(id="p", name="P", display=DisplayConfig(mode=mode))

        overlay = compile_preset(preset)

        assert overlay["dd_configuration_option"] == Value(DISPLAY_MODE_OPTIONS[mode])

    def test_follow_client_clears_manual_values(self):
        """Test that following the client deletes stale manual values."""
        preset = Preset(
            id="p",
            name="P",
            display=DisplayConfig(
                resolution_strategy=ResolutionStrategy.FOLLOW_CLIENT,
                resolution=Resolution(width=1920, height=1080),
                refresh_rate=60,
            ),
        )

        overlay = compile_preset(preset)

        assert overlay["dd_resolution_option"] == Value("moonlight_request")
        assert overlay["dd_refresh_rate_option"] == Value("moonlight_request")
        assert overlay["dd_manual_resolution"] is DELETE
        assert overlay["dd_manual_refresh_rate"] is DELETE

    def test_manual_resolution_and_refresh(self, desk_preset: Preset):
        """Test manual resolution and refresh rate."""
        overlay = compile_preset(desk_preset)

        assert overlay["dd_resolution_option"] == Value("manual")
        assert overlay["dd_manual_resolution"] == Value("2560x1440")
        assert overlay["dd_refresh_rate_option"] == Value("manual")
        assert overlay["dd_manual_refresh_rate"] == Value("144")

    def test_axes_are_independent(self):
        """Test that a manual refresh rate works without a resolution."""
        preset = Preset(
            id="p",
            name="P",
            display=DisplayConfig(
                resolution_strategy=ResolutionStrategy.FOLLOW_PRESET,
                refresh_rate=120,
            ),
        )

        overlay = compile_preset(preset)

        assert overlay["dd_resolution_option"] == Value("moonlight_request")
        assert overlay["dd_manual_resolution"] is DELETE
        assert overlay["dd_refresh_rate_option"] == Value("manual")
        assert overlay["dd_manual_refresh_rate"] == Value("120")

    def test_hdr_always_disabled(self, gaming_preset: Preset):
        assert compile_preset(gaming_preset)["dd_hdr_option"] == Value("disabled")

    def test_encoder_profile_expands(self, desk_preset: Preset):
        """Test that the encoder profile expands to its key table."""
        overlay = compile_preset(desk_preset)

        for key, value in ENCODER_PROFILES[EncoderProfile.QUALITY].to_config().items():
            assert overlay[key] == Value(value)

    def test_unset_encoder_profile_is_balanced(self):
        overlay = compile_preset(Preset(id="p", name="P"))

        assert overlay["nvenc_preset"] == Value("3")
        assert overlay["amd_quality"] == Value("balanced")

    def test_audio_client_only(self):
        """Test that client-only audio removes both sink keys."""
        preset = Preset(id="p", name="P", audio=AudioConfig(mode=AudioMode.CLIENT_ONLY))

        overlay = compile_preset(preset)

        assert overlay["audio_sink"] is DELETE
        assert overlay["virtual_sink"] is DELETE

    def test_audio_host_only(self):
        """Test that host-only audio disables both sinks."""
        preset = Preset(id="p", name="P", audio=AudioConfig(mode=AudioMode.HOST_ONLY))

        overlay = compile_preset(preset)

        assert overlay["audio_sink"] == Value("0")
        assert overlay["virtual_sink"] == Value("0")

    def test_audio_both(self, desk_preset: Preset):
        """Test that both-audio targets the host device."""
        overlay = compile_preset(desk_preset)

        assert overlay["audio_sink"] == Value("{speakers}")
        assert overlay["virtual_sink"] == Value("0")

    def test_toggles(self, desk_preset: Preset):
        overlay = compile_preset(desk_preset)

        assert overlay["upnp"] == Value("disabled")
        assert overlay["keyboard"] == Value("enabled")
        assert overlay["gamepad"] == Value("disabled")


class TestExpertOverrides:
    """Test expert overrides and KEEP resolution."""

    def test_literal_overrides_win(self):
        """Test that expert literals are applied last."""
        preset = Preset(id="p", name="P", expert={"fps": "75", "min_threads": 8})

        overlay = compile_preset(preset)

        assert overlay["fps"] == Value("75")
        assert overlay["min_threads"] == Value("8")

    def test_keep_copies_observed_value(self):
        """Test that KEEP copies the observed value verbatim."""
        preset = Preset(id="p", name="P", expert={"hevc_mode": KEEP_MARKER})

        overlay = compile_preset(preset, {"hevc_mode": "2"})

        assert overlay["hevc_mode"] == Value("2")

    def test_keep_without_observed_value_is_skipped(self):
        """Test that KEEP of an absent key leaves the key unset."""
        preset = Preset(id="p", name="P", expert={"hevc_mode": KEEP_MARKER})

        assert "hevc_mode" not in compile_preset(preset, {})
        assert "hevc_mode" not in compile_preset(preset)

    def test_keep_of_empty_observed_value_is_skipped(self):
        preset = Preset(id="p", name="P", expert={"hevc_mode": KEEP_MARKER})

        assert "hevc_mode" not in compile_preset(preset, {"hevc_mode": ""})

    def test_protected_keys_are_ignored(self):
        """Test that expert overrides cannot touch protected keys."""
        preset = Preset(id="p", name="P", expert={"port": "1234", "sunshine_name": "x"})

        overlay = compile_preset(preset)

        assert "port" not in overlay
        assert "sunshine_name" not in overlay

    def test_compile_is_deterministic(self, gaming_preset: Preset):
        assert compile_preset(gaming_preset) == compile_preset(gaming_preset)


class TestRender:
    """Test overlay rendering."""

    def test_render_drops_deletes(self, gaming_preset: Preset):
        rendered = render(compile_preset(gaming_preset))

        assert "audio_sink" not in rendered
        assert "dd_manual_resolution" not in rendered
        assert rendered["fps"] == "120"
