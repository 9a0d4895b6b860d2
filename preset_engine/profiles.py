"""
Encoder tuning profiles.

Each profile expands to a fixed set of encoder-specific daemon keys
covering NVENC, QuickSync, AMF and the software encoder.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Optional


class EncoderProfile(str, Enum):
    """Available encoder profiles."""

    LOW_LATENCY = "low_latency"
    BALANCED = "balanced"
    QUALITY = "quality"


DEFAULT_PROFILE = EncoderProfile.BALANCED


@dataclass(frozen=True)
class EncoderTuning:
    """Daemon encoder keys for one profile."""

    nvenc_preset: str  # "1" fastest .. "7" slowest
    nvenc_twopass: str  # "disabled", "quarter_res", "full_res"
    nvenc_spatial_aq: str
    nvenc_vbv_increase: str  # percent
    qsv_preset: str
    qsv_coder: str  # "auto", "cabac", "cavlc"
    amd_usage: str
    amd_rc: str
    amd_quality: str
    amd_preanalysis: str
    amd_vbaq: str
    sw_preset: str  # x264 preset
    sw_tune: str

    def to_config(self) -> Dict[str, str]:
        return asdict(self)


ENCODER_PROFILES: Dict[EncoderProfile, EncoderTuning] = {
    EncoderProfile.LOW_LATENCY: EncoderTuning(
        nvenc_preset="1",
        nvenc_twopass="disabled",
        nvenc_spatial_aq="disabled",
        nvenc_vbv_increase="0",
        qsv_preset="veryfast",
        qsv_coder="cavlc",
        amd_usage="ultralowlatency",
        amd_rc="vbr_latency",
        amd_quality="speed",
        amd_preanalysis="disabled",
        amd_vbaq="disabled",
        sw_preset="ultrafast",
        sw_tune="zerolatency",
    ),
    EncoderProfile.BALANCED: EncoderTuning(
        nvenc_preset="3",
        nvenc_twopass="quarter_res",
        nvenc_spatial_aq="enabled",
        nvenc_vbv_increase="0",
        qsv_preset="medium",
        qsv_coder="auto",
        amd_usage="lowlatency_high_quality",
        amd_rc="vbr_latency",
        amd_quality="balanced",
        amd_preanalysis="disabled",
        amd_vbaq="enabled",
        sw_preset="fast",
        sw_tune="zerolatency",
    ),
    EncoderProfile.QUALITY: EncoderTuning(
        nvenc_preset="5",
        nvenc_twopass="full_res",
        nvenc_spatial_aq="enabled",
        nvenc_vbv_increase="10",
        qsv_preset="slow",
        qsv_coder="cabac",
        amd_usage="transcoding",
        amd_rc="vbr_peak",
        amd_quality="quality",
        amd_preanalysis="enabled",
        amd_vbaq="enabled",
        sw_preset="medium",
        sw_tune="zerolatency",
    ),
}


def get_profile_config(profile: Optional[EncoderProfile] = None) -> Dict[str, str]:
    """
    Get encoder keys for a profile.

    Args:
        profile: Encoder profile; the balanced profile when unset

    Returns:
        Encoder key/value map
    """
    return ENCODER_PROFILES[profile or DEFAULT_PROFILE].to_config()


def list_profiles() -> Dict[str, str]:
    return {profile.value: profile.name.replace("_", " ").title() for profile in EncoderProfile}
