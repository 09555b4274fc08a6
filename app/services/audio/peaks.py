from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral

import numpy as np

from app.services.audio.io import INT32_MAX, DecodedAudio

# audiowaveform .dat 포맷 버전 (v2만 생성)
DAT_VERSION = 2
SUPPORTED_BITS = (8, 16)


@dataclass(frozen=True)
class EncodingParams:
    samples_per_pixel: int = 512
    split_channels: bool = False
    bits: int = 8

    def __post_init__(self):
        if isinstance(self.samples_per_pixel, bool) or not isinstance(self.samples_per_pixel, Integral):
            raise ValueError(f"samples_per_pixel must be an integer, got {self.samples_per_pixel!r}")
        if not 0 < self.samples_per_pixel <= INT32_MAX:
            # .dat 헤더 필드가 int32
            raise ValueError(f"samples_per_pixel must be in 1..{INT32_MAX}, got {self.samples_per_pixel}")
        if self.bits not in SUPPORTED_BITS:
            raise ValueError(f"bits must be 8 or 16, got {self.bits}")


@dataclass(frozen=True)
class WaveformEnvelope:
    """Per-pixel (min, max) pairs before quantisation, channel-major."""
    sample_rate: int
    samples_per_pixel: int
    channels: int
    length: int
    data: np.ndarray  # float64, flat [min0, max0, min1, max1, ...]
    flags: int = 1
    version: int = DAT_VERSION

    @property
    def bits(self) -> int:
        return 8 if self.flags == 1 else 16

    def pairs(self) -> np.ndarray:
        """data를 (channels, length, 2) 형태로 본 뷰."""
        return self.data.reshape(self.channels, self.length, 2)


def reduce_envelope(audio: DecodedAudio, params: EncodingParams) -> WaveformEnvelope:
    """
    프레임을 samples_per_pixel 단위 창으로 묶어 창마다 (min, max)를 구한다.

    - split_channels=False 이면 채널 0만 사용 (모노 엔벌로프)
    - length = floor(frame_count / samples_per_pixel / channels), 모든 채널 동일
    - 마지막 불완전 창은 읽지 않음
    - 양자화는 하지 않음 (직렬화 단계에서 처리)
    """
    spp = params.samples_per_pixel
    channels = audio.num_channels if params.split_channels else 1
    length = audio.frame_count // (spp * channels)

    out = np.empty((channels, length, 2), dtype=np.float64)
    for c in range(channels):
        windows = np.asarray(audio.get_channel_data(c)[: length * spp], dtype=np.float64)
        windows = windows.reshape(length, spp)
        if length:
            # min은 1.0, max는 -1.0에서 시작
            out[c, :, 0] = np.minimum(windows.min(axis=1), 1.0)
            out[c, :, 1] = np.maximum(windows.max(axis=1), -1.0)

    data = out.reshape(-1)
    data.flags.writeable = False

    return WaveformEnvelope(
        sample_rate=audio.sample_rate,
        samples_per_pixel=spp,
        channels=channels,
        length=length,
        data=data,
        flags=1 if params.bits == 8 else 0,
    )
