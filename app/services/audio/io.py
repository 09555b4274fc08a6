import io
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import soundfile as sf

from app.core.errors import DecodeError, FileReadError
from app.core.logging import logger

# .dat 헤더의 sample_rate, samples_per_pixel 은 int32
INT32_MAX = 2**31 - 1


@dataclass(frozen=True)
class DecodedAudio:
    """
    디코더가 넘겨주는 고정 형태의 오디오 레코드.
    channel_data: (num_channels, frame_count) float 배열, 값 범위 [-1.0, 1.0]
    """
    sample_rate: int
    num_channels: int
    frame_count: int
    channel_data: np.ndarray

    def __post_init__(self):
        if not 0 < self.sample_rate <= INT32_MAX:
            raise ValueError(f"Invalid sample rate: {self.sample_rate}")
        if self.num_channels < 1:
            raise ValueError(f"Invalid channel count: {self.num_channels}")
        if self.channel_data.shape != (self.num_channels, self.frame_count):
            raise ValueError(
                f"channel_data shape {self.channel_data.shape} does not match "
                f"({self.num_channels}, {self.frame_count})"
            )

    def get_channel_data(self, channel: int) -> np.ndarray:
        return self.channel_data[channel]

    @classmethod
    def from_channels(cls, sample_rate: int, channels) -> "DecodedAudio":
        arr = np.atleast_2d(np.asarray(channels, dtype=np.float32))
        return cls(
            sample_rate=int(sample_rate),
            num_channels=int(arr.shape[0]),
            frame_count=int(arr.shape[1]),
            channel_data=arr,
        )


def resolve_audio_path(file_name: str, base_dir: str) -> Path:
    """fileName을 base_dir 아래 경로로 해석. 바깥으로 벗어나면 거부."""
    if not file_name or not file_name.strip():
        raise ValueError("fileName is required")
    base = Path(base_dir).resolve()
    candidate = (base / file_name).resolve()
    if candidate != base and base not in candidate.parents:
        raise ValueError(f"fileName escapes storage directory: {file_name}")
    return candidate


def read_file_bytes(file_path) -> bytes:
    try:
        return Path(file_path).read_bytes()
    except OSError as e:
        # 원인은 로그로만 남기고 호출자에게는 일반 메시지
        logger.error(f"[io] read failed path='{file_path}': {e!r}")
        raise FileReadError("Error reading file as buffer") from e


def decode_audio(data: bytes) -> DecodedAudio:
    """
    오디오 컨테이너 바이트를 채널별 float32 샘플로 디코드.
    soundfile(libsndfile)이 읽을 수 있는 포맷(WAV/FLAC/OGG/MP3 등)만 지원.

    Raises:
        DecodeError: 비어있거나, 파싱 불가하거나, NaN/Inf 샘플이 있는 경우
    """
    if not data:
        raise DecodeError("Empty audio buffer")

    try:
        samples, sr = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, TypeError, ValueError) as e:
        raise DecodeError(f"Unsupported or corrupt audio: {e}") from e

    # NaN은 리듀서의 min/max 의미를 깨므로 디코드 단계에서 차단
    if not np.isfinite(samples).all():
        raise DecodeError("Decoded audio contains non-finite samples")

    channel_data = np.ascontiguousarray(samples.T)
    return DecodedAudio(
        sample_rate=int(sr),
        num_channels=int(channel_data.shape[0]),
        frame_count=int(channel_data.shape[1]),
        channel_data=channel_data,
    )
