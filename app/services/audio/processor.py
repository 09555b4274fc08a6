from __future__ import annotations

import time
from dataclasses import replace
from typing import Optional

from app.core.config import settings
from app.core.logging import logger
from app.services.audio.dat import serialize_binary, to_json
from app.services.audio.io import decode_audio, read_file_bytes, resolve_audio_path
from app.services.audio.peaks import EncodingParams, WaveformEnvelope, reduce_envelope


def build_envelope(data: bytes, params: EncodingParams) -> WaveformEnvelope:
    s = time.time()
    audio = decode_audio(data)
    logger.debug(
        f"[peaks] decoded sr={audio.sample_rate} ch={audio.num_channels} "
        f"frames={audio.frame_count} dt={time.time()-s:.3f}s"
    )

    s = time.time()
    envelope = reduce_envelope(audio, params)
    logger.debug(
        f"[peaks] reduced spp={params.samples_per_pixel} channels={envelope.channels} "
        f"length={envelope.length} dt={time.time()-s:.3f}s"
    )
    return envelope


def generate_waveform_dat(data: bytes, params: Optional[EncodingParams] = None) -> bytes:
    """오디오 파일 바이트 -> audiowaveform 호환 .dat v2 바이트."""
    params = params or EncodingParams()
    return serialize_binary(build_envelope(data, params), params.bits)


def generate_waveform_json(data: bytes, params: Optional[EncodingParams] = None) -> dict:
    params = params or EncodingParams()
    return to_json(build_envelope(data, params))


def default_params() -> EncodingParams:
    return EncodingParams(
        samples_per_pixel=settings.SAMPLES_PER_PIXEL,
        split_channels=settings.SPLIT_CHANNELS,
        bits=settings.BITS,
    )


class AudioProcessorService:
    """
    저장소 디렉터리 안의 파일명을 받아 peaks 를 생성.
    경로 해석 -> 파일 읽기 -> 디코드 -> 리듀스 -> 직렬화 (모두 동기)
    """

    def __init__(self, base_dir: Optional[str] = None, defaults: Optional[EncodingParams] = None):
        self.base_dir = base_dir or settings.STORAGE_DIR
        self.defaults = defaults or default_params()

    def params(self, samples_per_pixel=None, split_channels=None, bits=None) -> EncodingParams:
        overrides = {
            k: v
            for k, v in (
                ("samples_per_pixel", samples_per_pixel),
                ("split_channels", split_channels),
                ("bits", bits),
            )
            if v is not None
        }
        return replace(self.defaults, **overrides)

    def resolve(self, file_name: str):
        return resolve_audio_path(file_name, self.base_dir)

    def process_path(self, path, params: Optional[EncodingParams] = None) -> bytes:
        return generate_waveform_dat(read_file_bytes(path), params or self.defaults)

    def process_path_json(self, path, params: Optional[EncodingParams] = None) -> dict:
        return generate_waveform_json(read_file_bytes(path), params or self.defaults)

    def process_audio(self, file_name: str, params: Optional[EncodingParams] = None) -> bytes:
        return self.process_path(self.resolve(file_name), params)

    def process_audio_json(self, file_name: str, params: Optional[EncodingParams] = None) -> dict:
        return self.process_path_json(self.resolve(file_name), params)
