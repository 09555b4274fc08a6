"""
audiowaveform 호환 .dat 직렬화 / JSON 투영.

Header (little-endian, 4바이트 고정폭):
    v2: version:i32 | flags:u32 | sample_rate:i32 | samples_per_pixel:i32 | length:u32 | channels:i32  (24 bytes)
    v1: 위와 같으나 channels 없음 (20 bytes, 읽기만 지원)
flags bit0 = 1 이면 8bit 데이터, 0 이면 16bit.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from app.core.errors import InvariantError
from app.services.audio.peaks import WaveformEnvelope

HEADER_V1 = struct.Struct("<iIiiI")
HEADER_V2 = struct.Struct("<iIiiIi")

FLAG_8BIT = 0x1

INT8_RANGE = (-128, 127)
INT16_RANGE = (-32768, 32767)


@dataclass(frozen=True)
class DatHeader:
    version: int
    flags: int
    sample_rate: int
    samples_per_pixel: int
    length: int
    channels: int

    @property
    def bits(self) -> int:
        return 8 if self.flags & FLAG_8BIT else 16

    @property
    def size(self) -> int:
        return HEADER_V1.size if self.version == 1 else HEADER_V2.size


def _check_envelope(envelope: WaveformEnvelope) -> None:
    expected = envelope.channels * envelope.length * 2
    if envelope.data.size != expected:
        raise InvariantError(
            f"envelope data has {envelope.data.size} values, expected "
            f"{expected} (channels={envelope.channels} length={envelope.length})"
        )


def _round_half_up(x: np.ndarray) -> np.ndarray:
    # np.round 은 banker's rounding 이라 .5 경계에서 audiowaveform과 1 차이 남
    return np.floor(x + 0.5)


def quantize(values: np.ndarray, bits: int) -> np.ndarray:
    """[-1, 1] float 값을 부호 있는 정수 범위 전체로 선형 매핑 후 clamp."""
    v = np.asarray(values, dtype=np.float64)
    if bits == 8:
        lo, hi = INT8_RANGE
        q = _round_half_up((v + 1.0) * 127.5) - 128
        return np.clip(q, lo, hi).astype("<i1")
    if bits == 16:
        lo, hi = INT16_RANGE
        q = _round_half_up((v + 1.0) * 32767.5) - 32768
        return np.clip(q, lo, hi).astype("<i2")
    raise ValueError(f"bits must be 8 or 16, got {bits}")


def serialize_binary(envelope: WaveformEnvelope, bits: int | None = None) -> bytes:
    """WaveformEnvelope -> .dat v2 바이트 (헤더 24바이트 + min/max 데이터)."""
    _check_envelope(envelope)
    if bits is None:
        bits = envelope.bits
    elif bits != envelope.bits:
        raise InvariantError(f"bits={bits} disagrees with envelope flags={envelope.flags}")

    header = HEADER_V2.pack(
        envelope.version,
        FLAG_8BIT if bits == 8 else 0,
        envelope.sample_rate,
        envelope.samples_per_pixel,
        envelope.length,
        envelope.channels,
    )
    return header + quantize(envelope.data, bits).tobytes()


def to_json(envelope: WaveformEnvelope) -> dict:
    """JSON 소비자용 투영. data 는 min/max * 128 (반올림/clamp 없음)."""
    _check_envelope(envelope)
    return {
        "version": envelope.version,
        "channels": envelope.channels,
        "sample_rate": envelope.sample_rate,
        "samples_per_pixel": envelope.samples_per_pixel,
        "bits": envelope.bits,
        "length": envelope.length,
        "data": (envelope.data * 128).tolist(),
    }


def parse_header(buf: bytes) -> DatHeader:
    if len(buf) < HEADER_V1.size:
        raise InvariantError(f"buffer too short for a .dat header: {len(buf)} bytes")
    version = struct.unpack_from("<i", buf)[0]
    if version == 1:
        v, flags, sr, spp, length = HEADER_V1.unpack_from(buf)
        return DatHeader(v, flags, sr, spp, length, 1)
    if version == 2:
        if len(buf) < HEADER_V2.size:
            raise InvariantError(f"buffer too short for a v2 header: {len(buf)} bytes")
        return DatHeader(*HEADER_V2.unpack_from(buf))
    raise InvariantError(f"unsupported .dat version: {version}")


def parse_dat(buf: bytes) -> Tuple[DatHeader, np.ndarray]:
    """
    .dat 바이트를 (헤더, 정수 min/max 배열) 로 되읽는다.
    배열 dtype 은 헤더 flags 에 따라 int8 또는 int16.
    """
    header = parse_header(buf)
    dtype = np.dtype("<i1") if header.bits == 8 else np.dtype("<i2")
    expected = header.length * header.channels * 2
    payload = buf[header.size:]
    if len(payload) != expected * dtype.itemsize:
        raise InvariantError(
            f"data section is {len(payload)} bytes, expected {expected * dtype.itemsize}"
        )
    return header, np.frombuffer(payload, dtype=dtype)
