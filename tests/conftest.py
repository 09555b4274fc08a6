import io

import numpy as np
import pytest
import soundfile as sf


def wav_bytes(channels, sr=44100) -> bytes:
    """(channels, frames) float 배열을 32bit float WAV 바이트로."""
    arr = np.atleast_2d(np.asarray(channels, dtype=np.float32))
    buf = io.BytesIO()
    sf.write(buf, arr.T, sr, format="WAV", subtype="FLOAT")
    return buf.getvalue()


@pytest.fixture
def storage_dir(tmp_path):
    ramp = np.linspace(-1.0, 1.0, 2048, dtype=np.float32)
    (tmp_path / "mono.wav").write_bytes(wav_bytes([ramp]))
    (tmp_path / "stereo.wav").write_bytes(wav_bytes([ramp, -ramp]))
    (tmp_path / "broken.mp3").write_bytes(b"definitely not audio")
    return tmp_path
