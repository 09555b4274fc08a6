class PeaksError(Exception):
    """Base class for failures raised while producing a waveform."""


class DecodeError(PeaksError):
    """Input bytes are not a supported or parseable audio container."""


class FileReadError(PeaksError):
    """The underlying storage read failed (missing file, permissions, I/O)."""


class InvariantError(PeaksError):
    """Envelope or data arrays are inconsistent in size. Always a bug."""
