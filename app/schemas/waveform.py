from pydantic import BaseModel
from typing import List

class WaveformOut(BaseModel):
    version: int
    channels: int
    sample_rate: int
    samples_per_pixel: int
    bits: int
    length: int
    data: List[float]
