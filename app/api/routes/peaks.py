from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from typing import Optional
import asyncio

from app.core.errors import PeaksError
from app.core.logging import logger
from app.schemas.waveform import WaveformOut
from app.services.audio.processor import AudioProcessorService

router = APIRouter()

DAT_HEADERS = {"Content-Disposition": 'attachment; filename="peaks.dat"'}


def get_processor() -> AudioProcessorService:
    return AudioProcessorService()


def _require_file_name(file_name: Optional[str]) -> str:
    if not file_name or not file_name.strip():
        raise HTTPException(400, "fileName is required")
    return file_name


def _prepare(processor: AudioProcessorService, file_name, samples_per_pixel, split_channels, bits):
    """요청 파라미터 검증. 여기서 나는 ValueError 만 클라이언트 오류(400)."""
    file_name = _require_file_name(file_name)
    try:
        params = processor.params(samples_per_pixel, split_channels, bits)
        path = processor.resolve(file_name)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return path, params


async def _run(fn, *args):
    # 파일 읽기/디코드가 유일한 대기 지점이라 스레드로 넘김
    try:
        return await asyncio.to_thread(fn, *args)
    except PeaksError as e:
        logger.exception(f"[peaks] {fn.__name__} FAILED: {e}")
        raise HTTPException(500, str(e))


@router.get("/api/process-audio")
@router.get("/audio-processor/process-audio")
async def process_audio(
    file_name: Optional[str] = Query(None, alias="fileName"),
    samples_per_pixel: Optional[int] = Query(None, alias="samplesPerPixel"),
    bits: Optional[int] = Query(None),
    split_channels: Optional[bool] = Query(None, alias="splitChannels"),
    processor: AudioProcessorService = Depends(get_processor),
):
    path, params = _prepare(processor, file_name, samples_per_pixel, split_channels, bits)

    dat = await _run(processor.process_path, path, params)
    logger.info(f"[peaks] file='{file_name}' bits={params.bits} bytes={len(dat)}")
    return Response(content=dat, media_type="application/octet-stream", headers=DAT_HEADERS)


@router.get("/api/process-audio-json", response_model=WaveformOut)
async def process_audio_json(
    file_name: Optional[str] = Query(None, alias="fileName"),
    samples_per_pixel: Optional[int] = Query(None, alias="samplesPerPixel"),
    bits: Optional[int] = Query(None),
    split_channels: Optional[bool] = Query(None, alias="splitChannels"),
    processor: AudioProcessorService = Depends(get_processor),
):
    path, params = _prepare(processor, file_name, samples_per_pixel, split_channels, bits)
    return await _run(processor.process_path_json, path, params)
