import logging
import os
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, UploadFile, File, Form
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .converter import XlsxConverter, file_extension
from .models import ConvertResponse, ErrorResponse, HealthResponse
from .rules import ConversionSettings

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger("xlsx_converter")

SETTINGS = ConversionSettings.from_env()

app = FastAPI(
    title="xlsx-converter",
    description="Recover malformed spreadsheets and delimited text into clean .xlsx files",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _error(message: str, status_code: int = 400, code: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(message=message, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post(
    "/convert",
    response_model=ConvertResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def convert_file(
    file: UploadFile = File(...),
    forceTextRecovery: str = Form("false"),
    metaOnly: str = Form("false"),
):
    if not file.filename:
        return _error("No file name was provided.", 400, "NO_FILENAME")

    settings = SETTINGS
    if file_extension(file.filename) not in settings.supported_extensions:
        return _error(
            "Unsupported file type. Supported: " + ", ".join(settings.supported_extensions),
            400,
            "UNSUPPORTED_EXTENSION",
        )

    raw = await file.read()
    if len(raw) > settings.max_file_size:
        return _error(
            f"File is too large. Maximum size: {settings.max_file_size / 1024 / 1024:g}MB",
            413,
            "FILE_TOO_LARGE",
        )

    logger.info("Conversion started: %s (%d bytes)", file.filename, len(raw))
    converter = XlsxConverter(settings)
    result = await run_in_threadpool(
        converter.process, raw, file.filename, forceTextRecovery.lower() == "true"
    )

    if not result.success:
        logger.error("Conversion failed: %s", result.message)
        return _error(result.message or "Conversion failed.", 500, "CONVERSION_FAILED")

    logger.info("Conversion finished: %s (%d bytes)", result.filename, result.converted_size)

    if metaOnly.lower() == "true":
        return ConvertResponse(
            filename=result.filename,
            original_size=result.original_size,
            converted_size=result.converted_size,
            warnings=result.warnings,
        )

    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.filename)}",
        "X-Original-Size": str(result.original_size),
        "X-Converted-Size": str(result.converted_size),
    }
    if result.warnings:
        headers["X-Warnings"] = quote("; ".join(result.warnings))
    return Response(content=result.content, media_type=XLSX_MEDIA_TYPE, headers=headers)
