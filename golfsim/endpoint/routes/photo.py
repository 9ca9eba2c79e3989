"""
Photo Route - send a still of the current camera view to the simulator server.

POST /api/photo re-encodes the latest raw snapshot as JPEG (quality 90) and
uploads it as ``photo.jpg`` to the server's upload endpoint.
"""

import cv2
import requests
from fastapi.responses import JSONResponse
from fastapi import APIRouter

from golfsim.constants import upload_endpoint, upload_field_name
from golfsim.endpoint.routes.server_address import current_server
from golfsim.endpoint.routes.snapshot import read_raw_frame
from golfsim.utils.AppLogging import logger

router = APIRouter(tags=["photo"])

PHOTO_FILENAME = "photo.jpg"
PHOTO_JPEG_QUALITY = 90
PHOTO_TIMEOUT_SECONDS = 30.0


@router.post("/api/photo", response_class=JSONResponse)
def upload_photo():
    url = current_server().url(upload_endpoint)
    if url is None:
        return JSONResponse(
            {"status": "error", "detail": "The server's IP address is not set"},
            status_code=409
        )

    frame = read_raw_frame()
    if frame is None:
        return JSONResponse({"status": "error", "detail": "No frame available"}, status_code=503)

    ok, encoded = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, PHOTO_JPEG_QUALITY])
    if not ok:
        return JSONResponse({"status": "error", "detail": "JPEG encoding failed"}, status_code=500)

    files = {upload_field_name: (PHOTO_FILENAME, encoded.tobytes(), "image/jpeg")}
    try:
        response = requests.post(url, files=files, timeout=PHOTO_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        logger.error(f"[PhotoRoute] Upload to {url} failed: {e}")
        return JSONResponse({"status": "error", "detail": f"Upload failed: {e}"}, status_code=502)

    if not 200 <= response.status_code < 300:
        logger.error(f"[PhotoRoute] Upload rejected: HTTP {response.status_code}")
        return JSONResponse(
            {"status": "error", "detail": f"Upload failed: HTTP {response.status_code}"},
            status_code=502
        )

    logger.info(f"[PhotoRoute] Photo uploaded to {url}")
    return {"status": "ok", "detail": "Upload successful"}
