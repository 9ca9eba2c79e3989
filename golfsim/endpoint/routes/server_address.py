"""
Server Address Routes - simulator server the tracker talks to.

Provides:
- GET  /api/server       - Current host/port (control file, else tracker state)
- POST /api/server       - Set host/port (empty host clears it)
- GET  /api/server/ping  - Check the server answers /ping
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from golfsim.constants import (
    DEFAULT_SERVER_PORT,
    control_server_host_key,
    control_server_port_key,
)
from golfsim.endpoint.pipeline_state import read_control, read_state, write_control
from golfsim.network.ServerAddress import ServerAddress
from golfsim.utils.AppLogging import logger

router = APIRouter(tags=["server"])


def current_server() -> ServerAddress:
    """
    Resolve the server address the tracker is (or will be) using.

    A pending control-file value wins over the last published state.
    """
    control = read_control()
    if control_server_host_key in control:
        host: Optional[str] = control.get(control_server_host_key)
        port = control.get(control_server_port_key)
    else:
        published = read_state().get("server") or {}
        host = published.get("host")
        port = published.get("port")
    return ServerAddress(host, int(port) if port else DEFAULT_SERVER_PORT)


@router.get("/api/server")
async def get_server() -> Dict[str, Any]:
    server = current_server()
    return {"host": server.get_host(), "port": server.get_port()}


@router.post("/api/server", response_class=JSONResponse)
async def set_server(request: Request):
    """
    Set the simulator server address.

    Body: {"host": "192.168.1.20", "port": 7878}  (port optional)
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"status": "error", "detail": "Invalid JSON body"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse({"status": "error", "detail": "Expected a JSON object"}, status_code=400)

    host = body.get("host")
    if host is not None and not isinstance(host, str):
        return JSONResponse({"status": "error", "detail": "host must be a string"}, status_code=400)
    host = (host or "").strip()

    port = body.get("port", DEFAULT_SERVER_PORT)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        return JSONResponse({"status": "error", "detail": "port must be 1-65535"}, status_code=400)

    write_control({control_server_host_key: host, control_server_port_key: port})
    logger.info(f"[ServerRoute] Server address set: {host or '<unset>'}:{port}")
    return {"status": "ok", "host": host or None, "port": port}


@router.get("/api/server/ping")
def ping_server() -> Dict[str, Any]:
    """Reachability check (blocking HTTP, runs in the threadpool)."""
    server = current_server()
    if server.get_host() is None:
        return {"host": None, "port": server.get_port(), "reachable": False,
                "detail": "The server's IP address is not set"}
    return {"host": server.get_host(), "port": server.get_port(), "reachable": server.ping()}
