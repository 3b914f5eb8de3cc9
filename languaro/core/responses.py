from typing import Dict, Optional

from fastapi.responses import JSONResponse

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
}


def success_response(status: int = 200, headers: Optional[Dict[str, str]] = None, **fields):
    return JSONResponse(
        status_code=status,
        content={"ok": True, **fields},
        headers=headers,
    )


def error_response(error: str, status: int = 400, headers: Optional[Dict[str, str]] = None, **fields):
    return JSONResponse(
        status_code=status,
        content={"ok": False, "error": error, **fields},
        headers=headers,
    )
