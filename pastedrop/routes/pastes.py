"""
Paste routes.
Handles create, fetch (API), and view (HTML) operations.
"""
import html
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from pastedrop.clock import current_time_ms, ms_to_iso
from pastedrop.config import settings
from pastedrop.database import PasteStore, PasteStoreError, get_store
from pastedrop.gate import GateResult, PasteUnavailable, open_paste
from pastedrop.models import PasteCreate, PasteResponse, PasteView

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/pastes", response_model=PasteResponse, status_code=201)
async def create_paste(
    paste: PasteCreate,
    store: PasteStore = Depends(get_store),
) -> PasteResponse:
    """
    Create a new paste.

    Field validation happens in PasteCreate; failures become 400 responses
    through the handler registered in main.

    Raises:
        HTTPException: 500 if the paste could not be persisted
    """
    try:
        paste_id = store.create_paste(
            content=paste.content,
            ttl_seconds=paste.ttl_seconds,
            max_views=paste.max_views,
        )
    except PasteStoreError:
        raise HTTPException(
            status_code=500,
            detail="Failed to save paste",
        )

    # Generate shareable URL
    base_url = settings.APP_DOMAIN.rstrip("/")
    url = f"{base_url}/p/{paste_id}"

    return PasteResponse(id=paste_id, url=url)


@router.get("/pastes/{paste_id}", response_model=PasteView)
async def fetch_paste(
    paste_id: str,
    store: PasteStore = Depends(get_store),
    now_ms: int = Depends(current_time_ms),
) -> PasteView:
    """
    Fetch a paste (API endpoint).
    Each successful fetch increments the view count.

    Raises:
        HTTPException: 404 if the paste is missing, expired, or out of views
    """
    try:
        result = open_paste(store, paste_id, now_ms)
    except PasteUnavailable as e:
        raise HTTPException(status_code=404, detail=e.detail)

    return PasteView(
        content=result.content,
        remaining_views=result.remaining_views,
        expires_at=ms_to_iso(result.paste.expires_at),
    )


@router.get("/p/{paste_id}", response_class=HTMLResponse)
async def view_paste(
    paste_id: str,
    store: PasteStore = Depends(get_store),
    now_ms: int = Depends(current_time_ms),
) -> HTMLResponse:
    """
    View a paste as HTML.
    Goes through the same gate as the API, so each view counts.
    """
    try:
        result = open_paste(store, paste_id, now_ms)
    except PasteUnavailable as e:
        return HTMLResponse(_render_error_page(404, e.detail), status_code=404)
    except PasteStoreError:
        return HTMLResponse(
            _render_error_page(500, "Something went wrong loading this paste"),
            status_code=500,
        )

    return HTMLResponse(_render_paste_page(paste_id, result))


_PAGE_STYLE = """
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif;
            background: #f4f4f7;
            margin: 0;
            padding: 20px;
        }
        .container {
            background: white;
            border-radius: 8px;
            box-shadow: 0 4px 20px rgba(0, 0, 0, 0.1);
            max-width: 900px;
            margin: 0 auto;
            padding: 32px;
        }
        h1 { color: #333; font-size: 22px; margin: 0 0 8px; }
        pre {
            background: #f5f5f5;
            border: 1px solid #ddd;
            border-radius: 5px;
            padding: 20px;
            white-space: pre-wrap;
            word-wrap: break-word;
        }
        .meta { color: #777; font-size: 12px; }
"""


def _render_paste_page(paste_id: str, result: GateResult) -> str:
    """Render the paste page; all user text is escaped."""
    paste = result.paste
    meta = [f"Created {ms_to_iso(paste.created_at)}"]
    if paste.expires_at is not None:
        meta.append(f"Expires {ms_to_iso(paste.expires_at)}")
    if result.remaining_views is None:
        meta.append("Unlimited views")
    else:
        meta.append(f"{result.remaining_views} views remaining")

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Paste {html.escape(paste_id)} - PasteDrop</title>
    <style>{_PAGE_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1>Paste {html.escape(paste_id)}</h1>
        <pre>{html.escape(result.content)}</pre>
        <p class="meta">{" · ".join(meta)}</p>
    </div>
</body>
</html>"""


def _render_error_page(status_code: int, reason: str) -> str:
    """Render an error page for the HTML view."""
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Error {status_code} - PasteDrop</title>
    <style>{_PAGE_STYLE}</style>
</head>
<body>
    <div class="container">
        <h1>{status_code}</h1>
        <p>{html.escape(reason)}</p>
    </div>
</body>
</html>"""
