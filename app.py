import json
import os
import time
from fastapi import FastAPI, Request, Response, Depends
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
from dotenv import load_dotenv

from graph.workflow import build_workflow
from tools.notion import NotionClient
from tools.settings import Settings, get_settings
from tools.signature import SIGNATURE_HEADER, verify_signature

# Load environment variables
load_dotenv()

# Configure logging
logger.add(os.getenv("LOG_FILE", "logs/app.log"), rotation="1 day", retention="7 days", level="INFO")

app = FastAPI(
    title="Cal Booking to Notion CRM Bridge",
    description="Creates a Notion CRM lead for every new Cal.com booking",
    version="1.0.0"
)

app_graph = build_workflow()

WEBHOOK_PATH = "/api/cal-webhook"
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

def get_crm_client(settings: Settings = Depends(get_settings)) -> NotionClient:
    """CRM client for the current request."""
    return NotionClient.from_settings(settings)

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

@app.api_route(WEBHOOK_PATH, methods=ALL_METHODS)
async def cal_webhook(
    req: Request,
    settings: Settings = Depends(get_settings),
    crm: NotionClient = Depends(get_crm_client),
):
    """
    Webhook endpoint for Cal.com booking events.

    Expected payload:
    {
        "triggerEvent": "BOOKING_CREATED",
        "payload": {
            "attendees": [{"name": "Jane Doe", "email": "jane@acme.com"}],
            "responses": {
                "how_found": {"value": "Twitter"},
                "notes": {"value": "Wants a demo"},
                "domain": {"value": "https://acme.com"}
            }
        }
    }
    """
    if req.method != "POST":
        return Response(status_code=405, headers={"Allow": "POST"})

    missing = settings.missing()
    if missing:
        logger.error(
            f"Missing env vars: {missing} "
            f"(has_webhook_secret={bool(settings.webhook_secret)}, "
            f"has_notion_key={bool(settings.notion_api_key)})"
        )
        return _error(500, "Server misconfigured")

    # Signature is computed over the bytes as received
    body = await req.body()
    if not verify_signature(settings.webhook_secret, body, req.headers.get(SIGNATURE_HEADER)):
        logger.warning("Rejected webhook with missing or invalid signature")
        return _error(401, "Invalid signature")

    try:
        raw = json.loads(body)
    except ValueError:
        logger.warning("Rejected webhook with a body that is not valid JSON")
        return _error(400, "Invalid payload")
    if not isinstance(raw, dict):
        logger.warning("Rejected webhook with a body that is not a JSON object")
        return _error(400, "Invalid payload")

    start_time = time.time()
    logger.info(f"Received Cal.com webhook: {raw.get('triggerEvent')}")

    result = await app_graph.ainvoke(
        {"raw": raw, "errors": []},
        config={"configurable": {"crm": crm}},
    )

    if result.get("skipped"):
        return JSONResponse(status_code=200, content={"skipped": True})

    if result.get("errors"):
        logger.error(f"Booking processing failed: {result['errors']}")
        return _error(500, "Failed to create CRM entry")

    processing_time = time.time() - start_time
    logger.info(f"Booking processed in {processing_time:.2f}s: {result.get('crm_record_id')}")

    return JSONResponse(status_code=200, content={"ok": True})

@app.get("/health")
def health(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": "1.0.0",
        "services": {
            "webhook_secret": "configured" if settings.webhook_secret else "missing",
            "notion": "configured" if settings.notion_api_key else "missing",
            "workflow": "ready"
        }
    }

# Error handlers
@app.exception_handler(StarletteHTTPException)
async def webhook_method_handler(request: Request, exc: StarletteHTTPException):
    # Methods outside ALL_METHODS are rejected by the router before the handler runs
    if exc.status_code == 405 and request.url.path == WEBHOOK_PATH:
        return Response(status_code=405, headers={"Allow": "POST"})
    return await http_exception_handler(request, exc)

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Cal booking to Notion CRM bridge")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info"
    )
