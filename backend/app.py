from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
import logging
import time
import uvicorn

from config import Config, llm_enabled
from agents.filter_extractor import FilterExtractor, GeminiFilterExtractor
from agents.shopping_assistant import InvalidRequest, ShoppingAssistant
from models.schemas import ChatRequest, FeedbackRequest, ParseQueryRequest
from tools.product_catalog import ProductCatalog
from tools.session_manager import InvalidFeedbackAction, SessionManager, connect_store
from utils.consistency_logger import get_consistency_report, get_query_history
from utils.query_parser import get_parser

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_started_at = time.monotonic()

# Initialize FastAPI
app = FastAPI(
    title="Product Discovery Assistant API",
    description="Conversational product discovery with session-scoped preferences",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_assistant: Optional[ShoppingAssistant] = None


def build_assistant() -> ShoppingAssistant:
    """Wire the catalog, session store and extractors from Config"""
    catalog = ProductCatalog.from_json(Config.CATALOG_PATH)
    session_manager = SessionManager(
        connect_store(Config.REDIS_URL),
        ttl_seconds=Config.SESSION_TTL_SECONDS,
        max_history=Config.MAX_HISTORY_ENTRIES,
    )
    llm_extractor = GeminiFilterExtractor() if llm_enabled() else None
    if llm_extractor is None:
        logger.info("🧩 GEMINI_API_KEY not set, using heuristic filter extraction only")
    return ShoppingAssistant(catalog, session_manager, FilterExtractor(llm_extractor))


def get_assistant() -> ShoppingAssistant:
    global _assistant
    if _assistant is None:
        _assistant = build_assistant()
    return _assistant


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# Health check
@app.get("/health")
def health_check():
    return {"status": "ok", "uptime": round(time.monotonic() - _started_at, 3)}


# Main chat endpoint
@app.post("/api/chat")
def chat_endpoint(request: ChatRequest, assistant: ShoppingAssistant = Depends(get_assistant)):
    try:
        result = assistant.run_chat(request.message, request.session_id)
        return result.to_wire()
    except InvalidRequest as e:
        return _error(400, str(e))
    except Exception:
        logger.exception("❌ Chat endpoint failed")
        return _error(500, "Failed to process query")


@app.post("/api/feedback")
def feedback_endpoint(request: FeedbackRequest, assistant: ShoppingAssistant = Depends(get_assistant)):
    try:
        preferences = assistant.apply_feedback(request.session_id, request.product_id, request.action)
        return {"success": True, "preferences": preferences.to_wire()}
    except InvalidFeedbackAction:
        return _error(400, "Unsupported feedback action")
    except InvalidRequest as e:
        return _error(400, str(e))
    except Exception:
        logger.exception("❌ Feedback endpoint failed")
        return _error(500, "Failed to update feedback")


@app.get("/api/wishlist")
def wishlist_endpoint(sessionId: Optional[str] = None, assistant: ShoppingAssistant = Depends(get_assistant)):
    try:
        items = assistant.get_wishlist(sessionId)
        return {"items": [item.to_wire() for item in items]}
    except InvalidRequest as e:
        return _error(400, str(e))
    except Exception:
        logger.exception("❌ Wishlist endpoint failed")
        return _error(500, "Failed to fetch wishlist")


@app.get("/api/preferences")
def preferences_endpoint(sessionId: Optional[str] = None, assistant: ShoppingAssistant = Depends(get_assistant)):
    try:
        state = assistant.get_session(sessionId).to_wire()
        return {"preferences": state["preferences"], "history": state["history"]}
    except InvalidRequest as e:
        return _error(400, str(e))
    except Exception:
        logger.exception("❌ Preferences endpoint failed")
        return _error(500, "Failed to fetch preferences")


# Session management
@app.delete("/api/session/{session_id}")
def clear_session(session_id: str, assistant: ShoppingAssistant = Depends(get_assistant)):
    try:
        assistant.clear_session(session_id)
        return {"message": f"Session {session_id} cleared"}
    except Exception as e:
        logger.exception("❌ Session clear failed")
        raise HTTPException(status_code=500, detail=str(e))


# DEBUG ENDPOINTS FOR EXTRACTION MONITORING

@app.post("/debug/parse-query")
def debug_parse_query(body: ParseQueryRequest, assistant: ShoppingAssistant = Depends(get_assistant)):
    """
    Run both the heuristic parser and the full extraction chain on a query.
    Useful for checking where a turn's filters would come from.
    """
    if not body.query:
        raise HTTPException(status_code=400, detail="Query is required")

    parser = get_parser()
    return {
        "query": body.query,
        "heuristic": parser.describe(parser.parse_query(body.query)),
        "final": parser.describe(assistant.extractor.extract(body.query)),
        "status": "success"
    }


@app.get("/debug/extraction-report")
def debug_extraction_report(query: Optional[str] = None):
    """Extraction provenance statistics for all turns or for turns like `query`"""
    return {
        "report": get_consistency_report(query),
        "query_filter": query,
        "status": "success"
    }


@app.get("/debug/query-history/{query}")
def debug_query_history(query: str, limit: int = 10):
    history = get_query_history(query, limit)
    return {
        "query": query,
        "history": history,
        "count": len(history),
        "status": "success"
    }


if __name__ == "__main__":
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=Config.PORT,
        reload=True
    )
