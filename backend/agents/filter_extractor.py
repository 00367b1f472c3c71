from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError
from typing import Any, Dict, Optional
from config import Config
from models.schemas import ExtractionResult, QueryFilters, QueryMeta
from utils.query_parser import QueryParser, get_parser
import json
import logging

logger = logging.getLogger(__name__)

GEMINI_SOURCE = "gemini"

SYSTEM_PROMPT = """You are an AI stylist assistant.
Return a compact JSON object with product filters extracted from the user query.
Format: {"filters": {"category": string|null, "color": string|null, "material": string|null, "gender": "men"|"women"|"unisex"|null, "brand": string|null, "budget": {"min": number|null, "max": number|null}|null, "size": string[]|null}, "meta": {"quantity": number|null}}
Use lowercase values.
Only respond with valid JSON."""


class GeminiFilterExtractor:
    """Best-effort filter extraction through Gemini.

    Returns None instead of raising: missing key, network errors, timeouts and
    malformed replies all mean "no result".
    """

    def __init__(self, llm=None, api_key: Optional[str] = None,
                 model: Optional[str] = None, timeout: Optional[float] = None):
        self.llm = llm
        if self.llm is None:
            api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
            if api_key:
                self.llm = ChatGoogleGenerativeAI(
                    model=model or Config.GEMINI_MODEL,
                    google_api_key=api_key,
                    temperature=0,
                    timeout=timeout or Config.LLM_TIMEOUT_SECONDS,
                    max_retries=0,
                )

    @property
    def available(self) -> bool:
        return self.llm is not None

    def extract(self, message: str) -> Optional[Dict[str, Any]]:
        """Raw {filters, meta} dict from Gemini, or None"""
        if not self.available:
            return None

        try:
            response = self.llm.invoke([
                SystemMessage(content=SYSTEM_PROMPT),
                HumanMessage(content=message),
            ])
            content = _clean_json(response.content)
            result = json.loads(content)
        except Exception as e:
            logger.warning(f"⚠️ Gemini parse failed, falling back to heuristics: {e}")
            return None

        if not isinstance(result, dict):
            logger.warning("⚠️ Gemini returned non-object JSON, falling back to heuristics")
            return None
        return result


def _clean_json(content) -> str:
    if isinstance(content, list):
        content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
    content = (content or "").strip()
    if content.startswith("```"):
        content = content.strip("`")
        if content.lower().startswith("json"):
            content = content[4:]
    return content.strip()


class FilterExtractor:
    """Priority-ordered attempt chain: Gemini first, heuristic parser otherwise.

    Whichever source wins supplies filters (and meta) whole; the two are
    never blended field by field.
    """

    def __init__(self, llm_extractor: Optional[GeminiFilterExtractor] = None,
                 parser: Optional[QueryParser] = None):
        self.llm_extractor = llm_extractor
        self.parser = parser or get_parser()

    def extract(self, message: str) -> ExtractionResult:
        heuristic = self.parser.parse_query(message)
        if self.llm_extractor is None:
            return heuristic

        raw = self.llm_extractor.extract(message)
        if raw is None:
            return heuristic

        try:
            filters = QueryFilters.model_validate(raw["filters"]) if raw.get("filters") is not None else heuristic.filters
            meta = QueryMeta.model_validate(raw["meta"]) if raw.get("meta") is not None else heuristic.meta
        except (ValidationError, TypeError) as e:
            logger.warning(f"⚠️ Gemini filters had an unexpected shape, using heuristics: {e}")
            return heuristic

        return ExtractionResult(filters=filters, meta=meta, source=GEMINI_SOURCE)
