"""
Response Composer
Builds the assistant reply and next-step suggestions from the turn's filters
and the final ranked slice. Deterministic; no LLM involved.
"""

from typing import List, Optional, Sequence

from models.schemas import AssistantMessage, QueryFilters

NO_MATCH_TEXT = (
    "I could not find a perfect match yet. "
    "Would you like to adjust the color, price range, or category?"
)
GENERIC_INTRO = "Here are a few recommendations I think you will like:"
FOLLOW_UP_TEXT = "Would you like to narrow this down by delivery time, rating, or explore similar styles?"

COLOR_SUGGESTION = "Show me the same style in a different color"
BUDGET_SUGGESTION = "Keep it under ₹2500"
MATERIAL_SUGGESTION = "Find something in breathable linen"
FILLER_SUGGESTION = "Show me more casual weekend outfits"
MAX_SUGGESTIONS = 3


def compose_message(filters: Optional[QueryFilters], results: Sequence) -> AssistantMessage:
    if not results:
        return AssistantMessage(text=NO_MATCH_TEXT)

    filters = filters or QueryFilters()
    descriptors: List[str] = []
    if filters.color:
        descriptors.append(filters.color)
    if filters.material:
        descriptors.append(filters.material)
    if filters.category:
        category = filters.category
        if filters.gender:
            category += f" for {filters.gender}"
        descriptors.append(category)

    if descriptors:
        intro = f"Here are some {' '.join(descriptors)} options I picked for you:"
    else:
        intro = GENERIC_INTRO

    return AssistantMessage(text=intro, follow_up=FOLLOW_UP_TEXT)


def build_suggestions(filters: Optional[QueryFilters]) -> List[str]:
    filters = filters or QueryFilters()
    suggestions = []
    if not filters.color:
        suggestions.append(COLOR_SUGGESTION)
    if not (filters.budget and filters.budget.max is not None):
        suggestions.append(BUDGET_SUGGESTION)
    if not filters.material:
        suggestions.append(MATERIAL_SUGGESTION)
    suggestions.append(FILLER_SUGGESTION)
    return suggestions[:MAX_SUGGESTIONS]
