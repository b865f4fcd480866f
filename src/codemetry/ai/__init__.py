"""Optional AI explanations with bounded score adjustments.

Modules:
    models   -- MoodAiInput / MoodAiSummary payloads
    engines  -- HTTP engines (openai, deepseek, anthropic, google)
    enhance  -- batch orchestration with partial-failure handling
"""

from codemetry.ai.models import MoodAiInput, MoodAiSummary, build_ai_input, extension_histogram
from codemetry.ai.engines import (
    AiEngine,
    HttpAiEngine,
    OpenAiEngine,
    DeepSeekEngine,
    AnthropicEngine,
    GoogleEngine,
    SUPPORTED_ENGINES,
    create_engine,
)
from codemetry.ai.enhance import EnhancementOutcome, enhance_moods

__all__ = [
    # models
    "MoodAiInput",
    "MoodAiSummary",
    "build_ai_input",
    "extension_histogram",
    # engines
    "AiEngine",
    "HttpAiEngine",
    "OpenAiEngine",
    "DeepSeekEngine",
    "AnthropicEngine",
    "GoogleEngine",
    "SUPPORTED_ENGINES",
    "create_engine",
    # enhance
    "EnhancementOutcome",
    "enhance_moods",
]
