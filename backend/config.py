"""
Configuration — internal constants for the orchestration engine.
All user-configurable values come from bridge.yaml via get_settings().
Protocol defaults, retry limits and scoring tables remain code constants.
"""

# ── Hosted Provider Endpoints ──
OPENROUTER_BASE = "https://openrouter.ai/api/v1"
GOOGLE_AI_BASE = "https://generativelanguage.googleapis.com/v1beta"
GROQ_BASE = "https://api.groq.com/openai/v1"
GOOGLE_HOST_MARKER = "googleapis.com"

# ── Transport ──
DISCOVERY_TIMEOUT = 10
DEFAULT_TIMEOUT = 120
DEFAULT_MAX_TOKENS = 4000

# ── Discovery ──
DEFAULT_CONTEXT_LENGTH = 8000
MODEL_ID_PREFIXES = ("models/", "openai/")

# ── Execution Limits (code constants, not user config) ──
NODE_MAX_ATTEMPTS = 2
NODE_RETRY_DELAY = 1.0
FAILOVER_MAX_ATTEMPTS = 3
MAX_AGENT_TURNS = 5

# ── Context Snapshot ──
ATTACHMENT_MAX_CHARS = 4000
HISTORY_WINDOW = 6

# ── Ensemble ──
FALLBACK_MODEL_ID = "gpt-4o-mini"
RESEARCHER_MIN_CONTEXT = 32000
CHARS_PER_TOKEN = 4

# orchestrationMode -> merit threshold
MODE_MERIT = {
    "meritocratic": 8,
    "balanced": 5,
    "economy": 0,
    "sovereign": 0,
}

# ── Scoring Table ──
SCORE_CONTEXT_FLOOR = -1000
SCORE_FREE_TIER = 1000
SCORE_BLACKLISTED = -10000
SCORE_STRATEGIST_REASONING = 100
SCORE_ARTISAN_CODING = 200
SCORE_LOW_MERIT = -500
SCORE_VETO = -1_000_000
HIGH_MERIT_THRESHOLD = 8

FREE_TIER_MARKERS = (":free", "-free")
REASONING_TERMS = ("reason", "think", "r1", "o1", "o3", "qwq")
CODING_TERMS = ("code", "coder", "codestral", "devstral")
HIGH_MERIT_FAMILIES = (
    "gpt-4", "gpt-5", "o1", "o3", "claude", "gemini-1.5-pro", "gemini-2",
    "deepseek", "llama-3.1-405b", "qwen3",
)

# Model families that must never be routed through these provider classes
VETOED_MODEL_FAMILIES = ("gemini",)
VETOED_PROVIDER_CLASSES = ("openrouter",)

# ── In-band Grammar ──
TOOL_CALL_MARKER = "TOOL_CALL:"
ARGUMENTS_MARKER = "ARGUMENTS:"
FINAL_ANSWER_MARKER = "FINAL_ANSWER:"
NODE_FAILURE_PREFIX = "NODE_FAILURE:"

# ── Ratification ──
# Tool name fragment -> risk on the 0-10 scale
TOOL_RISK = {
    "run_command": 9,
    "shell": 9,
    "delete": 7,
    "write": 7,
    "browser": 5,
    "web": 5,
    "search": 3,
    "read": 1,
    "list": 1,
}
DEFAULT_TOOL_RISK = 5
