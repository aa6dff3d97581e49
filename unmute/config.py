"""Configuration management for the UnMute reporting service."""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # OpenAI Configuration
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))
    AI_PROVIDER_ENABLED = os.getenv("AI_PROVIDER_ENABLED", "true").lower() == "true"

    # One model per capability
    CATEGORIZE_MODEL = os.getenv("CATEGORIZE_MODEL", "gpt-4.1-nano")
    TRANSCRIBE_MODEL = os.getenv("TRANSCRIBE_MODEL", "gpt-4o-transcribe")
    ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "o4-mini")
    ANALYSIS_REASONING_EFFORT = os.getenv("ANALYSIS_REASONING_EFFORT", "high")
    CHAT_MODEL = os.getenv("CHAT_MODEL", "gpt-4.1")
    SEARCH_MODEL = os.getenv("SEARCH_MODEL", "gpt-4.1-mini")
    SEARCH_TOOL = os.getenv("SEARCH_TOOL", "web_search")
    TTS_MODEL = os.getenv("TTS_MODEL", "gpt-4o-mini-tts")
    TTS_VOICE = os.getenv("TTS_VOICE", "coral")

    # Speech payloads are raw PCM: 16-bit signed little-endian
    PCM_SAMPLE_RATE = 24000
    PCM_CHANNELS = 1

    # Microphone capture
    RECORD_SAMPLE_RATE = int(os.getenv("RECORD_SAMPLE_RATE", "16000"))

    # Complaint Configuration
    MAX_COMPLAINT_CHARS = int(os.getenv("MAX_COMPLAINT_CHARS", "5000"))
    SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"

    # Category shown until categorization completes
    CATEGORY_PLACEHOLDER = "Processing..."

    ADMIN_ROLES = [
        "Hostel Warden",
        "Faculty Member",
        "Anti-Ragging Committee",
        "Student Council"
    ]


config = Config()
