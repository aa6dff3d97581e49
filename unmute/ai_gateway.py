"""OpenAI-backed gateway for categorization, transcription, analysis, chat, search and speech."""
import logging
import string
from typing import Any, Iterable, List, Optional, Sequence

from openai import AsyncOpenAI

from audio_codec import decode_audio, encode_audio
from config import config
from schemas import ChatMessage, GroundingResult

logger = logging.getLogger(__name__)

CATEGORY_FALLBACK = "General"
CATEGORY_EMPTY = "Uncategorized"
ANALYSIS_FALLBACK = "Error generating analysis."
ANALYSIS_EMPTY = "Analysis unavailable."
CHAT_FALLBACK = "I'm having trouble connecting right now. Please try again later."

CHAT_SYSTEM_INSTRUCTION = (
    "You are a supportive, empathetic, and knowledgeable AI assistant for the 'UnMute' "
    "anti-ragging app. Your goal is to help students feel safe, provide legal or procedural "
    "information about ragging, and encourage them to report incidents. Be concise but warm."
)

# Upload names for the transcription endpoint, which infers format from the extension
_AUDIO_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/ogg": "ogg",
    "audio/flac": "flac",
}


class TranscriptionError(Exception):
    """Raised when a recording could not be turned into text."""


def dedupe_links(links: Iterable[Any]) -> List[str]:
    """Drop empty and repeated URLs, keeping first occurrences in order."""
    return list(dict.fromkeys(link for link in links if isinstance(link, str) and link))


class AIGateway:
    """Thin adapter over the OpenAI API.

    Categorization, analysis, chat, search and speech are advisory: any
    failure is logged and a fixed fallback is returned. Transcription is
    the exception, since a lost transcript means the report itself is lost,
    so it raises TranscriptionError for the caller to handle.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        """Initialize the gateway.

        Args:
            client: Preconfigured client (default built from config)
        """
        if client is None and config.OPENAI_API_KEY:
            client = AsyncOpenAI(
                api_key=config.OPENAI_API_KEY,
                timeout=config.AI_TIMEOUT_SECONDS
            )
        self.client = client

    @property
    def available(self) -> bool:
        return config.AI_PROVIDER_ENABLED and self.client is not None

    def _require_client(self) -> AsyncOpenAI:
        if not config.AI_PROVIDER_ENABLED:
            raise Exception("AI provider disabled in config")
        if not self.client:
            raise Exception("OpenAI client not configured")
        return self.client

    # ------------------------------------------------------------------
    # Categorize
    # ------------------------------------------------------------------

    def _build_category_prompt(self, text: str) -> str:
        return (
            "Categorize the following ragging complaint into one word "
            f"(e.g., Physical, Verbal, Cyber, Exclusion, Financial): \"{text}\""
        )

    def _parse_category(self, reply: Optional[str]) -> str:
        """Reduce a model reply to a single category word."""
        words = (reply or "").strip().split()
        if not words:
            return CATEGORY_EMPTY
        return words[0].strip(string.punctuation + "“”‘’") or CATEGORY_EMPTY

    async def categorize(self, text: str) -> str:
        """Classify a complaint into a one-word category.

        Returns:
            The category, or "General" if the call fails
        """
        try:
            client = self._require_client()
            response = await client.chat.completions.create(
                model=config.CATEGORIZE_MODEL,
                messages=[{"role": "user", "content": self._build_category_prompt(text)}],
                temperature=0
            )
            return self._parse_category(response.choices[0].message.content)
        except Exception as e:
            logger.error(f"Categorization failed: {e}")
            return CATEGORY_FALLBACK

    # ------------------------------------------------------------------
    # Transcribe
    # ------------------------------------------------------------------

    def _upload_name(self, mime_type: str) -> str:
        base_type = (mime_type or "").split(";")[0].strip().lower()
        return f"recording.{_AUDIO_EXTENSIONS.get(base_type, 'webm')}"

    async def transcribe(self, audio: str, mime_type: str) -> str:
        """Transcribe a base64 encoded recording verbatim.

        Args:
            audio: Base64 of the recorded bytes
            mime_type: Container type of the recording

        Returns:
            The transcript

        Raises:
            TranscriptionError: If the audio is unusable, the call fails or
                the transcript is empty
        """
        try:
            data = decode_audio(audio)
            if not data:
                raise TranscriptionError("Recording is empty")

            client = self._require_client()
            response = await client.audio.transcriptions.create(
                model=config.TRANSCRIBE_MODEL,
                file=(self._upload_name(mime_type), data, mime_type)
            )

            transcript = (response.text or "").strip()
            if not transcript:
                raise TranscriptionError("Transcription returned no text")
            return transcript

        except TranscriptionError as e:
            logger.error(f"Transcription failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Transcription failed: {e}")
            raise TranscriptionError(f"Transcription failed: {e}") from e

    # ------------------------------------------------------------------
    # Deep analysis
    # ------------------------------------------------------------------

    def _build_analysis_prompt(self, text: str) -> str:
        return (
            "Analyze this student ragging complaint. Assess the severity, identify potential "
            "policy violations, and suggest immediate actions for the Anti-Ragging Committee. "
            f"Complaint: \"{text}\""
        )

    async def analyze(self, text: str) -> str:
        """Produce a severity / violation / action assessment.

        Uses a reasoning model; the effort level stands in for a thinking budget.
        """
        try:
            client = self._require_client()
            response = await client.chat.completions.create(
                model=config.ANALYSIS_MODEL,
                messages=[{"role": "user", "content": self._build_analysis_prompt(text)}],
                reasoning_effort=config.ANALYSIS_REASONING_EFFORT
            )
            analysis = (response.choices[0].message.content or "").strip()
            return analysis or ANALYSIS_EMPTY
        except Exception as e:
            logger.error(f"Deep analysis failed: {e}")
            return ANALYSIS_FALLBACK

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def chat(self, history: Sequence[ChatMessage], message: str) -> str:
        """Reply to `message` given the prior conversation.

        Args:
            history: Messages exchanged so far, oldest first
            message: The new user message (not part of history)
        """
        messages = [{"role": "system", "content": CHAT_SYSTEM_INSTRUCTION}]
        messages.extend({"role": m.role, "content": m.text} for m in history)
        messages.append({"role": "user", "content": message})

        try:
            client = self._require_client()
            response = await client.chat.completions.create(
                model=config.CHAT_MODEL,
                messages=messages
            )
            reply = (response.choices[0].message.content or "").strip()
            return reply or CHAT_FALLBACK
        except Exception as e:
            logger.error(f"Chat error: {e}")
            return CHAT_FALLBACK

    # ------------------------------------------------------------------
    # Search grounding
    # ------------------------------------------------------------------

    def _build_search_prompt(self, query: str) -> str:
        return (
            "Find up-to-date helplines, legal acts, and support resources in India "
            f"regarding: {query}"
        )

    def _extract_links(self, response: Any) -> List[str]:
        """Collect cited URLs from the url_citation annotations of a response."""
        links = []
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) != "message":
                continue
            for part in getattr(item, "content", None) or []:
                for annotation in getattr(part, "annotations", None) or []:
                    if getattr(annotation, "type", None) == "url_citation":
                        links.append(getattr(annotation, "url", None))
        return links

    async def search_resources(self, query: str) -> GroundingResult:
        """Search the web for support resources and cite sources."""
        try:
            client = self._require_client()
            response = await client.responses.create(
                model=config.SEARCH_MODEL,
                tools=[{"type": config.SEARCH_TOOL}],
                input=self._build_search_prompt(query)
            )
            return GroundingResult(
                text=response.output_text or "",
                links=dedupe_links(self._extract_links(response))
            )
        except Exception as e:
            logger.error(f"Search grounding failed: {e}")
            return GroundingResult()

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------

    async def synthesize_speech(self, text: str) -> Optional[str]:
        """Synthesize speech for `text`.

        Returns:
            Base64 raw PCM (24 kHz, mono, 16-bit) or None if unavailable
        """
        if not text or not text.strip():
            return None

        try:
            client = self._require_client()
            response = await client.audio.speech.create(
                model=config.TTS_MODEL,
                voice=config.TTS_VOICE,
                input=text,
                response_format="pcm"
            )
            audio = response.content
            if not audio:
                logger.warning("Speech synthesis returned no audio")
                return None
            return encode_audio(audio)
        except Exception as e:
            logger.error(f"TTS failed: {e}")
            return None
