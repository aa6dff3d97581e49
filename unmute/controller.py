"""Orchestration of student, admin and assistant actions.

The controller is the single owner of application state. Surfaces (HTTP
API, interactive CLI) call its operations and read its state; they never
mutate the store directly.
"""
import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Set, Union

from ai_gateway import AIGateway, TranscriptionError
from audio_codec import AudioEncodingError, AudioPlayer, AudioSource, encode_audio
from schemas import (
    AdminProfile,
    AdminRole,
    ChatMessage,
    Complaint,
    GroundingResult,
    SpeechPayload,
    StatusFilter,
)
from store import ComplaintStore, build_store

logger = logging.getLogger(__name__)

AUDIO_FAILURE_NOTICE = "Failed to process audio."
CHAT_GREETING = "Hi! I am here to help. Ask me about anti-ragging laws or how to stay safe."


class AlreadyInFlight(Exception):
    """Raised when a key is claimed while a previous claim is still held."""


class InFlightKeys:
    """Set of keys with outstanding work.

    hold() adds the key before the work starts and removes it on every
    exit path, failures included.
    """

    def __init__(self):
        self._keys: Set[str] = set()

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    @contextmanager
    def hold(self, key: str) -> Iterator[str]:
        if key in self._keys:
            raise AlreadyInFlight(key)
        self._keys.add(key)
        try:
            yield key
        finally:
            self._keys.discard(key)


class ReportingController:
    """Binds user actions to the complaint store and the AI gateway."""

    def __init__(
        self,
        gateway: Optional[AIGateway] = None,
        store: Optional[ComplaintStore] = None,
        player: Optional[AudioPlayer] = None
    ):
        self.gateway = gateway or AIGateway()
        self.store = store if store is not None else build_store()
        self.player = player or AudioPlayer()

        self.profile: Optional[AdminProfile] = None
        self.notices: List[str] = []
        self.processing_audio = False

        self.analyzing = InFlightKeys()
        self.searching = False
        self.search_result: Optional[GroundingResult] = None

        self._chat: List[ChatMessage] = [ChatMessage(role="assistant", text=CHAT_GREETING)]
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Student: submission
    # ------------------------------------------------------------------

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _categorize(self, complaint_id: str, content: str) -> None:
        category = await self.gateway.categorize(content)
        if self.store.set_category(complaint_id, category):
            logger.info(f"Complaint {complaint_id} categorized as {category}")

    def _create(self, content: str, is_audio: bool = False, transcription: Optional[str] = None) -> Complaint:
        complaint = self.store.create(content, is_audio=is_audio, transcription=transcription)
        self._spawn(self._categorize(complaint.id, complaint.content))
        return complaint

    async def submit_text(self, content: str) -> Complaint:
        """File a typed complaint; categorization continues in the background."""
        if not content or not content.strip():
            raise ValueError("Complaint cannot be empty")
        return self._create(content)

    async def submit_audio(self, audio: Union[AudioSource, str], mime_type: Optional[str] = None) -> Complaint:
        """File a spoken complaint.

        Args:
            audio: An AudioClip or raw bytes from the recorder, or an
                already base64 encoded payload (str)
            mime_type: Container type; taken from the clip when omitted

        Raises:
            TranscriptionError: If the recording could not be transcribed.
                A notice is recorded and no complaint is created.
        """
        mime_type = mime_type or getattr(audio, "mime_type", None) or "audio/webm"
        self.processing_audio = True
        try:
            payload = audio if isinstance(audio, str) else encode_audio(audio)
            transcript = await self.gateway.transcribe(payload, mime_type)
        except AudioEncodingError as e:
            self.notices.append(AUDIO_FAILURE_NOTICE)
            raise TranscriptionError(f"Could not encode recording: {e}") from e
        except TranscriptionError:
            self.notices.append(AUDIO_FAILURE_NOTICE)
            raise
        finally:
            self.processing_audio = False

        return self._create(transcript, is_audio=True, transcription=transcript)

    async def wait_for_background(self) -> None:
        """Wait for every outstanding categorization to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Admin: session
    # ------------------------------------------------------------------

    def login(self, name: str, role: Union[AdminRole, str], department: str) -> AdminProfile:
        self.profile = AdminProfile(name=name, role=role, department=department)
        logger.info(f"Admin session started for {self.profile.role.value}")
        return self.profile

    def logout(self) -> None:
        self.profile = None
        self.search_result = None

    @property
    def logged_in(self) -> bool:
        return self.profile is not None

    # ------------------------------------------------------------------
    # Admin: dashboard
    # ------------------------------------------------------------------

    def complaints(self, status: Union[StatusFilter, str] = StatusFilter.ALL) -> List[Complaint]:
        return self.store.filter(status)

    def toggle_resolution(self, complaint_id: str) -> Complaint:
        return self.store.toggle_status(complaint_id)

    async def request_analysis(self, complaint_id: str) -> Optional[Complaint]:
        """Run deep analysis for one complaint.

        Returns:
            The updated complaint, or None if an analysis for the same
            complaint is already running
        """
        complaint = self.store.get(complaint_id)
        try:
            with self.analyzing.hold(complaint_id):
                analysis = await self.gateway.analyze(complaint.content)
                return self.store.set_analysis(complaint_id, analysis)
        except AlreadyInFlight:
            logger.info(f"Analysis already running for complaint {complaint_id}")
            return None

    async def search_resources(self, query: str) -> Optional[GroundingResult]:
        """Search for helplines and resources.

        The latest response to arrive is the one kept, whichever query
        it belongs to.
        """
        if not query or not query.strip():
            return None

        self.searching = True
        try:
            result = await self.gateway.search_resources(query)
            self.search_result = result
            return result
        finally:
            self.searching = False

    def _speech_text(self, target: str) -> str:
        if target in self.store:
            return self.store.get(target).content
        return target

    async def synthesize(self, target: str) -> Optional[SpeechPayload]:
        """Speech for a complaint id (its content) or for literal text."""
        audio = await self.gateway.synthesize_speech(self._speech_text(target))
        if audio is None:
            return None
        return SpeechPayload(audio=audio)

    async def read_aloud(self, target: str) -> bool:
        """Speak a complaint (by id) or literal text on the local device."""
        audio = await self.gateway.synthesize_speech(self._speech_text(target))
        if audio is None:
            return False
        return await self.player.play(audio)

    # ------------------------------------------------------------------
    # Assistant
    # ------------------------------------------------------------------

    @property
    def chat_messages(self) -> List[ChatMessage]:
        return list(self._chat)

    async def send_chat(self, text: str) -> Optional[ChatMessage]:
        """Send a message to the assistant and record its reply.

        The user message is appended before the call; the assistant sees
        the history up to, but not including, that message plus the
        message itself.
        """
        if not text or not text.strip():
            return None

        history = list(self._chat)
        self._chat.append(ChatMessage(role="user", text=text))

        reply_text = await self.gateway.chat(history, text)
        reply = ChatMessage(role="assistant", text=reply_text)
        self._chat.append(reply)
        return reply

    async def close(self) -> None:
        await self.wait_for_background()
        self.player.close()
