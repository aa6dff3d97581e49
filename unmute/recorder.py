"""Microphone capture for spoken complaints."""
import io
import logging
import threading
import wave
from typing import List, Optional

import numpy as np

from audio_codec import AudioClip
from config import config

logger = logging.getLogger(__name__)


class MicrophoneUnavailable(Exception):
    """Raised when the input device cannot be opened."""


class Recorder:
    """Records mono 16-bit audio and hands back a WAV clip on stop()."""

    def __init__(self, samplerate: int = None, channels: int = 1, device: Optional[int] = None):
        self.samplerate = samplerate or config.RECORD_SAMPLE_RATE
        self.channels = channels
        self.device = device
        self.stream = None
        self._chunks: List[np.ndarray] = []
        self._lock = threading.Lock()

    def _open_stream(self, callback):
        import sounddevice as sd

        return sd.InputStream(
            device=self.device,
            samplerate=self.samplerate,
            channels=self.channels,
            dtype="int16",
            callback=callback,
        )

    def start(self) -> None:
        """Start recording.

        Raises:
            MicrophoneUnavailable: If the microphone cannot be opened
        """
        if self.stream:
            return

        with self._lock:
            self._chunks = []

        def callback(indata, frames, time_info, status):  # type: ignore[no-untyped-def]
            if status:
                logger.debug(f"Input stream status: {status}")
            with self._lock:
                self._chunks.append(indata.copy())

        try:
            stream = self._open_stream(callback)
            stream.start()
        except Exception as e:
            logger.error(f"Error accessing microphone: {e}")
            raise MicrophoneUnavailable(
                "Could not access microphone. Please check permissions."
            ) from e

        self.stream = stream

    def stop(self) -> AudioClip:
        """Stop recording and return the captured audio as a WAV clip."""
        if self.stream:
            self.stream.stop()
            self.stream.close()
            self.stream = None

        with self._lock:
            chunks, self._chunks = self._chunks, []

        frames = np.concatenate(chunks) if chunks else np.zeros((0, self.channels), dtype=np.int16)
        return AudioClip(data=self._to_wav(frames), mime_type="audio/wav")

    def is_recording(self) -> bool:
        return self.stream is not None

    def _to_wav(self, frames: np.ndarray) -> bytes:
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(2)  # int16
            wf.setframerate(self.samplerate)
            wf.writeframes(frames.astype("<i2").tobytes())
        return buf.getvalue()
