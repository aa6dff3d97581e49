"""Audio encoding for transport and raw PCM decoding/playback for read-aloud."""
import asyncio
import base64
import binascii
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np

from config import config

logger = logging.getLogger(__name__)

# int16 full scale
PCM_SCALE = 32768.0


class AudioEncodingError(Exception):
    """Raised when a recording cannot be read or its payload cannot be decoded."""


@dataclass(frozen=True)
class AudioClip:
    """A finished recording as produced by the capture device."""

    data: bytes
    mime_type: str = "audio/wav"


AudioSource = Union[AudioClip, bytes, bytearray, memoryview, str, Path]


def strip_data_uri(payload: str) -> str:
    """Remove a `data:<mime>;base64,` prefix if present."""
    payload = payload.strip()
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    return payload


def encode_audio(source: AudioSource) -> str:
    """Encode a recording into a base64 transport string.

    Args:
        source: An AudioClip, raw bytes, or a path to an audio file

    Returns:
        Base64 text of the raw bytes, without any data URI prefix

    Raises:
        AudioEncodingError: If the source cannot be read
    """
    if isinstance(source, AudioClip):
        data = source.data
    elif isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
    elif isinstance(source, (str, Path)):
        try:
            data = Path(source).read_bytes()
        except OSError as e:
            raise AudioEncodingError(f"Could not read audio from {source}: {e}") from e
    else:
        raise AudioEncodingError(f"Unsupported audio source: {type(source).__name__}")

    return strip_data_uri(base64.b64encode(data).decode("ascii"))


def decode_audio(payload: str) -> bytes:
    """Inverse of encode_audio: base64 transport string back to raw bytes."""
    try:
        return base64.b64decode(strip_data_uri(payload), validate=True)
    except (binascii.Error, ValueError) as e:
        raise AudioEncodingError(f"Invalid base64 audio payload: {e}") from e


def decode_pcm(payload: str) -> np.ndarray:
    """Decode base64 raw PCM (16-bit signed little-endian) into float samples.

    Samples are normalized to [-1.0, 1.0] by dividing by 32768. A trailing
    odd byte cannot form a sample and is dropped.

    Raises:
        AudioEncodingError: If the payload is not valid base64
    """
    raw = decode_audio(payload)
    usable = len(raw) - (len(raw) % 2)
    samples = np.frombuffer(raw[:usable], dtype="<i2")
    return samples.astype(np.float32) / PCM_SCALE


class AudioPlayer:
    """Plays synthesized speech on the local output device.

    The output stream is opened on the first call to play() and reused
    afterwards. Failures are logged and never raised.
    """

    def __init__(
        self,
        sample_rate: int = config.PCM_SAMPLE_RATE,
        channels: int = config.PCM_CHANNELS
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self._stream = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def _open_stream(self):
        import sounddevice as sd

        stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32"
        )
        stream.start()
        return stream

    def _write(self, samples: np.ndarray) -> None:
        with self._lock:
            if self._stream is None:
                self._stream = self._open_stream()
                logger.info(f"Opened playback stream at {self.sample_rate} Hz")
            self._stream.write(samples.reshape(-1, self.channels))

    async def play(self, payload: Optional[str]) -> bool:
        """Decode a PCM payload and play it.

        Returns:
            True if samples were handed to the device, False otherwise
        """
        if not payload:
            return False

        try:
            samples = decode_pcm(payload)
            if samples.size == 0:
                logger.warning("Speech payload contained no samples")
                return False
            await asyncio.to_thread(self._write, samples)
            return True
        except Exception as e:
            logger.error(f"Error playing audio: {e}")
            return False

    def close(self) -> None:
        with self._lock:
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
