"""PCM16 audio helpers for voice mode.

Outbound: float32 microphone samples -> 16-bit little-endian PCM -> base64 blob
tagged ``audio/pcm;rate=16000``.
Inbound: base64 PCM16 from the assistant -> per-channel float32 samples,
scheduled back to back by PlaybackScheduler so buffers never overlap.

The voice transport itself is not implemented; these helpers only cover the
encoding and scheduling contract.
"""

import base64
from dataclasses import dataclass

import numpy as np


INPUT_SAMPLE_RATE = 16000
OUTPUT_SAMPLE_RATE = 24000
INPUT_MIME_TYPE = f"audio/pcm;rate={INPUT_SAMPLE_RATE}"

_PCM16 = np.dtype("<i2")


@dataclass(frozen=True)
class AudioBlob:
    data: str
    mime_type: str = INPUT_MIME_TYPE


@dataclass(frozen=True)
class DecodedAudio:
    """Float32 samples in [-1.0, 1.0), shape (num_channels, frames)."""

    channels: np.ndarray
    sample_rate: int

    @property
    def num_channels(self) -> int:
        return self.channels.shape[0]

    @property
    def frames(self) -> int:
        return self.channels.shape[1]

    @property
    def duration(self) -> float:
        return self.frames / self.sample_rate


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode(data: str) -> bytes:
    return base64.b64decode(data)


def create_blob(samples: np.ndarray, sample_rate: int = INPUT_SAMPLE_RATE) -> AudioBlob:
    """Convert float samples to a base64 PCM16 blob.

    Samples are scaled by 32768 and clipped to the int16 range, so 1.0 maps to
    32767 instead of wrapping around.
    """
    scaled = np.asarray(samples, dtype=np.float32) * 32768.0
    pcm = np.clip(scaled, -32768, 32767).astype(_PCM16)
    return AudioBlob(data=encode(pcm.tobytes()), mime_type=f"audio/pcm;rate={sample_rate}")


def decode_audio_data(data: bytes, sample_rate: int = OUTPUT_SAMPLE_RATE, num_channels: int = 1) -> DecodedAudio:
    """Decode interleaved PCM16 bytes into per-channel float32 samples.

    A trailing odd byte or incomplete frame is dropped.

    Raises:
        ValueError: If num_channels or sample_rate is not positive.
    """
    if num_channels < 1 or sample_rate < 1:
        raise ValueError(f"num_channels and sample_rate must be positive, got {num_channels}, {sample_rate}")

    usable = len(data) - len(data) % (2 * num_channels)
    pcm = np.frombuffer(data[:usable], dtype=_PCM16)
    frames = pcm.reshape(-1, num_channels).T.astype(np.float32) / 32768.0
    return DecodedAudio(channels=frames, sample_rate=sample_rate)


class PlaybackScheduler:
    """Assigns non-overlapping start times to inbound audio buffers.

    Each buffer starts at max(end of the previously scheduled buffer, now), so
    start times never decrease and a buffer arriving while another plays is
    queued directly after it.
    """

    def __init__(self) -> None:
        self.next_start_time = 0.0

    def schedule(self, duration: float, current_time: float) -> float:
        """Return the start time for a buffer of `duration` seconds."""
        start = max(self.next_start_time, current_time)
        self.next_start_time = start + duration
        return start

    def reset(self) -> None:
        """Forget queued playback, e.g. when the assistant is interrupted."""
        self.next_start_time = 0.0
