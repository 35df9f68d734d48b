"""
Microphone capture feeding the tuner engine.

Wraps a sounddevice InputStream whose callback hands every block straight
to TunerEngine.process. Also provides helpers for converting 16-bit PCM
into the normalized floats the engine expects.
"""

import logging

import numpy as np

from .constants import CHUNK_SIZE, PCM16_SCALE, SAMPLE_RATE
from .engine import TunerEngine

logger = logging.getLogger(__name__)


def pcm16_to_float(samples: np.ndarray) -> np.ndarray:
    """Convert int16 samples to floats in [-1, 1)."""
    return np.asarray(samples, dtype=np.int16).astype(np.float64) / PCM16_SCALE


def pcm16_bytes_to_float(data: bytes) -> np.ndarray:
    """
    Convert little-endian 16-bit PCM bytes to floats.

    A trailing odd byte is dropped.
    """
    usable = len(data) - (len(data) % 2)
    samples = np.frombuffer(data[:usable], dtype="<i2")
    return pcm16_to_float(samples)


class AudioCapture:
    """
    Live input stream bound to a TunerEngine.

    The engine session is started before the stream opens and stopped
    before the stream closes, so no block is analysed after stop().
    """

    def __init__(
        self,
        engine: TunerEngine,
        device: int | None = None,
        sample_rate: int = SAMPLE_RATE,
        block_size: int = CHUNK_SIZE,
    ):
        self.engine = engine
        self.device = device
        self.sample_rate = sample_rate
        self.block_size = block_size
        self._stream = None

    @property
    def running(self) -> bool:
        return self._stream is not None

    def start(self):
        """
        Start capturing.

        Raises:
            ConfigurationError: If the sample rate is not usable
            sounddevice.PortAudioError: If the device cannot be opened
        """
        import sounddevice as sd

        if self._stream is not None:
            return

        self.engine.start_session(self.sample_rate)
        stream = sd.InputStream(
            device=self.device,
            samplerate=self.sample_rate,
            blocksize=self.block_size,
            channels=1,
            dtype=np.float32,
            callback=self._audio_callback,
        )
        try:
            stream.start()
        except Exception:
            self.engine.stop_session()
            stream.close()
            raise
        self._stream = stream
        logger.info("Capture started on device %s at %d Hz", self.device, self.sample_rate)

    def stop(self):
        """Stop capturing; any block in flight is discarded."""
        self.engine.stop_session()
        if self._stream is None:
            return
        stream = self._stream
        self._stream = None
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("Capture stopped")

    def _audio_callback(self, indata, frames, time, status):
        """Audio callback - forward the first channel to the engine."""
        if status:
            logger.debug("Input stream status: %s", status)
        self.engine.process(indata[:, 0].copy())

    def __enter__(self) -> "AudioCapture":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
