"""Tests for PCM conversion and the capture wrapper (no audio hardware)."""

import sys
import types

import numpy as np
import pytest

from chromatic_tuner.capture import AudioCapture, pcm16_bytes_to_float, pcm16_to_float
from chromatic_tuner.engine import TunerEngine
from tests.signals import generate_sine_wave


class FakeInputStream:
    """Stands in for sounddevice.InputStream."""

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.started = False
        self.closed = False
        FakeInputStream.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_sounddevice(monkeypatch):
    FakeInputStream.instances = []
    module = types.ModuleType("sounddevice")
    module.InputStream = FakeInputStream
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


class TestPcmConversion:

    def test_int16_array(self):
        samples = np.array([0, 16384, -32768, 32767], dtype=np.int16)
        np.testing.assert_allclose(pcm16_to_float(samples), [0.0, 0.5, -1.0, 32767 / 32768])

    def test_bytes_little_endian(self):
        data = np.array([0, -16384, 8192], dtype="<i2").tobytes()
        np.testing.assert_allclose(pcm16_bytes_to_float(data), [0.0, -0.5, 0.25])

    def test_trailing_odd_byte_dropped(self):
        data = np.array([16384], dtype="<i2").tobytes() + b"\x01"
        np.testing.assert_allclose(pcm16_bytes_to_float(data), [0.5])

    def test_empty(self):
        assert len(pcm16_bytes_to_float(b"")) == 0


class TestAudioCapture:

    def setup_method(self):
        self.engine = TunerEngine()

    def test_start_opens_mono_stream(self, fake_sounddevice):
        capture = AudioCapture(self.engine, device=3, sample_rate=48000, block_size=512)
        capture.start()

        stream = FakeInputStream.instances[-1]
        assert stream.started
        assert stream.kwargs["device"] == 3
        assert stream.kwargs["samplerate"] == 48000
        assert stream.kwargs["blocksize"] == 512
        assert stream.kwargs["channels"] == 1
        assert self.engine.is_active
        assert self.engine.config.sample_rate == 48000
        assert capture.running

    def test_callback_feeds_engine(self, fake_sounddevice):
        with AudioCapture(self.engine) as capture:
            callback = FakeInputStream.instances[-1].kwargs["callback"]
            signal = generate_sine_wave(440.0, 44100).astype(np.float32)
            for start in range(0, len(signal) - 1024 + 1, 1024):
                block = signal[start : start + 1024].reshape(-1, 1)
                callback(block, 1024, None, None)

            assert capture.running
            assert self.engine.latest_reading.note_name == "A"

    def test_stop_closes_stream_and_session(self, fake_sounddevice):
        capture = AudioCapture(self.engine)
        capture.start()
        stream = FakeInputStream.instances[-1]
        callback = stream.kwargs["callback"]

        capture.stop()
        assert stream.closed
        assert not capture.running
        assert not self.engine.is_active

        # A late callback after stop is ignored
        callback(np.ones((1024, 1), dtype=np.float32), 1024, None, None)
        assert self.engine.latest_reading.frequency == 0.0

    def test_stop_without_start(self, fake_sounddevice):
        AudioCapture(self.engine).stop()
        assert not self.engine.is_active
