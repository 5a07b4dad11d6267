"""Unit tests for the analyser graph and its rolling sample buffer."""

import numpy as np
import pytest
from pubsub import pub

from impactsync.audio import AnalyserGraph, RollingSampleBuffer, peak_amplitude
from impactsync.audio.analyser import MIN_DECIBELS


@pytest.mark.unit
class TestRollingSampleBuffer:

    def test_starts_silent(self):
        buffer = RollingSampleBuffer(8)

        np.testing.assert_array_equal(buffer.get_samples(), np.zeros(8))
        assert buffer.total_samples == 0

    def test_partial_fill_keeps_order(self):
        buffer = RollingSampleBuffer(5)
        buffer.add_samples(np.array([0.1, 0.2]))
        buffer.add_samples(np.array([0.3]))

        np.testing.assert_allclose(buffer.get_samples(), [0, 0, 0.1, 0.2, 0.3], rtol=1e-6)
        assert buffer.total_samples == 3

    def test_overflow_keeps_most_recent(self):
        buffer = RollingSampleBuffer(3)
        buffer.add_samples(np.arange(10, dtype=np.float32))

        np.testing.assert_array_equal(buffer.get_samples(), [7, 8, 9])
        assert buffer.total_samples == 10

    def test_returns_copy(self):
        buffer = RollingSampleBuffer(3)
        window = buffer.get_samples()
        window[:] = 1.0

        assert buffer.get_samples().max() == 0.0

    def test_empty_add_is_ignored(self):
        buffer = RollingSampleBuffer(3)
        buffer.add_samples(np.array([]))

        assert buffer.total_samples == 0

    def test_clear(self):
        buffer = RollingSampleBuffer(3)
        buffer.add_samples(np.ones(3))
        buffer.clear()

        assert buffer.get_samples().max() == 0.0
        assert buffer.total_samples == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RollingSampleBuffer(0)


@pytest.mark.unit
class TestAnalyserGraph:

    def test_receives_after_connect(self, audio_stream, publish):
        graph = AnalyserGraph(audio_stream.topic)
        publish(0.5)
        assert graph.frames_received == 0

        graph.connect()
        publish(0.25)

        assert graph.frames_received == 1
        assert peak_amplitude(graph.get_time_domain_data()) == pytest.approx(0.25)
        graph.close()

    def test_close_stops_updates(self, audio_stream, publish):
        graph = AnalyserGraph(audio_stream.topic)
        graph.connect()
        publish(0.25)
        graph.close()

        publish(0.75)

        assert graph.frames_received == 1
        assert peak_amplitude(graph.get_time_domain_data()) == pytest.approx(0.25)

    def test_close_is_idempotent(self, audio_stream):
        graph = AnalyserGraph(audio_stream.topic)
        graph.connect()

        graph.close()
        graph.close()

        assert graph.closed is True
        assert graph.connected is False

    def test_close_without_connect(self, audio_stream):
        graph = AnalyserGraph(audio_stream.topic)
        graph.close()

        assert graph.closed is True

    def test_cannot_reconnect_after_close(self, audio_stream):
        graph = AnalyserGraph(audio_stream.topic)
        graph.close()

        with pytest.raises(RuntimeError):
            graph.connect()

    def test_context_manager(self, audio_stream, publish):
        with AnalyserGraph(audio_stream.topic) as graph:
            publish(0.5)
            assert graph.frames_received == 1

        assert graph.closed is True
        publish(0.5)
        assert graph.frames_received == 1

    def test_context_manager_releases_on_error(self, audio_stream):
        with pytest.raises(KeyError):
            with AnalyserGraph(audio_stream.topic) as graph:
                raise KeyError("boom")

        assert graph.closed is True

    def test_close_leaves_other_listeners(self, audio_stream, make_event):
        received = []

        def recorder(event):
            received.append(event.chunk_id)

        pub.subscribe(recorder, audio_stream.topic)
        graph = AnalyserGraph(audio_stream.topic)
        graph.connect()
        graph.close()

        audio_stream.publish_audio_event(make_event(0.1))

        assert len(received) == 1

    def test_requires_topic(self):
        with pytest.raises(ValueError):
            AnalyserGraph("")

    def test_frequency_bin_count(self, audio_stream):
        graph = AnalyserGraph(audio_stream.topic, fft_size=512)

        assert graph.frequency_bin_count == 256
        assert graph.get_float_frequency_data().shape == (256,)
        assert graph.bin_frequency(1) == pytest.approx(48000 / 512)

    def test_silence_has_no_peak_frequency(self, audio_stream):
        graph = AnalyserGraph(audio_stream.topic)

        spectrum = graph.get_float_frequency_data()

        assert np.all(spectrum == MIN_DECIBELS)
        assert graph.peak_frequency() is None

    def test_sine_peak_frequency(self, audio_stream, publish):
        graph = AnalyserGraph(audio_stream.topic)
        graph.connect()
        t = np.arange(2048) / 48000
        publish(samples=0.5 * np.sin(2 * np.pi * 3000 * t))

        # 3000 Hz falls exactly on bin 128 of a 2048-point FFT at 48 kHz
        assert graph.peak_frequency() == pytest.approx(3000.0)
        graph.close()

    def test_smoothing_converges(self, audio_stream, publish):
        graph = AnalyserGraph(audio_stream.topic, smoothing_time_constant=0.3)
        graph.connect()
        t = np.arange(2048) / 48000
        publish(samples=0.5 * np.sin(2 * np.pi * 3000 * t))

        first = graph.get_float_frequency_data()[128]
        second = graph.get_float_frequency_data()[128]
        third = graph.get_float_frequency_data()[128]

        assert first < second < third
        # Smoothed magnitude goes 0.7 -> 0.91 -> 0.973 of the frame's magnitude
        assert third - first == pytest.approx(20 * np.log10(0.973 / 0.7), abs=0.01)
        graph.close()

    def test_no_smoothing(self, audio_stream, publish):
        graph = AnalyserGraph(audio_stream.topic, smoothing_time_constant=0.0)
        graph.connect()
        publish(samples=0.5 * np.sin(2 * np.pi * 3000 * np.arange(2048) / 48000))

        first = graph.get_float_frequency_data()
        second = graph.get_float_frequency_data()

        np.testing.assert_allclose(first, second)
        graph.close()

    def test_peak_amplitude(self):
        assert peak_amplitude(np.array([])) == 0.0
        assert peak_amplitude(np.array([0.1, -0.6, 0.3])) == pytest.approx(0.6)
