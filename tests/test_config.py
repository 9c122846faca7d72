"""
Tests für die Analyse-Konfiguration.
"""

import pytest

from mdwave.core.config import MAX_FREQ_COUNT, AnalysisConfig


class TestDefaults:
    """Tests für Standardwerte."""

    def test_default_config(self):
        """Standard-Konfiguration ist gültig."""
        config = AnalysisConfig()

        assert config.window == "tukey"
        assert config.channel == "stereo"
        assert config.max_freq == 2000
        assert config.start_hz == 10.0
        assert config.end_hz is None
        assert config.tolerance == 3.0
        assert not config.invert
        assert not config.use_floor

    def test_end_hz_defaults_to_nyquist(self):
        """Ohne end_hz gilt die Nyquist-Frequenz."""
        assert AnalysisConfig().resolved_end_hz(44100) == 22050.0

    def test_end_hz_clamped(self):
        """end_hz über Nyquist wird begrenzt."""
        config = AnalysisConfig(end_hz=30000.0)

        assert config.resolved_end_hz(48000) == 24000.0
        assert config.resolved_end_hz(96000) == 30000.0


class TestValidation:
    """Tests für ungültige Werte."""

    @pytest.mark.parametrize("max_freq", [0, MAX_FREQ_COUNT + 1])
    def test_max_freq_range(self, max_freq):
        """Anzahl der Frequenzen muss im Bereich liegen."""
        with pytest.raises(ValueError):
            AnalysisConfig(max_freq=max_freq)

    def test_max_freq_limits(self):
        """Grenzwerte sind erlaubt."""
        AnalysisConfig(max_freq=1)
        AnalysisConfig(max_freq=MAX_FREQ_COUNT)

    def test_unknown_window(self):
        """Unbekannte Fensterfunktion wird abgelehnt."""
        with pytest.raises(ValueError):
            AnalysisConfig(window="blackman")

    def test_unknown_channel(self):
        """Unbekannter Kanal wird abgelehnt."""
        with pytest.raises(ValueError):
            AnalysisConfig(channel="mono")

    def test_start_hz_too_low(self):
        """Startfrequenz unter 1 Hz wird abgelehnt."""
        with pytest.raises(ValueError):
            AnalysisConfig(start_hz=0.5)

    def test_end_below_twice_start(self):
        """end_hz muss mindestens doppelt so hoch wie start_hz sein."""
        with pytest.raises(ValueError):
            AnalysisConfig(start_hz=1000.0, end_hz=1500.0)

    def test_negative_tolerance(self):
        """Negative Toleranz wird abgelehnt."""
        with pytest.raises(ValueError):
            AnalysisConfig(tolerance=-1.0)


class TestFromMapping:
    """Tests für Konfiguration aus einem Dictionary."""

    def test_values_applied(self):
        """Bekannte Schlüssel werden übernommen."""
        config = AnalysisConfig.from_mapping({"max_freq": 500, "window": "hann", "invert": True})

        assert config.max_freq == 500
        assert config.window == "hann"
        assert config.invert

    def test_none_uses_default(self):
        """None fällt auf den Standardwert zurück."""
        config = AnalysisConfig.from_mapping({"max_freq": None, "channel": None})

        assert config.max_freq == 2000
        assert config.channel == "stereo"

    def test_unknown_key(self):
        """Unbekannte Schlüssel werden abgelehnt."""
        with pytest.raises(ValueError, match="fft_size"):
            AnalysisConfig.from_mapping({"fft_size": 2048})
