"""Playback of word and phoneme time windows through an injected player."""

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from phoneme_review.config import PlaybackConfig
from phoneme_review.models import ProcessedPhoneme, ProcessedWord


class AudioPlayer(Protocol):
    """Audio transport capability."""

    def play(self, start: float, end: float | None = None) -> None: ...

    def pause(self) -> None: ...

    def seek(self, position: float) -> None: ...

    def on_time_update(self, callback: Callable[[float], None]) -> None: ...


@dataclass(frozen=True)
class PlaybackWindow:
    start: float
    end: float | None


class PlaybackController:
    """Plays margins-widened windows of the loaded audio.

    Args:
        player: Audio transport.
        config: Playback margins.
        duration: Audio duration in seconds, when known.
    """

    def __init__(
        self,
        *,
        player: AudioPlayer,
        config: PlaybackConfig | None = None,
        duration: float | None = None,
    ) -> None:
        self._player = player
        self._config = config or PlaybackConfig()
        self.duration = duration
        self.current_time = 0.0
        player.on_time_update(self._on_time_update)

    def _on_time_update(self, position: float) -> None:
        self.current_time = position

    def play_from(
        self, start: float, end: float | None = None, margin: float = 0.0
    ) -> PlaybackWindow:
        """Play from ``start - margin`` to ``end + margin``.

        Start is clamped at 0 and end at the known duration.
        """
        window_start = max(0.0, start - margin)
        window_end = None
        if end is not None:
            limit = self.duration if self.duration and not math.isnan(self.duration) else math.inf
            window_end = min(limit, end + margin)

        self._player.play(window_start, window_end)
        return PlaybackWindow(start=window_start, end=window_end)

    def play_word(self, word: ProcessedWord) -> PlaybackWindow | None:
        if not word.is_aligned:
            logger.debug(f"Not playing unaligned word '{word.surface_text}'")
            return None
        return self.play_from(word.start, word.end, self._config.word_margin)

    def play_phoneme(self, phoneme: ProcessedPhoneme) -> PlaybackWindow:
        return self.play_from(phoneme.start, phoneme.end, self._config.phoneme_margin)

    def pause(self) -> None:
        self._player.pause()

    def stop(self) -> None:
        self._player.pause()
        self._player.seek(0.0)
        self.current_time = 0.0

    def seek_fraction(self, percent: float) -> float | None:
        """Seek to ``percent`` of the known duration; no-op without one."""
        if not self.duration or math.isnan(self.duration):
            return None
        position = (percent / 100.0) * self.duration
        self._player.seek(position)
        return position
