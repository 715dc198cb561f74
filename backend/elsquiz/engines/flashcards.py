"""Flashcard deck for studying a unit's vocabulary before the quizzes."""
import random
from typing import Sequence

from elsquiz.core.logging import engine_logger
from elsquiz.engines.exercises import QuestionGenerator
from elsquiz.models import Word

log = engine_logger()


class FlashcardDeck:
    """Shuffled walk through unit words. `finished` once past the last card."""

    __slots__ = ("_words", "_generator", "_cards", "index")

    def __init__(self, words: Sequence[Word], rng: random.Random | None = None):
        self._words = list(words)
        self._generator = QuestionGenerator(rng)
        self._cards: list[Word] = []
        self.index = 0
        self.reset()

    def __len__(self) -> int:
        return len(self._cards)

    @property
    def cards(self) -> tuple[Word, ...]:
        return tuple(self._cards)

    @property
    def current(self) -> Word | None:
        return self._cards[self.index] if self.index < len(self._cards) else None

    @property
    def finished(self) -> bool:
        return self.index >= len(self._cards)

    @property
    def position_label(self) -> str:
        return f"Card {min(self.index + 1, len(self._cards))} / {len(self._cards)}"

    def next(self) -> Word | None:
        if not self.finished:
            self.index += 1
        if self.finished:
            log.debug("flashcards_finished", cards=len(self._cards))
        return self.current

    def previous(self) -> Word | None:
        if self.index > 0:
            self.index -= 1
        return self.current

    def reset(self) -> None:
        """Reshuffle and start over."""
        self._cards = self._generator.shuffle(self._words)
        self.index = 0
