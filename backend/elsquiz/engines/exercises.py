"""Question Generator Engine

Generates multiple-choice quizzes from unit vocabulary and grammar examples.
Supports: definition, engToUz, uzToEng, gapfill, grammar, plus the
multi-unit Grand Test.

Randomness comes from an injectable `random.Random`; pass a seeded one to
get reproducible quizzes, otherwise every generator draws fresh randomness.
"""
import random
import re
from dataclasses import dataclass
from operator import attrgetter
from typing import Callable, Sequence, TypeVar

from elsquiz.core.config import settings
from elsquiz.core.errors import AppError, ErrorCode, Ok, Result, operation_not_allowed
from elsquiz.core.logging import engine_logger
from elsquiz.models import ExerciseKind, Unit, Word

log = engine_logger()

T = TypeVar("T")

BLANK = "______"
OPTIONS_PER_QUESTION = 4
DISTRACTORS_PER_QUESTION = OPTIONS_PER_QUESTION - 1
GRAMMAR_FILLERS = ("was", "were", "the", "a")
PLACEHOLDER_EXAMPLE_COUNT = 3

WORD_KINDS = frozenset({
    ExerciseKind.DEFINITION,
    ExerciseKind.ENG_TO_UZ,
    ExerciseKind.UZ_TO_ENG,
    ExerciseKind.GAPFILL,
})

# Which Word field becomes the option text for each word kind
OPTION_FIELD: dict[ExerciseKind, Callable[[Word], str]] = {
    ExerciseKind.DEFINITION: attrgetter("definition"),
    ExerciseKind.ENG_TO_UZ: attrgetter("translation"),
    ExerciseKind.UZ_TO_ENG: attrgetter("word"),
    ExerciseKind.GAPFILL: attrgetter("word"),
}

GAPFILL_TEMPLATES = (
    'The word "{word}" means "{definition}".',
    'In the text, "{word}" was used to describe a situation.',
    'The translation of "{word}" is "{translation}".',
    'To understand the passage, you need to know that "{word}" means.',
)

_TENSE_SWAPS = {"was": "were", "were": "was"}
_ARTICLE_SWAPS = {"the": "a", "a": "the"}


@dataclass(frozen=True, slots=True)
class Question:
    """One multiple-choice question. `options` holds `correct` exactly once."""
    text: str
    options: tuple[str, ...]
    correct: str
    kind: ExerciseKind
    subject: str | None = None

    def is_correct(self, option: str) -> bool:
        return option == self.correct


def _swap_words(sentence: str, swaps: dict[str, str]) -> str:
    """Swap whole words simultaneously, keeping a leading capital."""
    pattern = re.compile(r"\b(" + "|".join(swaps) + r")\b", re.IGNORECASE)

    def _replace(match: re.Match) -> str:
        found = match.group(0)
        swapped = swaps[found.lower()]
        return swapped.capitalize() if found[0].isupper() else swapped

    return pattern.sub(_replace, sentence)


def swap_tense(sentence: str) -> str:
    return _swap_words(sentence, _TENSE_SWAPS)


def swap_articles(sentence: str) -> str:
    return _swap_words(sentence, _ARTICLE_SWAPS)


def reverse_word_order(sentence: str) -> str:
    return " ".join(reversed(sentence.split()))


SENTENCE_CORRUPTIONS: tuple[Callable[[str], str], ...] = (swap_tense, swap_articles, reverse_word_order)


def _distinct_words(words: Sequence[Word]) -> list[Word]:
    """Drop repeated `word` entries, first occurrence wins."""
    seen: set[str] = set()
    pool = []
    for w in words:
        if w.word in seen:
            continue
        seen.add(w.word)
        pool.append(w)
    if len(pool) != len(words):
        log.warning("duplicate_words_dropped", dropped=len(words) - len(pool))
    return pool


def _as_kind(kind: ExerciseKind | str) -> ExerciseKind | None:
    try:
        return ExerciseKind(kind)
    except ValueError:
        return None


class QuestionGenerator:
    """Builds quizzes for the word kinds, grammar practice and the Grand Test."""

    __slots__ = ("_rng",)

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Fisher-Yates shuffle into a new list."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self._rng.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    # -------------------------------------------------------------------------
    # Word questions
    # -------------------------------------------------------------------------

    def generate(self, words: Sequence[Word], kind: ExerciseKind | str, count: int) -> list[Question]:
        """Generate up to `count` questions, one per distinct subject word.

        Args:
            words: Unit vocabulary
            kind: definition, engToUz, uzToEng or gapfill
            count: Requested size, clamped to the number of distinct words

        Returns:
            Questions in shuffle order; empty for grammar or unknown kinds
        """
        resolved = _as_kind(kind)
        if resolved not in WORD_KINDS:
            log.warning("unsupported_word_kind", kind=str(kind))
            return []

        pool = _distinct_words(words)
        count = max(0, min(count, len(pool)))
        if count and len(pool) < OPTIONS_PER_QUESTION:
            log.warning(
                "generation_underflow",
                error_code=ErrorCode.E5030_GENERATION_UNDERFLOW.name,
                kind=resolved.value,
                pool_size=len(pool),
                required=OPTIONS_PER_QUESTION,
            )

        subjects = self.shuffle(pool)[:count]
        questions = [self._word_question(subject, pool, resolved) for subject in subjects]
        log.debug("questions_generated", kind=resolved.value, count=len(questions), pool_size=len(pool))
        return questions

    def _word_question(self, subject: Word, pool: list[Word], kind: ExerciseKind) -> Question:
        value_of = OPTION_FIELD[kind]
        correct = value_of(subject)
        options = [correct]

        for candidate in self.shuffle([w for w in pool if w.word != subject.word]):
            if len(options) == OPTIONS_PER_QUESTION:
                break
            value = value_of(candidate)
            # Two words can share a translation; never show a second "correct" option
            if value not in options:
                options.append(value)

        return Question(
            text=self._prompt(subject, kind),
            options=tuple(self.shuffle(options)),
            correct=correct,
            kind=kind,
            subject=subject.word,
        )

    def _prompt(self, subject: Word, kind: ExerciseKind) -> str:
        if kind == ExerciseKind.DEFINITION:
            return f'What is the definition of "{subject.word}"?'
        if kind == ExerciseKind.ENG_TO_UZ:
            return f'Translate "{subject.word}" to Uzbek:'
        if kind == ExerciseKind.UZ_TO_ENG:
            return f'What is the English word for "{subject.translation}"?'
        template = self._rng.choice(GAPFILL_TEMPLATES)
        return template.format(word=BLANK, definition=subject.definition, translation=subject.translation)

    # -------------------------------------------------------------------------
    # Grammar questions
    # -------------------------------------------------------------------------

    def generate_grammar(
        self,
        structure: str,
        examples: Sequence[str] | None,
        count: int | None = None,
    ) -> list[Question]:
        """Generate grammar questions, one per example in order.

        Each example randomly becomes either a pick-the-correct-sentence
        question or a fill-the-blank question. Without usable examples,
        placeholder sentences are synthesized so this never fails.
        """
        count = settings.GRAMMAR_QUESTION_COUNT if count is None else count
        usable = [e.strip() for e in (examples or []) if e and e.strip()]
        if not usable:
            usable = [f"Example {n} with {structure}" for n in range(1, PLACEHOLDER_EXAMPLE_COUNT + 1)]
            log.info("grammar_examples_synthesized", structure=structure)

        shapes = (self._pick_sentence, self._fill_blank)
        questions = [
            self._rng.choice(shapes)(structure, example)
            for example in usable[:max(0, min(count, len(usable)))]
        ]
        log.debug("grammar_questions_generated", structure=structure, count=len(questions))
        return questions

    def _pick_sentence(self, structure: str, example: str) -> Question:
        variants: list[str] = []
        for corrupt in SENTENCE_CORRUPTIONS:
            variant = corrupt(example)
            if variant != example and variant not in variants:
                variants.append(variant)

        if len(variants) < DISTRACTORS_PER_QUESTION:
            log.debug("grammar_distractors_degraded", example=example, variants=len(variants))

        return Question(
            text=f'Which sentence correctly uses "{structure}"?',
            options=tuple(self.shuffle([example, *variants])),
            correct=example,
            kind=ExerciseKind.GRAMMAR,
        )

    def _fill_blank(self, structure: str, example: str) -> Question:
        words = example.split()
        idx = len(words) // 2
        missing = words[idx]
        text = " ".join([*words[:idx], BLANK, *words[idx + 1:]])
        options = [missing, *(f for f in GRAMMAR_FILLERS if f != missing)]

        return Question(
            text=text,
            options=tuple(self.shuffle(options)),
            correct=missing,
            kind=ExerciseKind.GRAMMAR,
            subject=missing,
        )

    # -------------------------------------------------------------------------
    # Grand Test
    # -------------------------------------------------------------------------

    def generate_grand_test(
        self,
        units: Sequence[Unit],
        kind: ExerciseKind | str = ExerciseKind.DEFINITION,
        size: int | None = None,
    ) -> Result[list[Question], AppError]:
        """Quiz over the pooled vocabulary of several units."""
        if len(units) < 2:
            return operation_not_allowed(
                "grand_test", "Grand Test requires multiple units", origin="generator"
            )
        if _as_kind(kind) not in WORD_KINDS:
            return operation_not_allowed(
                "grand_test", f"'{kind}' is not a word exercise", origin="generator"
            )

        pool = [w for unit in units for w in unit.words]
        size = settings.GRAND_TEST_DEFAULT_SIZE if size is None else size
        questions = self.generate(pool, kind, size)
        log.info("grand_test_generated", units=len(units), pool_size=len(pool), count=len(questions))
        return Ok(questions)


def generate_questions(
    words: Sequence[Word],
    kind: ExerciseKind | str,
    count: int,
    rng: random.Random | None = None,
) -> list[Question]:
    """Generate word questions with a fresh generator."""
    return QuestionGenerator(rng).generate(words, kind, count)


def generate_grammar_questions(
    structure: str,
    examples: Sequence[str] | None,
    count: int | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    return QuestionGenerator(rng).generate_grammar(structure, examples, count)
