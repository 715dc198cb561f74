"""Shared fixtures: vocabulary, learner, a manual timer and a recording reporter."""
import json

import pytest

from elsquiz.core.errors import storage_unavailable
from elsquiz.core.storage import MemoryKeyValueStore
from elsquiz.engines.exercises import Question
from elsquiz.engines.progress import ProgressTracker
from elsquiz.models import ExerciseKind, Learner, ResultSummary, Word


class ManualHandle:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Timer that only fires when the test says so."""

    def __init__(self):
        self.handles: list[ManualHandle] = []

    def call_later(self, delay, callback):
        handle = ManualHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            live = self.live
            if not live:
                return
            handle = live[0]
            handle.fired = True
            handle.callback()


class RecordingReporter:
    def __init__(self):
        self.summaries: list[ResultSummary] = []

    def dispatch(self, summary: ResultSummary) -> None:
        self.summaries.append(summary)


class ExplodingReporter:
    def dispatch(self, summary: ResultSummary) -> None:
        raise RuntimeError("relay is down")


@pytest.fixture
def words() -> list[Word]:
    return [
        Word(word="shore", definition="the land along the edge of a sea", translation="qirg'oq"),
        Word(word="narrow", definition="small in width", translation="tor"),
        Word(word="keeper", definition="a person who looks after a place", translation="qo'riqchi"),
        Word(word="storm", definition="violent weather with strong wind", translation="bo'ron"),
        Word(word="wave", definition="a raised line of moving water", translation="to'lqin"),
    ]


@pytest.fixture
def many_words() -> list[Word]:
    return [
        Word(word=f"word{i}", definition=f"meaning number {i}", translation=f"tarjima {i}")
        for i in range(12)
    ]


@pytest.fixture
def learner() -> Learner:
    return Learner(name="Aziza", surname="Karimova", group="B2-07")


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def progress(store) -> ProgressTracker:
    return ProgressTracker(store, pass_threshold=70)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def questions() -> list[Question]:
    return [
        Question(
            text=f"Question {i}?",
            options=(f"right{i}", f"wrong{i}a", f"wrong{i}b", f"wrong{i}c"),
            correct=f"right{i}",
            kind=ExerciseKind.DEFINITION,
            subject=f"word{i}",
        )
        for i in range(5)
    ]


@pytest.fixture
def units_dir(tmp_path):
    """Units index with one JSON unit, one YAML unit, a locked and a broken entry."""
    index = {
        "availableUnits": [
            {
                "id": 1,
                "title": "The Old Lighthouse",
                "status": "available",
                "file": "unit-1.json",
                "grammarStructure": "Past Simple (was/were)",
                "grammarExamples": ["The lighthouse was very old.", "The keepers were brave men."],
            },
            {"id": 2, "title": "A Day at the Market", "status": "available", "file": "unit-2.yaml"},
            {"id": 3, "title": "Journey to the Mountains", "status": "locked", "file": "unit-3.json"},
            {"id": 4, "title": "Broken", "status": "available", "file": "unit-4.json"},
        ]
    }
    (tmp_path / "units-index.json").write_text(json.dumps(index), encoding="utf-8")
    (tmp_path / "unit-1.json").write_text(json.dumps({
        "id": 1,
        "title": "The Old Lighthouse",
        "text": "On a rocky island stood an old lighthouse.",
        "words": [
            {"word": "shore", "definition": "the land along the edge of a sea", "translation": "qirg'oq"},
            {"word": "keeper", "definition": "a person who looks after a place", "translation": "qo'riqchi"},
        ],
    }), encoding="utf-8")
    (tmp_path / "unit-2.yaml").write_text(
        "id: 2\n"
        "title: A Day at the Market\n"
        "words:\n"
        "  - word: basket\n"
        "    definition: a container for carrying things\n"
        "    translation: savat\n",
        encoding="utf-8",
    )
    (tmp_path / "unit-3.json").write_text(json.dumps({"id": 3, "title": "Locked", "words": []}), encoding="utf-8")
    (tmp_path / "unit-4.json").write_text("{ this is not json", encoding="utf-8")
    return tmp_path


class BrokenStore:
    """Store whose backend is gone."""

    def get(self, key):
        return storage_unavailable("disk full", key=key)

    def set(self, key, value):
        return storage_unavailable("disk full", key=key)

    def delete(self, key):
        return storage_unavailable("disk full", key=key)
