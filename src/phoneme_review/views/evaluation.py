"""Reviewer evaluations of processed phonemes.

The evaluation store and the ``evaluation`` field of each processed phoneme
are two views of the same fact; every mutation goes through
``EvaluationBook`` so that they never diverge.
"""

from collections.abc import Iterator

from loguru import logger

from phoneme_review.models import (
    Evaluation,
    EvaluationStats,
    ProcessedPhoneme,
    ProcessedWord,
)


class EvaluationStore:
    """Mapping from phoneme id to correctness for one loaded document."""

    def __init__(self) -> None:
        self._verdicts: dict[str, bool] = {}

    def get(self, phoneme_id: str) -> bool | None:
        return self._verdicts.get(phoneme_id)

    def set(self, phoneme_id: str, is_correct: bool) -> None:
        self._verdicts[phoneme_id] = is_correct

    def remove(self, phoneme_id: str) -> None:
        self._verdicts.pop(phoneme_id, None)

    def clear(self) -> None:
        self._verdicts.clear()

    def items(self) -> list[tuple[str, bool]]:
        return list(self._verdicts.items())

    def __contains__(self, phoneme_id: object) -> bool:
        return phoneme_id in self._verdicts

    def __len__(self) -> int:
        return len(self._verdicts)


class EvaluationBook:
    """Evaluation state over the processed words of one processing pass.

    Args:
        words: Processed words whose phonemes are labeled.
        store: Store to keep in sync, a new empty one when omitted.
    """

    def __init__(self, *, words: list[ProcessedWord], store: EvaluationStore | None = None) -> None:
        self._words = words
        self._store = store if store is not None else EvaluationStore()
        self._phonemes: dict[str, ProcessedPhoneme] = {
            phoneme.id: phoneme for word in words for phoneme in word.phonemes
        }

    @property
    def store(self) -> EvaluationStore:
        return self._store

    @property
    def words(self) -> list[ProcessedWord]:
        return self._words

    def find(self, phoneme_id: str) -> ProcessedPhoneme | None:
        return self._phonemes.get(phoneme_id)

    def mark_phoneme(self, phoneme_id: str, is_correct: bool) -> bool:
        """Record a verdict for a phoneme.

        Args:
            phoneme_id: Identifier of the phoneme.
            is_correct: Whether the phoneme was pronounced correctly.

        Returns:
            True if the phoneme exists in the current pass.
        """
        phoneme = self._phonemes.get(phoneme_id)
        if phoneme is None:
            logger.warning(f"Cannot mark unknown phoneme {phoneme_id}")
            return False

        self._store.set(phoneme_id, is_correct)
        phoneme.evaluation = Evaluation.from_bool(is_correct)
        return True

    def clear_evaluation(self, phoneme_id: str) -> bool:
        """Reset a phoneme's verdict to unset.

        Returns:
            True if the phoneme exists in the current pass.
        """
        phoneme = self._phonemes.get(phoneme_id)
        if phoneme is None:
            logger.warning(f"Cannot clear unknown phoneme {phoneme_id}")
            return False

        self._store.remove(phoneme_id)
        phoneme.evaluation = Evaluation.UNSET
        return True

    def restore_from_store(self) -> int:
        """Apply stored verdicts to phonemes with matching ids.

        Entries whose id is not part of the current pass are dropped from the
        store.

        Returns:
            Number of verdicts restored.
        """
        restored = 0
        for phoneme_id, is_correct in self._store.items():
            phoneme = self._phonemes.get(phoneme_id)
            if phoneme is None:
                self._store.remove(phoneme_id)
                continue
            phoneme.evaluation = Evaluation.from_bool(is_correct)
            restored += 1

        logger.debug(f"Restored {restored} evaluations, store holds {len(self._store)}")
        return restored

    def evaluated(self) -> Iterator[tuple[ProcessedWord, ProcessedPhoneme]]:
        """Yield (word, phoneme) pairs with a verdict, in textual order."""
        for word in self._words:
            for phoneme in word.phonemes:
                if phoneme.evaluation is not Evaluation.UNSET:
                    yield word, phoneme

    def stats(self) -> EvaluationStats:
        return compute_stats(words=self._words)


def compute_stats(*, words: list[ProcessedWord]) -> EvaluationStats:
    """Partition all phonemes of ``words`` by verdict."""
    correct = 0
    incorrect = 0
    not_evaluated = 0

    for word in words:
        for phoneme in word.phonemes:
            if phoneme.evaluation is Evaluation.CORRECT:
                correct += 1
            elif phoneme.evaluation is Evaluation.INCORRECT:
                incorrect += 1
            else:
                not_evaluated += 1

    return EvaluationStats(
        total=correct + incorrect + not_evaluated,
        correct=correct,
        incorrect=incorrect,
        not_evaluated=not_evaluated,
    )
