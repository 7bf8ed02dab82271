"""Pattern-based envelope suggestions and feedback learning.

Suggestions come from learned patterns (see matching.py). Every pattern that
fires on a transaction adds its confidence to its category's score; the
scores are normalized to sum to 1.0 and handed to the envelope whose name
contains the category name.

Learning runs on confirmed (or rejected) categorizations. Patterns that fire
get their counters bumped; when nothing fires on a confirmed transaction, a
merchant, a temporal and an amount pattern are created from it.
"""

import sqlite3
from typing import Dict, List, Optional
from config import ClassifierSettings
from errors import PatternExistsError, ValidationError
from matching import applies, match_envelope, pattern_value_for
from models.pattern import PatternKind
from models.transaction import Transaction, validate_transaction
from logger import get_logger

logger = get_logger()


class EnvelopeClassifier:
    """Suggests envelopes for transactions and learns from feedback.

    Args:
        patterns: PatternStore holding the learned patterns.
        categories: CategoryService used to resolve category names.
        envelopes: EnvelopeService used to find candidate envelopes.
        settings: Classifier tuning (minimum pattern confidence).
    """

    def __init__(self, patterns, categories, envelopes, settings: ClassifierSettings):
        self.patterns = patterns
        self.categories = categories
        self.envelopes = envelopes
        self.settings = settings

    def suggest_envelopes(self, transaction: Transaction, owner_id: int) -> Dict[int, float]:
        """Rank the owner's envelopes for a transaction.

        The transaction does not have to be stored. Nothing is written.

        Args:
            transaction: Transaction to classify.
            owner_id: User whose patterns, categories and envelopes are used.

        Returns:
            Mapping of envelope_id to normalized score, highest first. Empty
            when no confident pattern fires or no envelope matches.

        Raises:
            ValidationError: If the transaction is malformed.
            sqlite3.Error: If the pattern store can't be read.
        """
        validate_transaction(transaction)

        try:
            patterns = self.patterns.find_confident(
                owner_id, self.settings.min_confidence
            )
        except sqlite3.Error as e:
            logger.error(f"Could not load patterns for owner {owner_id}: {e}")
            raise

        category_scores: Dict[int, float] = {}
        for pattern in patterns:
            if applies(pattern, transaction):
                category_scores[pattern.category_id] = (
                    category_scores.get(pattern.category_id, 0.0) + pattern.confidence
                )

        total = sum(category_scores.values())
        if total <= 0:
            logger.debug(f"No confident pattern fired for transaction {transaction.id}")
            return {}

        categories = {c.id: c for c in self.categories.find_by_owner(owner_id)}
        envelopes = self.envelopes.find_by_owner(owner_id)

        suggestions: Dict[int, float] = {}
        for category_id in sorted(category_scores):
            category = categories.get(category_id)
            if category is None:
                continue

            envelope = match_envelope(category, envelopes)
            if envelope is None:
                logger.debug(f"No envelope matches category '{category.name}'")
                continue

            # Two categories can land in the same envelope; their shares add up.
            suggestions[envelope.id] = (
                suggestions.get(envelope.id, 0.0) + category_scores[category_id] / total
            )

        logger.debug(
            f"Transaction {transaction.id}: {len(category_scores)} categories scored, "
            f"{len(suggestions)} envelopes suggested"
        )
        return dict(sorted(suggestions.items(), key=lambda item: (-item[1], item[0])))

    def learn_from_transaction(
        self, transaction: Transaction, was_correct: bool, owner_id: int
    ) -> None:
        """Update pattern statistics from a categorization outcome.

        Every owner pattern that fires gets match_count + 1, and correct_count
        + 1 if was_correct, regardless of which category it votes for. If no
        pattern fires and the categorization was correct, new patterns are
        created from the transaction for its category_id.

        Pattern creation is best-effort: failures are logged, never raised.

        Raises:
            ValidationError: If the transaction is malformed.
            sqlite3.Error: If patterns can't be read or counted.
        """
        validate_transaction(transaction)

        with self.patterns.lock_for(owner_id):
            fired = [
                pattern
                for pattern in self.patterns.find_by_owner(owner_id)
                if applies(pattern, transaction)
            ]

            for pattern in fired:
                self.patterns.record_match(pattern.id, was_correct)

            if fired:
                logger.debug(
                    f"Transaction {transaction.id}: {len(fired)} pattern(s) updated "
                    f"(correct={was_correct})"
                )
            elif was_correct:
                self._create_patterns_from_transaction(transaction, owner_id)

    def auto_categorize(
        self, transactions: List[Transaction], owner_id: int
    ) -> Dict[str, Optional[int]]:
        """Pick the top envelope for each transaction of an import batch.

        Malformed transactions are logged and left without a suggestion so
        one bad row doesn't block the rest of the batch.

        Returns:
            Mapping of transaction_id to the best envelope_id, or None when
            there is no confident suggestion.
        """
        results: Dict[str, Optional[int]] = {}
        for transaction in transactions:
            try:
                suggestions = self.suggest_envelopes(transaction, owner_id)
            except ValidationError as e:
                logger.warning(f"Skipping auto-categorization: {e}")
                results[transaction.id] = None
                continue
            results[transaction.id] = next(iter(suggestions), None)

        categorized = sum(1 for envelope_id in results.values() if envelope_id is not None)
        logger.info(
            f"Auto-categorized {categorized}/{len(transactions)} transactions"
        )
        return results

    def _create_patterns_from_transaction(
        self, transaction: Transaction, owner_id: int
    ) -> None:
        if transaction.category_id is None:
            logger.warning(
                f"Transaction {transaction.id} has no category, no patterns created"
            )
            return

        category = self.categories.find(transaction.category_id)
        if category is None or category.owner_id != owner_id:
            logger.warning(
                f"Category {transaction.category_id} not found for owner {owner_id}, "
                "no patterns created"
            )
            return

        for kind in PatternKind:
            value = pattern_value_for(kind, transaction)
            try:
                self.patterns.create(value, kind, category.id)
                logger.debug(f"Created {kind.value} pattern '{value}' for '{category.name}'")
            except PatternExistsError:
                logger.debug(f"{kind.value} pattern '{value}' already exists")
            except (ValidationError, sqlite3.Error) as e:
                logger.warning(f"Could not create {kind.value} pattern '{value}': {e}")
