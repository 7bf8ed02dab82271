"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing. The pattern store is the
    only state the classifier owns, so one Services instance (and thus one
    set of per-owner learning locks) should be shared by all threads of a
    process.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is
                    only used for settings.
    """

    def __init__(self, config: Config, db_manager=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.categories import CategoryService
        from services.envelopes import EnvelopeService
        from services.patterns import PatternStore
        from services.transactions import TransactionService
        from categorization import EnvelopeClassifier

        self.categories = CategoryService(self.db_manager)
        self.envelopes = EnvelopeService(self.db_manager)
        self.transactions = TransactionService(self.db_manager)
        self.patterns = PatternStore(self.db_manager)
        self.classifier = EnvelopeClassifier(
            self.patterns,
            self.categories,
            self.envelopes,
            config.classification,
        )
