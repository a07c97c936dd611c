"""Exception hierarchy for drawcast."""


class DrawcastError(Exception):
    """Base error for drawcast."""

    pass


class TrainingError(DrawcastError):
    """Fitting a single model tier failed."""

    def __init__(self, tier: str, message: str):
        self.tier = tier
        super().__init__(f"{tier}: {message}")


class InferenceError(DrawcastError):
    """Selected model raised or returned a malformed distribution."""

    pass


class PersistenceConflict(DrawcastError):
    """Idempotent write found the record already present or resolved."""

    def __init__(self, issue_id: str):
        self.issue_id = issue_id
        super().__init__(f"record already exists or resolved: {issue_id}")


class FetchError(DrawcastError):
    """Network, HTTP status or payload-shape failure reaching the draw source."""

    pass
