class ContractExtractionError(ValueError):
    """Raised when a document's contract sections are ambiguous or malformed."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        summary = "; ".join(self.issues) if self.issues else "unknown extraction failure"
        super().__init__(f"Contract extraction failed: {summary}")


class BindingError(RuntimeError):
    """Raised at setup time when a handler cannot be bound to a route."""
