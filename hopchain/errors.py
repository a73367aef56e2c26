class HopChainError(Exception):
    """Base class for every failure raised by the hop attempt core."""


class MissingContext(HopChainError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required context: {', '.join(missing)}")


class NoValidHops(HopChainError):
    def __init__(self, word: str):
        self.word = word
        super().__init__(f"No valid hops found for '{word}'")


class DuplicateSolve(HopChainError):
    def __init__(self, composite_key: str, existing_id: str | None = None):
        self.composite_key = composite_key
        self.existing_id = existing_id
        super().__init__(f"Solve already recorded for path {composite_key}")


class UpstreamUnavailable(HopChainError):
    """A collaborator the attempt cannot proceed without failed outright."""


class SolveConflict(HopChainError):
    """The solve store refused to overwrite an existing record."""
