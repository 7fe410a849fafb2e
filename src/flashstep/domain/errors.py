"""Exception hierarchy for flashstep."""


class FlashstepError(Exception):
    """Base class for every error raised by flashstep."""


class ContractViolation(FlashstepError, ValueError):
    """
    The caller broke an API contract.

    Raised immediately and never coerced: it means there is a bug on the
    calling side (bad rating, bad limit, reused phase...).
    """


class InvalidRatingError(ContractViolation):
    def __init__(self, value: object):
        super().__init__(f"Invalid rating {value!r}; expected one of 1, 2, 3, 4")
        self.value = value


class PhaseFinishedError(ContractViolation):
    def __init__(self, phase_id: str):
        super().__init__(f"Phase {phase_id} is already finished")
        self.phase_id = phase_id


class CardStoreError(FlashstepError):
    """A card store adapter could not read or write its backing data."""
