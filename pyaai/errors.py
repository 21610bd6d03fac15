"""Errors raised by pyAAI. Every one of them aborts the run."""


class AaiError(Exception):
    pass


class InputError(AaiError):
    """No input files, or an input file that can't be used."""


class UnreadableFile(InputError):
    pass


class EmptyInput(InputError):
    pass


class AlignerInvocationError(AaiError):
    """The external search program is missing, failed, or wrote garbage."""


class MalformedRecord(AaiError):
    """A btab row that can't be turned into a HitRecord."""

    def __init__(self, row, reason):
        self.row = row
        self.reason = reason
        super().__init__(f"Malformed hit record ({reason}): {row!r}")
