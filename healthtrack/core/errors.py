class RecordsApiError(Exception):
    """The records API answered with a non-2xx status, or could not be reached (status_code None)."""

    def __init__(self, status_code: int | None, detail):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"records API error ({status_code}): {detail}")


class DialogStateError(RuntimeError):
    pass


class SubmissionInProgressError(DialogStateError):
    pass
