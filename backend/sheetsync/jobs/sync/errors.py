class SyncError(Exception):
    """Run-level failure: the whole sheet run is reported as FAILED."""


class UnknownSheetError(SyncError):
    def __init__(self, sheet_key: str):
        super().__init__(f"Unknown sheet: {sheet_key}")
        self.sheet_key = sheet_key


class UpstreamFetchError(SyncError):
    """The sheet could not be read (network, auth, HTTP status)."""


class ColumnLayoutError(SyncError):
    """The header row no longer matches the registered column layout."""

    def __init__(self, problems: list[str], headers: list[str]):
        super().__init__("; ".join(problems))
        self.problems = problems
        self.headers = headers
