"""
Error taxonomy for a monitoring run.
Fatal conditions raise these; recoverable ones are absorbed where they occur.
"""


class MonitorError(Exception):
    """Base class for conditions that abort a monitoring run."""


class FetchError(MonitorError):

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class AssetNotFoundError(MonitorError):

    def __init__(self, page_url: str):
        self.page_url = page_url
        super().__init__(f"Could not find main JS file reference in {page_url}")
