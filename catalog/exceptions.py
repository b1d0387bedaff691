"""
Errors raised by the catalog query layer.
"""


class BackendUnavailableError(Exception):
    """The catalog database could not serve a query (connection lost, file missing, locked...)."""

    def __init__(self, message: str, query: str = ""):
        super().__init__(message)
        self.query = query
