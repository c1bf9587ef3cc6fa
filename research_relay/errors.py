class RelayError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class MissingUploadError(RelayError):
    pass


class StagingError(RelayError):
    pass


class UpstreamError(RelayError):
    pass
