from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for failures the pipeline reports to its caller."""

    status_code = 500
    code = "pipeline_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class InputRejectedError(PipelineError):
    status_code = 400
    code = "input_rejected"


class UnreadableDocumentError(PipelineError):
    status_code = 422
    code = "unreadable_document"

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Could not read enough text from this PDF. It looks like an image-based or scanned "
            "document; please re-export it as a text-based PDF and try again."
        )


class ServiceUnavailableError(PipelineError):
    status_code = 503
    code = "service_unavailable"


class CorruptedOutputError(PipelineError):
    status_code = 502
    code = "corrupted_output"


class GenerationFailedError(PipelineError):
    status_code = 502
    code = "generation_failed"


class PipelineTimeoutError(PipelineError):
    status_code = 504
    code = "timeout"
