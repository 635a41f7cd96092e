from .errors import (
    QuotePipelineError,
    Unauthorized,
    BadRequest,
    NotFound,
    ValidationError,
    UploadFailed,
    InternalError,
    InvalidQuoteData,
    error_payload,
)
