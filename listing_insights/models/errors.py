from typing import Optional
from pydantic import BaseModel, ConfigDict

from ..constants import ErrorKind


class ErrorClassification(BaseModel):
    """Outcome of classifying one failed external call. Computed per failure, never stored."""
    model_config = ConfigDict(frozen=True)

    is_retryable: bool
    kind: ErrorKind
    message: str
    status_code: Optional[int] = None
