from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

COMPLETIONS_TYPE = "completions"


class CompletionsDocument(BaseModel):
    """
    Per-user completion flags.

    ``data`` is a client-defined structure recording which tasks are done.
    It is replaced wholesale on every save; there is no partial merge.
    """

    user_id: str = Field(description="Owner (identity provider subject)")
    type: str = Field(default=COMPLETIONS_TYPE)
    data: Any = Field(description="Opaque completion map")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last save time",
    )


class CompletionsRequest(BaseModel):
    """Body of POST /api/completions."""

    model_config = ConfigDict(extra="ignore")

    completions: Optional[Any] = Field(default=None)
