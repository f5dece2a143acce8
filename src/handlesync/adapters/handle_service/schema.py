"""Response payloads returned by the Handle service."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

log = logging.getLogger(__name__)


class HandleServiceBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Handle service %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class HandleErrorPayload(HandleServiceBaseModel):
    """Error body; services report the reason under ``message`` or ``error``."""

    message: str | None = None
    error: str | None = None
    response_code: int | None = Field(default=None, alias="responseCode")

    @property
    def detail(self) -> str | None:
        return self.message or self.error


def parse_error_detail(body: bytes) -> str | None:
    """Extract the reported error from a JSON body, or ``None`` when there is none."""

    if not body.strip():
        return None
    try:
        payload = HandleErrorPayload.model_validate_json(body)
    except ValidationError:
        return None
    return payload.detail
