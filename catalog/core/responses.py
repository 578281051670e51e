from typing import Any, Generic, Sequence, TypeVar

from fastapi import status
from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    success: bool
    message: str = ""
    data: T | None = None
    meta: dict | None = None
    status_code: int = status.HTTP_200_OK


def send_success(
    message: str = "Success", data: Any = None, status_code: int = status.HTTP_200_OK
) -> APIResponse:
    return APIResponse(
        success=True, message=message, data=data, status_code=status_code
    )


def send_list(items: Sequence[Any], source: str, message: str = "Success") -> APIResponse:
    """Success envelope for collections, with the item count and data source."""
    return APIResponse(
        success=True,
        message=message,
        data=list(items),
        meta={"count": len(items), "source": source},
    )


def send_error(
    message: str = "Error",
    data: Any = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> APIResponse:
    return APIResponse(
        success=False, message=message, data=data, status_code=status_code
    )
