from src.shared.schemas.base import (
    BaseSchema,
    ChartPoint,
    SuccessResponse,
    ErrorResponse,
    ErrorDetail,
)

__all__ = [
    "BaseSchema",
    "ChartPoint",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
