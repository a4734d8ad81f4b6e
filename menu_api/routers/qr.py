"""
QR code endpoints for restaurant and table menu links.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Request, Response
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from menu_api.routers._common import get_current_user, require_restaurant_access
from menu_api.services.domain import QrCodeService
from menu_shared.config.constants import Limits
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.exceptions import ValidationError
from menu_shared.utils.resource_schemas import QrBatchRequest, QrFormat
from menu_shared.utils.responses import success_response

router = APIRouter(prefix="/qr", tags=["qr"])

RestaurantId = Annotated[int, Path(gt=0)]
QrSize = Annotated[
    int,
    Query(ge=Limits.MIN_QR_SIZE, le=Limits.MAX_QR_SIZE, description="PNG width in pixels"),
]


def parse_table_numbers(raw: str | None) -> list[int] | None:
    """Parse a comma separated ``table_numbers`` query value ("1,2,5")."""
    if not raw or not raw.strip():
        return None
    try:
        numbers = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError(
            "Números de mesa devem ser inteiros separados por vírgula", field="table_numbers"
        )
    if any(number < Limits.MIN_TABLE_NUMBER for number in numbers):
        raise ValidationError("Números de mesa devem ser positivos", field="table_numbers")
    return numbers or None


def _qr_response(result: tuple[bytes | str, str] | dict[str, Any], message: str) -> Any:
    if isinstance(result, dict):
        return success_response(result, message)
    content, media_type = result
    return Response(content=content, media_type=media_type)


@router.get("/restaurant/{restaurant_id}/info")
def qr_info(
    restaurant_id: RestaurantId,
    request: Request,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    info = QrCodeService(db, user).info(restaurant_id, str(request.base_url))
    return success_response(info, "Informações de QR Code obtidas com sucesso")


@router.get("/restaurant/{restaurant_id}/print", response_class=HTMLResponse)
def qr_print_page(
    restaurant_id: RestaurantId,
    table_numbers: str | None = Query(default=None, description="Comma separated table numbers"),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> HTMLResponse:
    """
    Printable A4 sheet of table QR codes.

    Restaurants the caller cannot reach answer 403 here rather than 401.
    """
    html = QrCodeService(db, user).print_page(restaurant_id, parse_table_numbers(table_numbers))
    return HTMLResponse(content=html)


@router.get("/restaurant/{restaurant_id}")
def restaurant_qr(
    restaurant_id: RestaurantId,
    format: QrFormat = Query(default="png"),
    size: QrSize = Limits.DEFAULT_QR_SIZE,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> Any:
    result = QrCodeService(db, user).restaurant_qr(restaurant_id, format, size)
    return _qr_response(result, "QR Code gerado com sucesso")


@router.get("/restaurant/{restaurant_id}/table/{table_number}")
def table_qr(
    restaurant_id: RestaurantId,
    table_number: Annotated[int, Path(ge=Limits.MIN_TABLE_NUMBER, le=Limits.MAX_TABLE_NUMBER)],
    format: QrFormat = Query(default="png"),
    size: QrSize = Limits.DEFAULT_QR_SIZE,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> Any:
    """QR code pointing at the menu of one table. Marks the table as having a code."""
    result = QrCodeService(db, user).table_qr(restaurant_id, table_number, format, size)
    return _qr_response(result, "QR Code da mesa gerado com sucesso")


@router.post("/restaurant/{restaurant_id}/tables/batch")
def table_qr_batch(
    restaurant_id: RestaurantId,
    body: QrBatchRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    result = QrCodeService(db, user).batch(restaurant_id, body.table_numbers)
    return success_response(
        result, f"{result['summary']['successful']} QR Codes gerados com sucesso"
    )
