"""
QR Code Service - scannable links to the public menu.

A restaurant QR code encodes ``{WEBAPP_URL}/?restaurant={uuid}``; a table QR
code appends ``&table={number}``. Generating a table code marks the table
(``qr_code_generated`` and ``last_qr_generated_at``), nothing else is stored.
"""

from __future__ import annotations

import base64
import io
from datetime import datetime, timezone
from typing import Any

import qrcode
import qrcode.image.svg
from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup
from PIL import Image
from sqlalchemy.orm import Session

from menu_api.models import Restaurant, Table, utcnow
from menu_api.repositories import RestaurantRepository, TableRepository
from menu_api.services.permissions import can_access_restaurant, ensure_restaurant_access
from menu_shared.config.constants import Limits
from menu_shared.config.logging import qr_logger
from menu_shared.config.settings import get_settings
from menu_shared.utils.exceptions import ForbiddenError, NotFoundError, ValidationError


# =============================================================================
# Rendering
# =============================================================================


def _build(url: str, border: int = 2) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=border,
    )
    qr.add_data(url)
    qr.make(fit=True)
    return qr


def render_png(url: str, size: int = Limits.DEFAULT_QR_SIZE, border: int = 2) -> bytes:
    """PNG bytes of a ``size`` x ``size`` QR code."""
    img = _build(url, border).make_image(fill_color="black", back_color="white")
    pil_image = img.get_image().convert("RGB")
    if pil_image.size != (size, size):
        # Nearest keeps modules sharp
        pil_image = pil_image.resize((size, size), Image.NEAREST)
    buffer = io.BytesIO()
    pil_image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_svg(url: str, border: int = 2) -> str:
    img = _build(url, border).make_image(image_factory=qrcode.image.svg.SvgPathImage)
    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue().decode("utf-8")


def data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def render_payload(url: str, size: int = Limits.DEFAULT_QR_SIZE) -> dict[str, str]:
    """JSON form of a QR code: the encoded URL, a PNG data URL and the SVG."""
    return {
        "url": url,
        "data_url": data_url(render_png(url, size)),
        "svg": render_svg(url),
    }


def restaurant_menu_url(restaurant: Restaurant) -> str:
    base_url = get_settings().webapp_url.rstrip("/")
    return f"{base_url}/?restaurant={restaurant.uuid}"


def table_menu_url(restaurant: Restaurant, table_number: int) -> str:
    return f"{restaurant_menu_url(restaurant)}&table={table_number}"


# =============================================================================
# Service
# =============================================================================


class QrCodeService:
    """
    QR code generation for restaurants and their tables.

    Image results are returned as ``(content, media_type)`` tuples for the
    png and svg formats, and as dicts for json.
    """

    def __init__(self, db: Session, user: dict[str, Any] | None = None):
        self._db = db
        self._user = user
        self._restaurants = RestaurantRepository(db)
        self._tables = TableRepository(db)

    def _restaurant(self, restaurant_id: int) -> Restaurant:
        ensure_restaurant_access(self._user, restaurant_id)
        restaurant = self._restaurants.find_by_id(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurante não encontrado", restaurant_id=restaurant_id)
        return restaurant

    @staticmethod
    def _restaurant_brief(restaurant: Restaurant) -> dict[str, Any]:
        return {"id": restaurant.id, "uuid": restaurant.uuid, "name": restaurant.name}

    @staticmethod
    def _table_brief(table: Table) -> dict[str, Any]:
        return {
            "id": table.id,
            "number": table.table_number,
            "name": table.name,
            "capacity": table.capacity,
        }

    def _mark_generated(self, tables: list[Table]) -> None:
        now = utcnow()
        for table in tables:
            table.qr_code_generated = True
            table.last_qr_generated_at = now
        self._db.commit()

    @staticmethod
    def _image(url: str, fmt: str, size: int) -> tuple[bytes | str, str]:
        if fmt == "svg":
            return render_svg(url), "image/svg+xml"
        return render_png(url, size), "image/png"

    def restaurant_qr(
        self, restaurant_id: int, fmt: str = "png", size: int = Limits.DEFAULT_QR_SIZE
    ) -> tuple[bytes | str, str] | dict[str, Any]:
        restaurant = self._restaurant(restaurant_id)
        url = restaurant_menu_url(restaurant)
        qr_logger.info("Restaurant QR generated", restaurant_id=restaurant_id, format=fmt)

        if fmt != "json":
            return self._image(url, fmt, size)
        return {
            "restaurant": self._restaurant_brief(restaurant),
            "qr_code": render_payload(url, size),
        }

    def table_qr(
        self,
        restaurant_id: int,
        table_number: int,
        fmt: str = "png",
        size: int = Limits.DEFAULT_QR_SIZE,
    ) -> tuple[bytes | str, str] | dict[str, Any]:
        restaurant = self._restaurant(restaurant_id)
        table = self._tables.find_by_number(restaurant_id, table_number)
        if table is None:
            raise NotFoundError(
                "Mesa não encontrada", restaurant_id=restaurant_id, table_number=table_number
            )

        url = table_menu_url(restaurant, table.table_number)
        # Render before marking, a failed render leaves the table untouched
        result: tuple[bytes | str, str] | dict[str, Any]
        if fmt == "json":
            result = {
                "restaurant": self._restaurant_brief(restaurant),
                "table": self._table_brief(table),
                "qr_code": render_payload(url, size),
            }
        else:
            result = self._image(url, fmt, size)

        self._mark_generated([table])
        qr_logger.info(
            "Table QR generated",
            restaurant_id=restaurant_id,
            table_number=table_number,
            format=fmt,
        )
        return result

    def batch(self, restaurant_id: int, table_numbers: list[int]) -> dict[str, Any]:
        """
        JSON QR codes for several tables.

        A missing table is reported in its own result entry and does not
        abort the rest of the batch.
        """
        if not table_numbers:
            raise ValidationError(
                "Lista de números de mesa é obrigatória", field="table_numbers"
            )
        if len(table_numbers) > Limits.MAX_QR_BATCH:
            raise ValidationError(
                f"Máximo de {Limits.MAX_QR_BATCH} mesas por vez", field="table_numbers"
            )

        restaurant = self._restaurant(restaurant_id)
        tables = {
            table.table_number: table
            for table in self._tables.find_by_numbers(
                restaurant_id, table_numbers, active_only=False
            )
        }

        results: list[dict[str, Any]] = []
        generated: list[Table] = []
        for number in table_numbers:
            table = tables.get(number)
            if table is None:
                results.append(
                    {"table_number": number, "error": "Mesa não encontrada", "success": False}
                )
                continue

            url = table_menu_url(restaurant, number)
            try:
                qr_code = render_payload(url)
            except (ValueError, OSError) as exc:
                qr_logger.error(
                    "QR rendering failed", restaurant_id=restaurant_id, table_number=number, exc_info=True
                )
                results.append({"table_number": number, "error": str(exc), "success": False})
                continue

            generated.append(table)
            results.append(
                {"table": self._table_brief(table), "qr_code": qr_code, "success": True}
            )

        if generated:
            self._mark_generated(generated)

        successful = len(generated)
        qr_logger.info(
            "QR batch generated",
            restaurant_id=restaurant_id,
            requested=len(table_numbers),
            successful=successful,
        )
        return {
            "restaurant": self._restaurant_brief(restaurant),
            "results": results,
            "summary": {
                "total_requested": len(table_numbers),
                "successful": successful,
                "failed": len(table_numbers) - successful,
            },
        }

    def info(self, restaurant_id: int, api_base_url: str) -> dict[str, Any]:
        """QR links and which tables already had a code generated."""
        restaurant = self._restaurant(restaurant_id)
        tables = list(self._tables.find_by_numbers(restaurant_id, active_only=False))
        with_qr = [table for table in tables if table.qr_code_generated]
        without_qr = [table for table in tables if not table.qr_code_generated]

        api_base = f"{api_base_url.rstrip('/')}/api/v1/qr/restaurant/{restaurant_id}"
        return {
            "restaurant": self._restaurant_brief(restaurant),
            "qr_urls": {
                "restaurant": restaurant_menu_url(restaurant),
                "api_restaurant": api_base,
                "api_table": f"{api_base}/table/{{number}}",
                "print_page": f"{api_base}/print",
            },
            "statistics": {
                "total_tables": len(tables),
                "tables_with_qr": len(with_qr),
                "tables_without_qr": len(without_qr),
            },
            "tables_with_qr": [
                {
                    "number": table.table_number,
                    "name": table.name,
                    "last_generated": table.last_qr_generated_at,
                }
                for table in with_qr
            ],
            "tables_without_qr": [table.table_number for table in without_qr],
        }

    def print_page(self, restaurant_id: int, table_numbers: list[int] | None = None) -> str:
        """
        Printable HTML sheet with one SVG code per table.

        Without ``table_numbers`` every active table is printed; unknown
        numbers are ignored.
        """
        if not can_access_restaurant(self._user, restaurant_id):
            raise ForbiddenError("Acesso negado a este restaurante", restaurant_id=restaurant_id)
        restaurant = self._restaurant(restaurant_id)

        if table_numbers:
            tables = self._tables.find_by_numbers(restaurant_id, table_numbers, active_only=False)
        else:
            tables = self._tables.find_by_numbers(restaurant_id)
        if not tables:
            raise NotFoundError("Nenhuma mesa encontrada para impressão", restaurant_id=restaurant_id)

        return render_print_sheet(restaurant, list(tables))


# =============================================================================
# Print sheet
# =============================================================================


_templates = Environment(
    loader=PackageLoader("menu_api", "templates"), autoescape=select_autoescape()
)


def render_print_sheet(restaurant: Restaurant, tables: list[Table]) -> str:
    """Render ``print_sheet.html``. Names are escaped, the generated SVG is not."""
    items = [
        {
            "table": table,
            "svg": Markup(render_svg(table_menu_url(restaurant, table.table_number), border=1)),
        }
        for table in tables
    ]
    return _templates.get_template("print_sheet.html").render(
        restaurant=restaurant,
        items=items,
        generated_at=datetime.now(timezone.utc).strftime("%d/%m/%Y %H:%M UTC"),
    )
