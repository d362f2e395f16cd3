import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List

import pytz
from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from storefront.core.config import Settings
from storefront.core.exceptions import CompositionError
from storefront.domain.models import Order
from storefront.domain.normalization import line_total
from storefront.domain.schemas import OrderNotification

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

SHEET_COLUMNS = ["№", "Артикул", "Наименование", "Кол-во", "Ед.", "Цена", "Сумма"]
COLUMN_WIDTHS = [6, 16, 48, 10, 8, 12, 14]
UNIT_LABEL = "шт."
HEADER_FILL = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
THIN = Side(style="thin")
CELL_BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)


def format_money(value) -> str:
    """100 -> "100", 99.5 -> "99.50"."""
    value = round(float(value), 2)
    if value.is_integer():
        return str(int(value))
    return f"{value:.2f}"


class NotificationComposer:
    """Builds the operator e-mail (HTML + text) and the optional .xlsx order sheet."""

    def __init__(self, settings: Settings):
        self.timezone = pytz.timezone(settings.TIMEZONE)
        self.currency = settings.CURRENCY_SUFFIX
        self.spreadsheet_enabled = settings.ORDER_SPREADSHEET_ENABLED
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def format_timestamp(self, created_at: datetime) -> str:
        if created_at.tzinfo is None:
            # SQLite hands back naive datetimes; they are stored in UTC
            created_at = pytz.utc.localize(created_at)
        return created_at.astimezone(self.timezone).strftime("%d.%m.%Y %H:%M")

    def _context(self, order: Order) -> Dict[str, Any]:
        items = [
            {
                "name": item["product"]["name"],
                "quantity": item["quantity"],
                "price": format_money(item["product"]["price"]),
                "line_total": format_money(line_total(item)),
            }
            for item in order.items
        ]
        customer = order.customer_info
        return {
            "order_number": order.order_number,
            "customer": {
                "name": customer.get("name", ""),
                "phone": customer.get("phone", ""),
                "email": customer.get("email", ""),
                "city": customer.get("city", ""),
                "comment": customer.get("comment") or "",
            },
            "items": items,
            "total": format_money(order.total_price),
            "currency": self.currency,
            "created_at": self.format_timestamp(order.created_at),
        }

    def subject(self, order: Order) -> str:
        return f"Новый заказ №{order.order_number}"

    def compose_message(self, order: Order) -> OrderNotification:
        """Renders subject, HTML and plain-text bodies. Raises CompositionError."""
        try:
            context = self._context(order)
            html = self.env.get_template("order_email.html").render(**context)
            text = self.env.get_template("order_email.txt").render(**context)
        except Exception as e:
            logger.error(f"[Order: {order.id}] Failed to render notification body: {e}", exc_info=True)
            raise CompositionError(f"Notification body could not be rendered: {e}") from e

        return OrderNotification(subject=self.subject(order), html=html, text=text)

    def compose_spreadsheet(self, order: Order) -> bytes:
        """Builds the order sheet as .xlsx bytes. Raises CompositionError."""
        try:
            return self._build_workbook(order)
        except Exception as e:
            logger.error(f"[Order: {order.id}] Failed to build spreadsheet: {e}", exc_info=True)
            raise CompositionError(f"Order spreadsheet could not be generated: {e}") from e

    def spreadsheet_filename(self, order: Order) -> str:
        return f"order-{order.order_number}.xlsx"

    def _build_workbook(self, order: Order) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = f"Заказ {order.order_number}"[:31]
        last_col = len(SHEET_COLUMNS)

        # Header
        ws.append(SHEET_COLUMNS)
        for cell in ws[1]:
            cell.font = Font(bold=True)
            cell.fill = HEADER_FILL
            cell.border = CELL_BORDER
            cell.alignment = Alignment(horizontal="center", vertical="center")

        # Items
        for index, item in enumerate(order.items, start=1):
            product = item["product"]
            ws.append([
                index,
                product["id"],
                product["name"],
                item["quantity"],
                UNIT_LABEL,
                product["price"],
                line_total(item),
            ])
            for cell in ws[ws.max_row]:
                cell.border = CELL_BORDER

        # Totals
        total_row = ws.max_row + 1
        ws.cell(row=total_row, column=1, value="Итого:")
        ws.merge_cells(start_row=total_row, start_column=1, end_row=total_row, end_column=last_col - 1)
        ws.cell(row=total_row, column=1).alignment = Alignment(horizontal="right")
        ws.cell(row=total_row, column=1).font = Font(bold=True)
        total_cell = ws.cell(row=total_row, column=last_col, value=order.total_price)
        total_cell.font = Font(bold=True)
        total_cell.border = CELL_BORDER

        # Customer block, one merged row per line, one empty row below the table
        row = total_row + 2
        for line in self._customer_lines(order):
            ws.cell(row=row, column=1, value=line)
            ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=last_col)
            row += 1

        for col, width in enumerate(COLUMN_WIDTHS, start=1):
            ws.column_dimensions[get_column_letter(col)].width = width
        for col in (6, 7):
            for r in range(2, total_row + 1):
                ws.cell(row=r, column=col).number_format = "#,##0.00"

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def _customer_lines(self, order: Order) -> List[str]:
        customer = order.customer_info
        lines = [
            f"Покупатель: {customer.get('name', '')}",
            f"Телефон: {customer.get('phone', '')}",
            f"Email: {customer.get('email', '')}",
            f"Город: {customer.get('city', '')}",
        ]
        if customer.get("comment"):
            lines.append(f"Комментарий: {customer['comment']}")
        lines.append(f"Дата заказа: {self.format_timestamp(order.created_at)}")
        return lines
