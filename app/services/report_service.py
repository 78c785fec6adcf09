"""CSV report helpers for admin exports"""

import csv
import logging
from datetime import date, datetime
from io import StringIO
from typing import Any, Iterable, Optional

from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def to_csv(rows: Iterable[dict], columns: list[str]) -> str:
    """
    Render rows as CSV text with a header line.
    Values containing a comma, quote or newline are quoted and embedded
    quotes doubled; an empty dataset yields just the header.
    """
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_cell(row.get(column)) for column in columns])
    return output.getvalue()


def csv_download(content: str, filename_prefix: str) -> StreamingResponse:
    """Wrap CSV text in a download response"""
    filename = f"{filename_prefix}-{datetime.utcnow().strftime('%Y-%m-%d')}.csv"
    logger.info(f"📄 Exporting {filename}")
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


BOOKING_REPORT_COLUMNS = [
    "bookingReference",
    "customerName",
    "customerEmail",
    "destination",
    "status",
    "depositAmount",
    "paymentStatus",
    "travelStartDate",
    "travelEndDate",
    "affiliateCode",
    "createdAt",
]

AFFILIATE_REPORT_COLUMNS = [
    "affiliateName",
    "affiliateEmail",
    "code",
    "bookingReference",
    "bookingAmount",
    "commissionAmount",
    "commissionStatus",
    "createdAt",
]


def _day(value) -> Optional[str]:
    return value.strftime("%Y-%m-%d") if value else None


def booking_report_rows(bookings) -> list[dict]:
    rows = []
    for booking in bookings:
        user = booking.user
        destination = booking.destination
        rows.append(
            {
                "bookingReference": booking.booking_reference,
                "customerName": user.full_name if user else None,
                "customerEmail": user.email if user else None,
                "destination": (destination.name or {}).get("en") if destination else None,
                "status": booking.status,
                "depositAmount": booking.deposit_amount,
                "paymentStatus": booking.payment_status,
                "travelStartDate": _day(booking.travel_start_date),
                "travelEndDate": _day(booking.travel_end_date),
                "affiliateCode": booking.affiliate_code,
                "createdAt": _day(booking.created_at),
            }
        )
    return rows


def affiliate_report_rows(commissions) -> list[dict]:
    rows = []
    for commission in commissions:
        affiliate = commission.affiliate
        rows.append(
            {
                "affiliateName": affiliate.full_name if affiliate else None,
                "affiliateEmail": affiliate.email if affiliate else None,
                "code": commission.affiliate_code,
                "bookingReference": (
                    commission.booking.booking_reference if commission.booking else None
                ),
                "bookingAmount": commission.booking_amount,
                "commissionAmount": commission.commission_amount,
                "commissionStatus": commission.status,
                "createdAt": _day(commission.created_at),
            }
        )
    return rows
