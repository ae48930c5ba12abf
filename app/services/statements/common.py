"""
HostelHub Finance - Statement Helpers

Report envelope and account-line formatting shared by the assemblers.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union
from uuid import UUID

from app.services.ledger_aggregation import AccountTotals, to_money


def report_header(
    report_type: str,
    basis: str,
    residence_id: Optional[Union[str, UUID]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Fields every report starts with."""
    header = {
        "report_type": report_type,
        "basis": basis,
        "residence_id": str(residence_id) if residence_id else None,
    }
    header.update(extra)
    header["generated_at"] = datetime.utcnow().isoformat()
    return header


def account_line(bucket: AccountTotals, amount: Decimal, **extra: Any) -> Dict[str, Any]:
    line = {
        "account_code": bucket.code,
        "account_name": bucket.name,
        "amount": to_money(amount),
    }
    line.update(extra)
    return line
