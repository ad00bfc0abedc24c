# --------------------------- quoting/utils/reply_parser.py ----------------------------
"""
Spare-Parts Quotation · Operator Reply Parser

OVERVIEW:
Extracts the quotation identifier, price and lead time from the plain-text
body of an operator's reply email. The request notification sent to the
operator embeds a literal template:

    Quotation ID: 123e4567-e89b-12d3-a456-426614174000
    Price:
    Lead Time:

and the operator fills in the two blank lines before replying.

BUSINESS LOGIC:
- Each field is extracted independently of the others
- Every missing field is reported, not only the first one, so the
  operator gets complete feedback from a single failed reply
- Price is captured as text here; numeric coercion is a separate step
- Quoted-reply chrome, HTML and signatures are not stripped: the labels
  are expected verbatim in the body

TECHNICAL ARCHITECTURE:
- Pure functions, no I/O (except load_reply_text, used by the replay CLI)
- Case-insensitive label matching; price and lead time on the same line
  as their label, the identifier on the same or the next line

DEPENDENCIES:
- chardet for encoding detection of saved plain-text replies
"""

import email
import re
from decimal import Decimal, InvalidOperation
from email import policy
from pathlib import Path
from typing import List, Optional

import chardet

from quoting.errors import InvalidPrice
from quoting.models import ExtractionFailure, ParsedReply, ReplyField

# ╔══════════ 1. Patterns ═══════════════════════════════════════

_UUID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"

QUOTATION_ID_PATTERN = re.compile(rf"Quotation ID:\s*({_UUID})", re.IGNORECASE)
PRICE_PATTERN = re.compile(r"Price:[ \t]*(\S[^\r\n]*)", re.IGNORECASE)
LEAD_TIME_PATTERN = re.compile(r"Lead Time:[ \t]*(\S[^\r\n]*)", re.IGNORECASE)

# "$1,234.50", "1234.5 USD", "50", "1234.", ".5"
_PRICE_VALUE = re.compile(
    r"^\$?\s*((?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d*)?|\.\d+)\s*(?:USD|MXN)?$",
    re.IGNORECASE,
)

_REASON_NOT_FOUND = "label not found or value missing"


# ╔══════════ 2. Field Extraction ═══════════════════════════════════════

def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def extract_reply_fields(text: str) -> ParsedReply:
    """
    Parse an operator reply body into a ParsedReply.

    The identifier may follow its label on the next line (mail clients
    wrap there); price and lead time must share their label's line.
    The identifier is returned lower-cased, the canonical uuid text form
    the store returns, so lookups and logs agree whatever case the
    operator's client used.

    ARGS:
        text: Plain-text email body

    RETURNS:
        ParsedReply with all three values, or with one ExtractionFailure
        per field that could not be matched
    """
    text = text or ""
    failures: List[ExtractionFailure] = []

    quotation_id = _first_group(QUOTATION_ID_PATTERN, text)
    if quotation_id is None:
        reason = _REASON_NOT_FOUND
        if re.search(r"Quotation ID:", text, re.IGNORECASE):
            reason = "value is not a UUID"
        failures.append(ExtractionFailure(ReplyField.QUOTATION_ID, reason))
    else:
        quotation_id = quotation_id.lower()

    price_text = _first_group(PRICE_PATTERN, text)
    if price_text is None:
        failures.append(ExtractionFailure(ReplyField.PRICE, _REASON_NOT_FOUND))

    lead_time = _first_group(LEAD_TIME_PATTERN, text)
    if lead_time is None:
        failures.append(ExtractionFailure(ReplyField.LEAD_TIME, _REASON_NOT_FOUND))

    if failures:
        return ParsedReply(
            quotation_id=quotation_id,
            price_text=price_text,
            lead_time=lead_time,
            failures=tuple(failures),
        )
    return ParsedReply(quotation_id=quotation_id, price_text=price_text, lead_time=lead_time)


def coerce_price(price_text: str, quotation_id: str = None) -> Decimal:
    """
    Convert extracted price text to a Decimal.

    Accepts plain numbers with an optional "$" prefix, "," thousands
    separators and a trailing USD/MXN code.

    RAISES:
        InvalidPrice: text is not a non-negative finite number
    """
    match = _PRICE_VALUE.match((price_text or "").strip())
    if not match:
        raise InvalidPrice(price_text, quotation_id)
    digits = match.group(1).replace(",", "")
    try:
        value = Decimal(digits)
    except InvalidOperation:
        raise InvalidPrice(price_text, quotation_id)
    if not value.is_finite():
        raise InvalidPrice(price_text, quotation_id)
    return value


# ╔══════════ 3. Saved Replies ═══════════════════════════════════════

def load_reply_text(path) -> str:
    """
    Read a saved operator reply for manual replay.

    .eml files are parsed and their text/plain part returned; anything
    else is treated as a plain-text body with detected encoding.
    """
    path = Path(path)
    raw = path.read_bytes()

    if path.suffix.lower() == ".eml":
        msg = email.message_from_bytes(raw, policy=policy.default)
        body = msg.get_body(preferencelist=("plain",))
        if body is None:
            raise ValueError(f"{path} has no text/plain part")
        return body.get_content()

    detected = chardet.detect(raw)
    encoding = detected.get("encoding") or "utf-8"
    return raw.decode(encoding, errors="replace")
