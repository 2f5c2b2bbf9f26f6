"""Compose the internal CSAT note posted on a ticket."""
import math
from typing import Any, Optional

from zendesk_csat_attribution.models import CsatNote

VERY_LOW_TAG = "csat_very_low"
DEFAULT_VERY_LOW_THRESHOLD = 2

_HEADER = {
    "en": """📊 Customer survey results received:

Customer satisfaction (1 to 5): {csat}
Likelihood to recommend (1 to 10): {nps}

💬 Customer comment:
"{comment}"
""",
    "ar": """📊 نتائج استبيان العميل وصلت:

مستوى رضا العميل (من الى 5): {csat}
مستوى ترشيح العميل (من 1 الى 10): {nps}

💬 تعليق العميل:
"{comment}"
""",
}

ESCALATION_FOOTER = {
    "en": """
🟡 This ticket has been moved to On-hold
because of a very low rating with a customer comment.
Please review the customer's feedback, follow up with them to address the cause, then close the ticket.""",
    "ar": """
🟡 تم تحويل هذه التذكرة إلى وضع الانتظار (On-hold)
بسبب انخفاض التقييم ووجود تعليق من العميل.
الرجاء مراجعة ملاحظات العميل والتواصل معه لمعالجة السبب ثم إغلاق التذكرة بعد المتابعة.""",
}

INFORMATIONAL_FOOTER = {
    "en": """
ℹ️ This note is for your information only.
No action is required unless you think following up with the customer is appropriate.""",
    "ar": """
ℹ️ هذه الملاحظة لإطلاعك على تقييم العميل فقط.
لا يلزم اتخاذ إجراء إلا إذا رأيت أن متابعة العميل مناسبة.""",
}

SUPPORTED_LANGUAGES = tuple(_HEADER)


def has_comment(comment: Any) -> bool:
    return comment is not None and str(comment).strip() != ""


def parse_rate(value: Any) -> Optional[float]:
    """Numeric value of a rating cell, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def format_rate(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_very_low(csat_rate: Any, comment: Any, threshold: float = DEFAULT_VERY_LOW_THRESHOLD) -> bool:
    """A rating at or below ``threshold`` that comes with a customer comment."""
    if not has_comment(comment):
        return False
    rate = parse_rate(csat_rate)
    return rate is not None and rate <= threshold


def compose_note(
    csat_rate: Any,
    nps_rate: Any,
    comment: Any,
    *,
    very_low_threshold: float = DEFAULT_VERY_LOW_THRESHOLD,
    language: str = "en",
) -> CsatNote:
    """Build the internal note and hold decision for one survey response."""
    if language not in _HEADER:
        raise ValueError(f"Unsupported note language: {language!r} (expected one of {', '.join(SUPPORTED_LANGUAGES)})")

    very_low = is_very_low(csat_rate, comment, very_low_threshold)
    body = _HEADER[language].format(
        csat=format_rate(csat_rate),
        nps=format_rate(nps_rate),
        comment="" if comment is None else comment,
    )
    body += ESCALATION_FOOTER[language] if very_low else INFORMATIONAL_FOOTER[language]

    return CsatNote(
        body=body,
        should_hold=very_low,
        tag_to_add=VERY_LOW_TAG if very_low else None,
    )
