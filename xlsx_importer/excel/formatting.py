from __future__ import annotations

import datetime
import math
import re
from decimal import ROUND_HALF_UP, Context, Decimal

from openpyxl.styles.numbers import is_date_format
from openpyxl.utils.datetime import from_excel

"""Render numeric cell values the way a spreadsheet displays them.

Covers the formats found in typical data sheets: General, fixed decimals,
thousands separators (and trailing-comma scaling), percent, scientific,
quoted / escaped literals, bracketed colors and currency tags, up to three
sections (positive;negative;zero) and date / time formats.
"""

__all__ = [
    "format_number",
    "format_general",
]

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_CURRENCY_RE = re.compile(r"\[\$([^\]\-]*)(?:-[^\]]*)?\]")
_BRACKET_RE = re.compile(r"\[[^\]]*\]")
_DATE_TOKEN_RE = re.compile(
    r'(yyyy|yy|mmmmm|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|am/pm|a/p|\.0+|"[^"]*"|\\.|.)',
    re.IGNORECASE,
)
_PLACEHOLDERS = "0#?.,"
# 表示丸めは四捨五入 (float の最大桁数を収める精度)
_DECIMAL_CTX = Context(prec=400, rounding=ROUND_HALF_UP)


def format_general(value: float) -> str:
    value = float(value)
    if value.is_integer() and abs(value) < 1e11:
        return str(int(value))
    text = f"{value:.11g}"
    if "e" in text:
        mantissa, exp = text.split("e")
        text = f"{mantissa}E{int(exp):+03d}"
    return text


def _split_sections(fmt: str) -> list[str]:
    sections: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False
    for ch in fmt:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\":
            escaped = True
        elif ch == '"':
            in_quotes = not in_quotes
        elif ch == ";" and not in_quotes:
            sections.append("".join(current))
            current = []
            continue
        current.append(ch)
    sections.append("".join(current))
    return sections


def _strip_brackets(section: str) -> str:
    section = _CURRENCY_RE.sub(lambda m: f'"{m.group(1)}"', section)
    return _BRACKET_RE.sub("", section)


def format_number(value: float, format_string: str | None) -> str:
    """Format ``value`` with an Excel number format string."""
    value = float(value)
    if not math.isfinite(value):
        return format_general(value)
    if not format_string or format_string.strip().lower() == "general":
        return format_general(value)

    sections = _split_sections(format_string)
    sign = ""
    if value < 0 and len(sections) >= 2:
        section, value = sections[1], abs(value)
    elif value == 0 and len(sections) >= 3:
        section = sections[2]
    else:
        section = sections[0]
        if value < 0:
            sign, value = "-", abs(value)

    if section.strip().lower() == "general":
        return sign + format_general(value)
    if is_date_format(section):
        return _format_date(value, _strip_brackets(section))
    return sign + _format_numeric(value, _strip_brackets(section))


def _split_literals(section: str) -> tuple[str, str, str, int]:
    """Split a numeric section into (prefix, pattern, suffix, percent_count)."""
    prefix: list[str] = []
    pattern: list[str] = []
    suffix: list[str] = []
    percent = 0
    i = 0
    while i < len(section):
        ch = section[i]
        target = prefix if not pattern else suffix
        if ch == '"':
            end = section.find('"', i + 1)
            end = len(section) if end < 0 else end
            target.append(section[i + 1:end])
            i = end + 1
            continue
        if ch == "\\" and i + 1 < len(section):
            target.append(section[i + 1])
            i += 2
            continue
        if ch == "_" and i + 1 < len(section):
            target.append(" ")
            i += 2
            continue
        if ch == "*" and i + 1 < len(section):
            i += 2
            continue
        if ch in "Ee" and pattern and i + 1 < len(section) and section[i + 1] in "+-":
            pattern.append(section[i:i + 2].upper())
            i += 2
            continue
        if ch in _PLACEHOLDERS and not suffix:
            # ',' / '.' only count when attached to digit placeholders
            if ch in ".," and not pattern and not any(c in section[i:] for c in "0#?"):
                target.append(ch)
            else:
                pattern.append(ch)
        else:
            if ch == "%":
                percent += 1
            target.append(ch)
        i += 1
    return "".join(prefix), "".join(pattern), "".join(suffix), percent


def _to_decimal(value: float) -> Decimal:
    # repr は最短表現なので 2.5 / 0.125 などの境界値がそのまま残る (+0.0 で -0.0 を正規化)
    return Decimal(repr(value + 0.0))


def _quantize(value: Decimal, decimals: int) -> Decimal:
    return value.quantize(Decimal(10) ** -decimals, context=_DECIMAL_CTX)


def _format_scientific(value: Decimal, decimals: int) -> str:
    exponent = value.adjusted() if value else 0
    mantissa = _quantize(value.scaleb(-exponent, context=_DECIMAL_CTX), decimals)
    if mantissa >= 10:
        exponent += 1
        mantissa = _quantize(mantissa.scaleb(-1, context=_DECIMAL_CTX), decimals)
    return f"{mantissa:f}E{exponent:+03d}"


def _format_numeric(value: float, section: str) -> str:
    prefix, pattern, suffix, percent = _split_literals(section)
    if not pattern:
        return (prefix + suffix).replace("@", format_general(value))

    number = _DECIMAL_CTX.multiply(_to_decimal(value), Decimal(100) ** percent)

    if "E+" in pattern or "E-" in pattern:
        mantissa = re.split(r"E[+-]", pattern)[0]
        decimals = sum(1 for c in mantissa.split(".", 1)[1] if c in "0#?") if "." in mantissa else 0
        text = _format_scientific(number, decimals)
        if "E-" in pattern:
            text = text.replace("E+", "E")
        return prefix + text + suffix

    # 末尾のカンマは 1000 単位のスケーリング
    trailing = len(pattern) - len(pattern.rstrip(","))
    if trailing:
        number = _DECIMAL_CTX.divide(number, Decimal(1000) ** trailing)
        pattern = pattern.rstrip(",")
    int_pattern, _, dec_pattern = pattern.partition(".")
    grouping = "," in int_pattern
    min_int = int_pattern.count("0")
    min_dec = dec_pattern.count("0")
    max_dec = sum(1 for c in dec_pattern if c in "0#?")

    text = f"{_quantize(number, max_dec):f}"
    int_text, _, dec_text = text.partition(".")
    if max_dec > min_dec:
        dec_text = dec_text.rstrip("0")
        if len(dec_text) < min_dec:
            dec_text = dec_text.ljust(min_dec, "0")
    if int_text == "0" and min_int == 0:
        int_text = ""
    int_text = int_text.rjust(min_int, "0")
    if grouping and int_text:
        int_text = f"{int(int_text):,}".rjust(min_int, "0")

    body = int_text
    if "." in pattern:
        body += "." + dec_text if dec_text or max_dec == 0 else "."
    return prefix + body + suffix


def _format_date(value: float, section: str) -> str:
    converted = from_excel(value)
    if isinstance(converted, datetime.time):
        converted = datetime.datetime.combine(datetime.date(1899, 12, 31), converted)
    dt: datetime.datetime = converted

    tokens = _DATE_TOKEN_RE.findall(section)
    has_ampm = any(t.lower() in ("am/pm", "a/p") for t in tokens)
    has_fraction = any(t.startswith(".0") for t in tokens)
    if not has_fraction and dt.microsecond >= 500_000:
        dt = dt.replace(microsecond=0) + datetime.timedelta(seconds=1)

    # m / mm は直前が時 or 直後が秒なら「分」
    kinds = [t.lower() for t in tokens]
    minute_positions: set[int] = set()
    last_field = ""
    for idx, tok in enumerate(kinds):
        if tok in ("m", "mm"):
            following = next((k for k in kinds[idx + 1:] if k[0] in "ymdhs"), "")
            if last_field in ("h", "hh") or following in ("s", "ss"):
                minute_positions.add(idx)
        if tok and tok[0] in "ymdhs":
            last_field = tok

    out: list[str] = []
    for idx, (tok, low) in enumerate(zip(tokens, kinds)):
        if low == "yyyy":
            out.append(f"{dt.year:04d}")
        elif low == "yy":
            out.append(f"{dt.year % 100:02d}")
        elif low in ("m", "mm") and idx in minute_positions:
            out.append(f"{dt.minute:02d}" if low == "mm" else str(dt.minute))
        elif low == "mmmmm":
            out.append(_MONTHS[dt.month - 1][0])
        elif low == "mmmm":
            out.append(_MONTHS[dt.month - 1])
        elif low == "mmm":
            out.append(_MONTHS[dt.month - 1][:3])
        elif low == "mm":
            out.append(f"{dt.month:02d}")
        elif low == "m":
            out.append(str(dt.month))
        elif low == "dddd":
            out.append(_WEEKDAYS[dt.weekday()])
        elif low == "ddd":
            out.append(_WEEKDAYS[dt.weekday()][:3])
        elif low == "dd":
            out.append(f"{dt.day:02d}")
        elif low == "d":
            out.append(str(dt.day))
        elif low in ("h", "hh"):
            hour = dt.hour
            if has_ampm:
                hour = hour % 12 or 12
            out.append(f"{hour:02d}" if low == "hh" else str(hour))
        elif low in ("s", "ss"):
            out.append(f"{dt.second:02d}" if low == "ss" else str(dt.second))
        elif low.startswith(".0"):
            digits = len(low) - 1
            out.append("." + f"{dt.microsecond:06d}"[:digits])
        elif low == "am/pm":
            out.append("AM" if dt.hour < 12 else "PM")
        elif low == "a/p":
            out.append("A" if dt.hour < 12 else "P")
        elif tok.startswith('"'):
            out.append(tok[1:-1])
        elif tok.startswith("\\"):
            out.append(tok[1:])
        else:
            out.append(tok)
    return "".join(out)
