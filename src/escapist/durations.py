"""Timeouts are whole milliseconds. Settings files may spell them as Go-style duration strings, like "300ms" or "1.5s"."""
import decimal

UNIT_MILLISECONDS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
}


def parse_timeout(val: str) -> int:
    val = val.strip()
    if len(val) == 0:
        raise ValueError("Empty duration string")
    if val.startswith("-"):
        raise ValueError("Timeouts cannot be negative")
    if val.startswith("+"):
        val = val[1:]
    if val == "0":
        return 0

    accum = decimal.Decimal(0)
    while len(val) > 0:
        numberpart = ""
        while len(val) > 0 and (val[0].isdigit() or val[0] == "."):
            numberpart += val[0]
            val = val[1:]
        if len(numberpart) == 0:
            raise ValueError("Invalid duration string; expected number")
        if not numberpart[0].isdigit():
            raise ValueError("Invalid duration string; expected leading digit")
        number = decimal.Decimal(numberpart)
        # "ms" has to be tried before "m"
        for unitstr in sorted(UNIT_MILLISECONDS, key=len, reverse=True):
            if val.startswith(unitstr):
                accum += number * UNIT_MILLISECONDS[unitstr]
                val = val[len(unitstr) :]
                break
        else:
            raise ValueError("Invalid duration string; expected unit")

    return int(accum.to_integral_value(rounding=decimal.ROUND_HALF_UP))


def format_timeout(milliseconds: int) -> str:
    if milliseconds == 0:
        return "0"
    if milliseconds % 1000 != 0:
        return f"{milliseconds}ms"
    seconds = milliseconds // 1000
    parts = []
    if seconds >= 60:
        parts.append(f"{seconds // 60}m")
        seconds %= 60
    if seconds:
        parts.append(f"{seconds}s")
    return "".join(parts)


def to_seconds(milliseconds: int) -> float:
    return milliseconds / 1000
