# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

import re
from typing import Optional

_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}

_UNESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "0": "\0",
    "'": "'",
    '"': '"',
}

_RAW_STRING = re.compile(r'^r(#*)"(.*)"\1$', re.DOTALL)


def quote_str(value: str) -> str:
    """Return the Rust string literal text for `value`."""
    out = ['"']
    for ch in value:
        if ch in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{{{ord(ch):x}}}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def unquote_str(text: str) -> Optional[str]:
    """
    Decode a Rust string literal (`"..."` or `r#"..."#`).

    Returns None when `text` is not a plain string literal, e.g. a byte
    string, a char or a number.
    """
    raw = _RAW_STRING.match(text)
    if raw:
        return raw.group(2)
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        return None
    return _unescape(text[1:-1])


def _hex_value(digits: str) -> Optional[int]:
    if not digits or any(d not in "0123456789abcdefABCDEF" for d in digits):
        return None
    return int(digits, 16)


def _unescape(body: str) -> Optional[str]:
    out = []
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= n:
            return None
        esc = body[i + 1]
        if esc in _UNESCAPES:
            out.append(_UNESCAPES[esc])
            i += 2
        elif esc == "x":
            code = _hex_value(body[i + 2:i + 4])
            # \x escapes are limited to ASCII
            if code is None or len(body[i + 2:i + 4]) != 2 or code > 0x7F:
                return None
            out.append(chr(code))
            i += 4
        elif esc == "u":
            end = body.find("}", i)
            if body[i + 2:i + 3] != "{" or end == -1:
                return None
            code = _hex_value(body[i + 3:end].replace("_", ""))
            if code is None or code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                return None
            out.append(chr(code))
            i = end + 1
        elif esc == "\n" or esc == "\r":
            # line continuation: skip the newline and leading whitespace
            i += 2
            while i < n and body[i] in " \t\n\r":
                i += 1
        else:
            return None
    return "".join(out)
