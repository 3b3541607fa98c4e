"""UK postcode normalisation.

Two canonical spellings are used for NHSPD keys:

* the fixed form, ``"AB1   2CD"``: outward code left-justified to five
  characters, a space, and the inward code right-justified to three, so that
  lexicographic ordering groups outward codes together;
* the egif form, ``"AB1 2CD"``: a single internal space, as used in UK
  government data interchange.

Both are total and idempotent; neither validates that a postcode exists.
"""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalise(raw: str) -> str:
    codes = raw.split()
    if len(codes) != 2:
        return raw.upper()
    outward, inward = codes
    return f"{outward:<5} {inward:>3}".upper()


def egif(raw: str) -> str:
    return _WHITESPACE_RE.sub(" ", raw).upper()
