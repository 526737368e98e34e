import regex as re
from typing import Iterable, List

# Hyphen-like characters a reader app may render at a line break.
HYPHENS = "-\u00ad\u2010"

RX_TRAILING_HYPHEN = re.compile(rf"\s?[{HYPHENS}]$")
# A word ending in a hyphen followed by a lowercase word, within one line of text.
RX_SPLIT_WORD = re.compile(rf"(?<=\w)[{HYPHENS}]\s+(?=\p{{Ll}})")

SPACE_FIX = (
    (re.compile(r"\s+"), " "),
    (re.compile(r"\s+([.,!?:;])"), r"\1"),
)


def ends_with_hyphen(line: str) -> bool:
    return bool(RX_TRAILING_HYPHEN.search(line))


def _starts_lowercase(line: str) -> bool:
    return bool(line) and line[0].islower()


def join_lines(lines: Iterable[str]) -> str:
    """
    Join the lines of one passage.

    A line ending in a hyphen whose successor starts with a lowercase letter is
    glued to it without the hyphen ("consis-" + "tent" -> "consistent");
    everything else is joined with a single space. Chains of split lines are
    handled because the accumulated text is re-checked at every step.
    """
    out = ""
    for raw in lines:
        line = (raw or "").strip()
        if not line:
            continue
        if not out:
            out = line
        elif ends_with_hyphen(out) and _starts_lowercase(line):
            out = RX_TRAILING_HYPHEN.sub("", out) + line
        else:
            out = out + " " + line
    return out


def join_split_words(text: str) -> str:
    return RX_SPLIT_WORD.sub("", text)


def collapse_whitespace(text: str) -> str:
    rx, rep = SPACE_FIX[0]
    return rx.sub(rep, text)


def fix_punctuation_spacing(text: str) -> str:
    rx, rep = SPACE_FIX[1]
    return rx.sub(rep, text)


def repair_passage(lines: List[str]) -> str:
    """Hyphenation repair, whitespace normalization, punctuation spacing. Returns '' for blank input."""
    txt = join_lines(lines)
    txt = join_split_words(txt)
    for rx, rep in SPACE_FIX:
        txt = rx.sub(rep, txt)
    return txt.strip()
