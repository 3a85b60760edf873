"""
Decoding of raw client text into interpreter-ready source.

Clients type code into a chat line, so characters that cannot be entered
directly may be written as Unicode escapes (`\\u00e9`). Decoding replaces them
and keeps enough metadata to report errors against what the client typed.
"""

from typing import List, Optional

from ace.ace_datatypes import SourceError, ErrorInformation

_HEX_DIGITS = "0123456789abcdefABCDEF"


class SourceMetadata:
    """Maps positions of the decoded source back to the raw source."""

    def __init__(self, source: str):
        self.source = source
        # decoded index -> raw index, plus a final entry for end of text
        self._offsets: Optional[List[int]] = None

    def record(self, offsets: List[int]):
        self._offsets = offsets

    def raw_index(self, index: int) -> int:
        offsets = self._offsets
        if offsets is None:
            return index
        if index < 0:
            return index
        if index < len(offsets):
            return offsets[index]
        # Past the end: keep the distance so end-of-input errors stay visible
        return offsets[-1] + (index - len(offsets) + 1)

    def generate_error_information(self, error: SourceError) -> ErrorInformation:
        start = self.raw_index(error.start)
        if self._offsets is not None and error.end + 1 < len(self._offsets):
            # The last raw character of the (possibly escaped) end character
            end = self._offsets[error.end + 1] - 1
        else:
            end = self.raw_index(error.end)
        end = max(start, end)

        source = self.source
        line_start = source.rfind("\n", 0, min(start, len(source))) + 1
        line_end = source.find("\n", line_start)
        if line_end == -1:
            line_end = len(source)
        line = source[line_start:line_end]
        start = min(start - line_start, len(line))
        end = max(start, min(end - line_start, len(line)))
        return ErrorInformation(error.message, line, start, end)


def decode(source: str, metadata: SourceMetadata) -> str:
    """Replace `\\uXXXX` escapes, recording the origin of each decoded character.

    Only a backslash preceded by an even number of backslashes starts an
    escape, so `\\\\u0041` stays as typed.
    """
    out = []
    offsets = []
    i = 0
    n = len(source)
    while i < n:
        c = source[i]
        if c != "\\":
            out.append(c)
            offsets.append(i)
            i += 1
            continue
        run_end = i
        while run_end < n and source[run_end] == "\\":
            run_end += 1
        run = run_end - i
        escaped = run % 2 == 1 and run_end < n and source[run_end] == "u"
        # Backslashes that cannot start an escape are copied verbatim
        plain = run - 1 if escaped else run
        for k in range(i, i + plain):
            out.append("\\")
            offsets.append(k)
        if not escaped:
            i = run_end
            continue
        escape_start = run_end - 1
        j = run_end
        while j < n and source[j] == "u":
            j += 1
        digits = source[j:j + 4]
        if len(digits) != 4 or any(d not in _HEX_DIGITS for d in digits):
            bad_end = j
            while bad_end < min(n, j + 4) and source[bad_end] in _HEX_DIGITS:
                bad_end += 1
            raise SourceError("Invalid unicode escape", escape_start, max(bad_end, j + 1) - 1)
        out.append(chr(int(digits, 16)))
        offsets.append(escape_start)
        i = j + 4
    offsets.append(n)
    metadata.record(offsets)
    return "".join(out)
