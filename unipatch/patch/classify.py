from unipatch.patch.models import LineKind

HUNK_MARKER = "@@"
BODY_PREFIXES = (" ", "-", "+")


def classify(line: str, in_hunk_body: bool) -> LineKind:
    """
    Tag a raw patch line given whether the tokenizer is inside a hunk body.

    File headers are only recognized outside a hunk body, so a deleted line
    whose text starts with `--` stays a body line.
    """

    if not in_hunk_body and line.startswith("---"):
        return LineKind.OLD_FILE_HEADER
    if not in_hunk_body and line.startswith("+++"):
        return LineKind.NEW_FILE_HEADER
    if line.startswith(HUNK_MARKER) and line.rfind(HUNK_MARKER) != 0:
        return LineKind.HUNK_HEADER
    if in_hunk_body and line.startswith(BODY_PREFIXES):
        return LineKind.HUNK_BODY_LINE
    if line.startswith("\\"):
        return LineKind.NO_NEWLINE_MARKER
    return LineKind.UNRECOGNIZED
