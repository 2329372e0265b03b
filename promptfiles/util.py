utf8_bom = b"\xef\xbb\xbf"

def strip_utf8_bom(data: bytes) -> bytes:
    # removes the utf-8 byte order mark from byte data if present.
    if data.startswith(utf8_bom):
        return data[len(utf8_bom):]
    return data

def annotate_line_numbers(text: str) -> str:
    # prefixes each line with its right-aligned 1-based number.
    lines = text.splitlines()
    if not lines:
        return ""
    width = len(str(len(lines)))
    return "".join(f"{i:>{width}} {line}\n" for i, line in enumerate(lines, start=1))
