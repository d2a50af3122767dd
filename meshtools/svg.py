"""Resizing of SVG documents by rewriting the width and height of svg elements."""

from __future__ import annotations

from xml.parsers import expat

XMLTAG = '<?xml version="1.0" encoding="UTF-8"?><!DOCTYPE svg>'

_TEXT_ESCAPES = str.maketrans(
    {"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&#34;", "'": "&#39;", "\r": "&#xD;"}
)
_ATTR_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&#34;",
        "'": "&#39;",
        "\r": "&#xD;",
        "\n": "&#xA;",
        "\t": "&#x9;",
    }
)


def _local(name: str) -> str:
    return name.rpartition(":")[2]


class _Rewriter:
    """Collects the re-encoded document while expat walks the input."""

    def __init__(self, width: int, height: int, keep_prolog: bool) -> None:
        self._width = str(width)
        self._height = str(height)
        self._keep_prolog = keep_prolog
        self.parts: list[str] = []

    def _resize(self, pairs: list[tuple[str, str]]) -> list[tuple[str, str]]:
        updated_width = updated_height = False
        resized = []
        for key, value in pairs:
            local = _local(key)
            if local == "width":
                value, updated_width = self._width, True
            elif local == "height":
                value, updated_height = self._height, True
            resized.append((key, value))
        if not updated_height:
            resized.append(("height", self._height))
        if not updated_width:
            resized.append(("width", self._width))
        return resized

    def start(self, name: str, attrs: list[str]) -> None:
        pairs = list(zip(attrs[::2], attrs[1::2]))
        if _local(name) == "svg":
            pairs = self._resize(pairs)
        else:
            pairs = [(key, value) for key, value in pairs if key != "xmlns"]
        rendered = "".join(
            f' {key}="{value.translate(_ATTR_ESCAPES)}"' for key, value in pairs
        )
        self.parts.append(f"<{name}{rendered}>")

    def end(self, name: str) -> None:
        self.parts.append(f"</{name}>")

    def text(self, data: str) -> None:
        self.parts.append(data.translate(_TEXT_ESCAPES))

    def comment(self, data: str) -> None:
        self.parts.append(f"<!--{data}-->")

    def instruction(self, target: str, data: str) -> None:
        self.parts.append(f"<?{target} {data}?>" if data else f"<?{target}?>")

    def declaration(self, version: str | None, encoding: str | None, standalone: int) -> None:
        if not self._keep_prolog:
            return
        decl = f'<?xml version="{version or "1.0"}"'
        if encoding:
            decl += f' encoding="{encoding}"'
        if standalone != -1:
            decl += f' standalone="{"yes" if standalone else "no"}"'
        self.parts.append(decl + "?>")

    def doctype(self, name: str, system_id: str | None, public_id: str | None, _internal: int) -> None:
        if not self._keep_prolog:
            return
        if public_id:
            self.parts.append(f'<!DOCTYPE {name} PUBLIC "{public_id}" "{system_id or ""}">')
        elif system_id:
            self.parts.append(f'<!DOCTYPE {name} SYSTEM "{system_id}">')
        else:
            self.parts.append(f"<!DOCTYPE {name}>")


def update_svg_string(svg: str, width: int, height: int, skip_header: bool = False) -> str:
    """Return the SVG with width and height set on every svg element.

    Missing width and height attributes are added, redundant default
    namespace declarations on other elements are dropped, and unless
    skip_header is set the result is prefixed with XMLTAG.

    Raises ValueError when the input is not well-formed XML.
    """
    if not svg:
        return ""
    rewriter = _Rewriter(width, height, keep_prolog=skip_header)
    parser = expat.ParserCreate()
    parser.ordered_attributes = True
    parser.buffer_text = True
    parser.StartElementHandler = rewriter.start
    parser.EndElementHandler = rewriter.end
    parser.CharacterDataHandler = rewriter.text
    parser.CommentHandler = rewriter.comment
    parser.ProcessingInstructionHandler = rewriter.instruction
    parser.XmlDeclHandler = rewriter.declaration
    parser.StartDoctypeDeclHandler = rewriter.doctype
    try:
        parser.Parse(svg, True)
    except expat.ExpatError as exc:
        raise ValueError(f"invalid SVG document: {exc}") from exc
    body = "".join(rewriter.parts)
    if body and not skip_header:
        return XMLTAG + body
    return body