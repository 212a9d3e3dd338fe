"""Request body encoding.

Exactly one body source is used per request, checked in this order:

1. ``json``  -> ``application/json``
2. ``xml``   -> ``application/xml``
3. ``file``  -> multipart form (POST) or the raw stream (other verbs)
4. ``data``  -> ``application/x-www-form-urlencoded``
5. nothing   -> no body and no Content-Type
"""

from __future__ import annotations

import json
import mimetypes
import xml.etree.ElementTree as ET
from contextlib import closing
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, BinaryIO, Iterator, Mapping, NamedTuple, Union
from urllib.parse import urlencode

import httpx

from .config import FileUpload, RequestOptions
from .models import EncodingError, InvalidInputError, UploadIOError

JSON_CONTENT_TYPE = "application/json"
XML_CONTENT_TYPE = "application/xml"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

STREAM_CHUNK_SIZE = 64 * 1024

# Multipart bodies are rendered by httpx.Request; this URL is never contacted
_MULTIPART_URL = "http://localhost/"

# Reading a closed stream raises ValueError
_READ_ERRORS = (OSError, ValueError)


@dataclass(frozen=True)
class NoBody:
    kind = "none"


@dataclass(frozen=True)
class JSONBody:
    value: Any
    kind = "json"


@dataclass(frozen=True)
class XMLBody:
    value: Any
    kind = "xml"


@dataclass(frozen=True)
class FileBody:
    upload: FileUpload
    fields: Mapping[str, str] | None = None
    kind = "file"


@dataclass(frozen=True)
class FormBody:
    fields: Mapping[str, str]
    kind = "form"


BodySource = Union[NoBody, JSONBody, XMLBody, FileBody, FormBody]


class EncodedBody(NamedTuple):
    """Encoded request body.

    Attributes:
        content: Body bytes, a chunk iterator for streamed uploads, or None.
        content_type: Content-Type header value, or None to leave it unset.
    """

    content: bytes | Iterator[bytes] | None
    content_type: str | None


def select_body_source(options: RequestOptions) -> BodySource:
    """Pick the single body source that options describe."""
    if options.json is not None:
        return JSONBody(options.json)
    if options.xml is not None:
        return XMLBody(options.xml)
    if options.file is not None:
        return FileBody(options.file, options.data)
    if options.data is not None:
        return FormBody(options.data)
    return NoBody()


def encode_body(options: RequestOptions, method: str = "POST") -> EncodedBody:
    """Encode the request body described by options.

    Args:
        options: Request options.
        method: HTTP method. File uploads are multipart only for POST.

    Returns:
        EncodedBody with the content and its Content-Type.

    Raises:
        EncodingError: If a JSON or XML value cannot be serialized.
        InvalidInputError: If a POST upload has no file stream.
        UploadIOError: If reading the upload stream fails.
    """
    source = select_body_source(options)

    if isinstance(source, JSONBody):
        return EncodedBody(encode_json(source.value), JSON_CONTENT_TYPE)

    if isinstance(source, XMLBody):
        return EncodedBody(encode_xml(source.value), XML_CONTENT_TYPE)

    if isinstance(source, FileBody):
        if method.upper() == "POST":
            return encode_multipart(source.upload, source.fields)
        return encode_file_stream(source.upload)

    if isinstance(source, FormBody):
        return EncodedBody(encode_form(source.fields).encode("ascii"), FORM_CONTENT_TYPE)

    return EncodedBody(None, None)


def encode_json(value: Any) -> bytes:
    """Serialize value as compact JSON followed by a newline."""
    try:
        text = json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise EncodingError("JSON", str(e), original_error=e) from e
    return (text + "\n").encode("utf-8")


def encode_xml(value: Any) -> bytes:
    """Serialize value as an XML document without declaration.

    Accepted values:
        - an ``xml.etree.ElementTree.Element``
        - a mapping with exactly one key, the root tag
        - a dataclass instance, rooted at its class name

    Inside mappings, ``@name`` keys become attributes, ``#text`` becomes
    element text, and list values repeat the element.
    """
    try:
        if isinstance(value, ET.Element):
            element = value
        elif is_dataclass(value) and not isinstance(value, type):
            element = _build_element(type(value).__name__, asdict(value))
        elif isinstance(value, Mapping) and len(value) == 1:
            tag, content = next(iter(value.items()))
            element = _build_element(tag, content)
        else:
            raise EncodingError(
                "XML",
                f"unsupported value of type {type(value).__name__}",
            )
        return ET.tostring(element, encoding="utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError("XML", str(e), original_error=e) from e


def _build_element(tag: str, content: Any) -> ET.Element:
    if not isinstance(tag, str) or not tag:
        raise TypeError(f"invalid XML tag {tag!r}")
    element = ET.Element(tag)
    _fill_element(element, content)
    return element


def _fill_element(element: ET.Element, content: Any) -> None:
    if content is None:
        return
    if isinstance(content, Mapping):
        for key, child in content.items():
            if not isinstance(key, str):
                raise TypeError(f"invalid XML tag {key!r}")
            if key.startswith("@"):
                element.set(key[1:], _xml_text(child))
            elif key == "#text":
                element.text = _xml_text(child)
            elif isinstance(child, (list, tuple)):
                for item in child:
                    element.append(_build_element(key, item))
            else:
                element.append(_build_element(key, child))
        return
    element.text = _xml_text(content)


def _xml_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_form(fields: Mapping[str, str]) -> str:
    """URL-encode fields with keys in lexicographic order."""
    return urlencode(sorted(fields.items()))


def encode_multipart(upload: FileUpload, fields: Mapping[str, str] | None = None) -> EncodedBody:
    """Build a multipart/form-data body: the file part, then one part per field.

    The upload stream is read completely and closed, whether or not the read
    succeeds.
    """
    if upload.file_contents is None:
        raise InvalidInputError("FileUpload.file_contents cannot be None")

    with closing(upload.file_contents) as stream:
        try:
            contents = stream.read()
        except _READ_ERRORS as e:
            raise UploadIOError(f"Failed to read {upload.file_name!r}: {e}", original_error=e) from e

    files = [(upload.field_name, (upload.file_name, contents, "application/octet-stream"))]
    files.extend((name, (None, str(value))) for name, value in (fields or {}).items())

    request = httpx.Request("POST", _MULTIPART_URL, files=files)
    return EncodedBody(request.read(), request.headers["Content-Type"])


def encode_file_stream(upload: FileUpload) -> EncodedBody:
    """Send the upload stream itself as the body (PUT, PATCH, ...)."""
    content_type, _ = mimetypes.guess_type(upload.file_name)
    if upload.file_contents is None:
        return EncodedBody(b"", content_type)
    return EncodedBody(iter_stream(upload.file_contents, upload.file_name), content_type)


def iter_stream(stream: BinaryIO, name: str = "", chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield chunks from stream, closing it when exhausted or abandoned."""
    with closing(stream):
        while True:
            try:
                chunk = stream.read(chunk_size)
            except _READ_ERRORS as e:
                raise UploadIOError(f"Failed to read {name!r}: {e}", original_error=e) from e
            if not chunk:
                return
            yield chunk
