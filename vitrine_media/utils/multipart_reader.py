"""
Streaming multipart/form-data reader that stages files in memory.

The request body is consumed chunk by chunk with python-multipart's
``MultipartParser`` (the parser Starlette itself uses for forms). File parts
are never spooled to disk: each admitted file is accumulated into a single
in-memory buffer and handed over as a ``StagedFile``.

Admission gate:
- As soon as a file part's headers are complete, the limiter counts it and
  the classifier checks its declared content type, before any byte of the
  part is buffered.
- A file part with an empty filename (an empty file input) is ignored:
  it is neither counted, classified nor buffered.
- Every data chunk is checked against the per-file size limit before it is
  appended, so an oversized file is cut off while streaming.
- The first failure aborts parsing, releases everything staged so far and
  raises. Admission is atomic per request: either all files are returned or
  none are.
"""

import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from vitrine_media.models.upload import MediaKind, StagedFile
from vitrine_media.utils.media_classifier import ensure_media_type
from vitrine_media.utils.upload_errors import MalformedUploadError, UploadError
from vitrine_media.utils.upload_limits import UploadLimiter, UploadLimits


logger = logging.getLogger(__name__)

MULTIPART_FORM_DATA: bytes = b"multipart/form-data"

# Content type assumed for a file part that declares none
DEFAULT_PART_CONTENT_TYPE: str = "application/octet-stream"


def _safe_decode(value: bytes, charset: str) -> str:
    try:
        return value.decode(charset)
    except (UnicodeDecodeError, LookupError):
        return value.decode("latin-1")


def normalize_part_content_type(raw_value: bytes | None, charset: str = "utf-8") -> str:
    """
    Reduce a part's Content-Type header to its lower-cased media type.

    Parameters such as ``charset`` are dropped. A missing or blank header
    yields ``application/octet-stream``.
    """
    if not raw_value or not raw_value.strip():
        return DEFAULT_PART_CONTENT_TYPE
    media_type, _params = parse_options_header(raw_value)
    decoded = _safe_decode(media_type, charset).strip().lower()
    return decoded or DEFAULT_PART_CONTENT_TYPE


@dataclass
class ParsedUpload:
    """Files and text fields admitted from one multipart request."""

    files: list[StagedFile] = field(default_factory=list)
    fields: dict[str, str] = field(default_factory=dict)

    def files_in(self, field_name: str) -> list[StagedFile]:
        return [staged for staged in self.files if staged.field_name == field_name]

    def release(self) -> None:
        for staged in self.files:
            staged.release()


@dataclass
class _PartBuffer:
    field_name: str
    filename: str | None = None
    content_type: str | None = None
    kind: MediaKind | None = None
    data: bytearray = field(default_factory=bytearray)
    skipped: bool = False

    @property
    def is_file(self) -> bool:
        return self.filename is not None


class MultipartStager:
    """
    Callback target for ``MultipartParser``.

    Builds ``StagedFile`` objects for file parts and collects text fields,
    enforcing limits and classification as parts arrive.
    """

    def __init__(self, limits: UploadLimits, charset: str = "utf-8") -> None:
        self.limiter = UploadLimiter(limits)
        self.charset = charset
        self.files: list[StagedFile] = []
        self.fields: dict[str, str] = {}
        self._part: _PartBuffer | None = None
        self._part_open = False
        self._part_headers: dict[bytes, bytes] = {}
        self._header_name = b""
        self._header_value = b""

    @property
    def part_open(self) -> bool:
        """True while a part has begun but its closing boundary was not seen."""
        return self._part_open

    def callbacks(self) -> dict[str, Callable[..., Any]]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
        }

    def on_part_begin(self) -> None:
        self._part = None
        self._part_open = True
        self._part_headers = {}
        self._header_name = b""
        self._header_value = b""

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._part_headers[self._header_name.strip().lower()] = self._header_value.strip()
        self._header_name = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        disposition = self._part_headers.get(b"content-disposition")
        if disposition is None:
            raise MalformedUploadError("Multipart part is missing its Content-Disposition header")

        _disposition_type, options = parse_options_header(disposition)
        if b"name" not in options:
            raise MalformedUploadError("Multipart part is missing its field name")

        field_name = _safe_decode(options[b"name"], self.charset)

        if b"filename" not in options:
            self._part = _PartBuffer(field_name=field_name)
            return

        filename = _safe_decode(options[b"filename"], self.charset)
        if not filename:
            # Empty <input type="file">: browsers send filename="" and no body
            logger.debug("Ignoring empty file input in field=%s", field_name)
            self._part = _PartBuffer(field_name=field_name, filename=filename, skipped=True)
            return

        content_type = normalize_part_content_type(
            self._part_headers.get(b"content-type"), self.charset
        )

        self.limiter.admit_part(field_name, filename)
        kind = ensure_media_type(content_type, filename)

        logger.debug(
            "Admitted file part field=%s filename=%s content_type=%s",
            field_name,
            filename,
            content_type,
        )
        self._part = _PartBuffer(
            field_name=field_name,
            filename=filename,
            content_type=content_type,
            kind=kind,
        )

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        part = self._part
        if part is None:
            raise MalformedUploadError("Multipart data received before part headers")

        if part.skipped:
            return

        chunk = data[start:end]
        new_size = len(part.data) + len(chunk)
        if part.is_file:
            self.limiter.check_size(part.field_name, part.filename, new_size)
        else:
            self.limiter.check_field_value(part.field_name, new_size)
        part.data.extend(chunk)

    def on_part_end(self) -> None:
        part = self._part
        self._part = None
        self._part_open = False
        if part is None:
            raise MalformedUploadError("Multipart part ended before its headers were complete")
        if part.skipped:
            return

        if part.is_file and part.kind is not None:
            self.files.append(
                StagedFile(
                    field_name=part.field_name,
                    filename=part.filename or "",
                    content_type=part.content_type or DEFAULT_PART_CONTENT_TYPE,
                    kind=part.kind,
                    buffer=bytes(part.data),
                )
            )
        else:
            self.fields[part.field_name] = _safe_decode(bytes(part.data), self.charset)
        part.data.clear()

    def discard(self) -> None:
        """Release every staged buffer and forget the current part."""
        for staged in self.files:
            staged.release()
        self.files.clear()
        self.fields.clear()
        if self._part is not None:
            self._part.data.clear()
            self._part = None


async def read_multipart(
    stream: AsyncIterator[bytes],
    content_type_header: str | None,
    limits: UploadLimits,
) -> ParsedUpload:
    """
    Parse a multipart/form-data body into staged files and text fields.

    Args:
        stream: Async iterator over the raw request body chunks.
        content_type_header: The request's Content-Type header (with boundary).
        limits: Quota regime for this request.

    Returns:
        ParsedUpload: Every admitted file, in arrival order, plus text fields.

    Raises:
        MalformedUploadError: If the body is not valid multipart/form-data.
        LimiterError: If a size or count limit is exceeded.
        ClassificationError: If a file's declared type is not accepted.
    """
    if not content_type_header:
        raise MalformedUploadError("Missing Content-Type header: expected multipart/form-data")

    media_type, params = parse_options_header(content_type_header)
    if media_type.lower() != MULTIPART_FORM_DATA:
        raise MalformedUploadError(
            f"Unsupported request content type '{_safe_decode(media_type, 'latin-1')}': "
            "expected multipart/form-data"
        )

    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedUploadError("Missing multipart boundary in Content-Type header")

    charset = _safe_decode(params.get(b"charset", b"utf-8"), "latin-1")
    stager = MultipartStager(limits, charset=charset)
    parser = MultipartParser(boundary, stager.callbacks())

    try:
        async for chunk in stream:
            if chunk:
                parser.write(chunk)
        parser.finalize()
    except MultipartParseError as error:
        stager.discard()
        raise MalformedUploadError(f"Malformed multipart body: {error}") from error
    except UploadError:
        stager.discard()
        raise

    if stager.part_open:
        stager.discard()
        raise MalformedUploadError("Unexpected end of multipart body")

    logger.debug(
        "Staged %d file(s) and %d field(s) in %s mode",
        len(stager.files),
        len(stager.fields),
        limits.mode,
    )
    return ParsedUpload(files=list(stager.files), fields=dict(stager.fields))
