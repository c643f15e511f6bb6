"""
API Namespaces - Organized endpoint groups
"""

import unicodedata
from typing import Dict, Optional
from urllib.parse import quote

from flask import Response, current_app, request
from flask_restx import Namespace, Resource
from werkzeug.exceptions import RequestEntityTooLarge

from dropin.api.v1.models import error_response, group_response, upload_response
from dropin.application import UploadItem
from dropin.domain.errors import (
    CodeExpiredError,
    CodeNotFoundError,
    DomainError,
    EmptyBatchError,
    ErrorCategory,
    PayloadTooLargeError,
    RangeNotSatisfiableError,
    StorageFailureError,
    StoredFileNotFoundError,
    UnsupportedTypeError,
    create_error_response,
)
from dropin.domain.transfer import ByteRange, CodeGroup, FileRecord

UPLOAD_FIELD = "files"

# Domain exception -> (category, HTTP status)
ERROR_STATUS = {
    CodeNotFoundError: (ErrorCategory.CODE_NOT_FOUND, 404),
    StoredFileNotFoundError: (ErrorCategory.FILE_NOT_FOUND, 404),
    CodeExpiredError: (ErrorCategory.CODE_EXPIRED, 410),
    RangeNotSatisfiableError: (ErrorCategory.RANGE_NOT_SATISFIABLE, 416),
    EmptyBatchError: (ErrorCategory.EMPTY_BATCH, 400),
    UnsupportedTypeError: (ErrorCategory.UNSUPPORTED_TYPE, 400),
    PayloadTooLargeError: (ErrorCategory.PAYLOAD_TOO_LARGE, 413),
    StorageFailureError: (ErrorCategory.STORAGE_FAILURE, 503),
}


# =============================================================================
# Upload Namespace - Create a share
# =============================================================================

upload_ns = Namespace("upload", description="Upload files and receive a share code")


@upload_ns.route("")
class Upload(Resource):
    """Upload a batch of files"""

    @upload_ns.doc("upload_files")
    @upload_ns.response(201, "Created", upload_response)
    @upload_ns.response(400, "Empty batch or unsupported type", error_response)
    @upload_ns.response(413, "Payload Too Large", error_response)
    @upload_ns.response(503, "Storage Unavailable", error_response)
    def post(self):
        """
        Upload one or more files

        Send a multipart body with one or more parts named `files`. The whole
        batch is stored or nothing is; the response carries the share code.
        """
        upload_service = getattr(current_app, "upload_service", None)
        if upload_service is None:
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, "Upload service not initialized", status_code=503
            )

        try:
            uploaded = request.files.getlist(UPLOAD_FIELD)
        except RequestEntityTooLarge:
            current_app.logger.warning(
                f"[UPLOAD] Rejected body of {request.content_length} bytes"
            )
            return create_error_response(
                ErrorCategory.PAYLOAD_TOO_LARGE, "Request body too large", status_code=413
            )

        # Browsers send an empty part when no file was picked
        items = [
            UploadItem(
                display_name=storage.filename,
                content_type=storage.mimetype,
                content=storage.stream,
            )
            for storage in uploaded
            if storage.filename
        ]

        try:
            group = upload_service.upload(items)
        except DomainError as e:
            return _domain_error_response(e, "[UPLOAD]")
        except Exception as e:
            current_app.logger.exception(f"[UPLOAD] Unexpected error: {e}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, str(e), status_code=500
            )

        current_app.logger.info(f"[UPLOAD] Code {group.code} issued for {len(group.files)} file(s)")
        return {
            "code": group.code,
            "expiresAt": group.expires_at.isoformat(),
            "files": [_serialize_file(record) for record in group.files],
        }, 201


# =============================================================================
# Info Namespace - Inspect a share
# =============================================================================

info_ns = Namespace("info", description="Look up the files behind a share code")


@info_ns.route("/<string:code>")
@info_ns.param("code", "The share code (case-insensitive)")
class Info(Resource):
    """File listing for a code"""

    @info_ns.doc("get_code_info")
    @info_ns.response(200, "Success", group_response)
    @info_ns.response(404, "Code Not Found", error_response)
    @info_ns.response(410, "Code Expired", error_response)
    def get(self, code):
        """
        List the files shared under a code
        """
        return _group_listing(code, "[INFO]")


# =============================================================================
# Download Namespace - Fetch shared files
# =============================================================================

download_ns = Namespace("download", description="Download shared files")


@download_ns.route("/<string:code>")
@download_ns.param("code", "The share code (case-insensitive)")
class DownloadGroup(Resource):
    """Metadata for downloading every file of a share"""

    @download_ns.doc("get_download_listing")
    @download_ns.response(200, "Success", group_response)
    @download_ns.response(404, "Code Not Found", error_response)
    @download_ns.response(410, "Code Expired", error_response)
    def get(self, code):
        """
        List files for sequential client-side download
        """
        return _group_listing(code, "[DOWNLOAD_ALL]", all_files=True)


@download_ns.route("/<string:code>/<string:stored_name>")
@download_ns.param("code", "The share code (case-insensitive)")
@download_ns.param("stored_name", "Stored name from the file listing")
class DownloadFile(Resource):
    """Stream one file"""

    @download_ns.doc("download_file")
    @download_ns.response(200, "File content")
    @download_ns.response(206, "Partial content")
    @download_ns.response(404, "Not Found", error_response)
    @download_ns.response(410, "Code Expired", error_response)
    @download_ns.response(416, "Range Not Satisfiable", error_response)
    def get(self, code, stored_name):
        """
        Download a file, honouring a single `Range: bytes=` request header
        """
        retrieval_service = getattr(current_app, "retrieval_service", None)
        if retrieval_service is None:
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, "Retrieval service not initialized", status_code=503
            )

        try:
            result = retrieval_service.download_one(code, stored_name, _requested_range())
        except RangeNotSatisfiableError as e:
            body, status = _domain_error_response(e, "[DOWNLOAD_FILE]")
            return body, status, {"Content-Range": f"bytes */{e.total_size}"}
        except DomainError as e:
            return _domain_error_response(e, "[DOWNLOAD_FILE]")
        except Exception as e:
            current_app.logger.exception(f"[DOWNLOAD_FILE] Unexpected error for {stored_name}: {e}")
            return create_error_response(ErrorCategory.SYSTEM_ERROR, str(e), status_code=500)

        response = Response(
            result.stream,
            status=206 if result.is_partial else 200,
            content_type=result.content_type,
            direct_passthrough=True,
        )
        response.headers["Content-Length"] = str(result.content_length)
        response.headers["Accept-Ranges"] = "bytes"
        response.headers.set(
            "Content-Disposition", "attachment", **_filename_options(result.display_name)
        )
        if result.is_partial:
            response.headers["Content-Range"] = result.content_range

        current_app.logger.info(
            f"[DOWNLOAD_FILE] Serving {stored_name} ({response.status_code}, "
            f"{result.content_length} bytes)"
        )
        return response


# =============================================================================
# Helper Functions
# =============================================================================

def _serialize_file(record: FileRecord) -> dict:
    return {
        "storedName": record.stored_name,
        "displayName": record.display_name,
        "size": record.size_bytes,
        "contentType": record.content_type,
    }


def _filename_options(display_name: str) -> Dict[str, str]:
    """
    Content-Disposition filename parameters that stay Latin-1 encodable.

    Non-ASCII names get an ASCII fallback plus an RFC 5987 `filename*`.
    """
    try:
        display_name.encode("ascii")
    except UnicodeEncodeError:
        simple = unicodedata.normalize("NFKD", display_name)
        simple = simple.encode("ascii", "ignore").decode("ascii").strip() or "download"
        quoted = quote(display_name, safe="!#$&+^`|~")
        return {"filename": simple, "filename*": f"UTF-8''{quoted}"}
    return {"filename": display_name}


def _serialize_group(group: CodeGroup) -> dict:
    return {
        "code": group.code,
        "expiresAt": group.expires_at.isoformat(),
        "remainingSeconds": group.get_remaining_seconds(current_app.clock()),
        "files": [_serialize_file(record) for record in group.files],
    }


def _group_listing(code: str, log_tag: str, all_files: bool = False):
    retrieval_service = getattr(current_app, "retrieval_service", None)
    if retrieval_service is None:
        return create_error_response(
            ErrorCategory.SYSTEM_ERROR, "Retrieval service not initialized", status_code=503
        )

    try:
        if all_files:
            group = retrieval_service.download_all(code)
        else:
            group = retrieval_service.get_group(code)
    except DomainError as e:
        return _domain_error_response(e, log_tag)
    except Exception as e:
        current_app.logger.exception(f"{log_tag} Unexpected error for code {code!r}: {e}")
        return create_error_response(ErrorCategory.SYSTEM_ERROR, str(e), status_code=500)

    return _serialize_group(group), 200


def _domain_error_response(error: DomainError, log_tag: str):
    """Map a domain exception to a structured error response."""
    for error_type, (category, status_code) in ERROR_STATUS.items():
        if isinstance(error, error_type):
            if status_code >= 500:
                current_app.logger.error(f"{log_tag} {error}")
            else:
                current_app.logger.info(f"{log_tag} {category.value}: {error}")
            return create_error_response(category, str(error), status_code=status_code)

    current_app.logger.error(f"{log_tag} Unmapped domain error: {error!r}")
    return create_error_response(ErrorCategory.SYSTEM_ERROR, str(error), status_code=500)


def _requested_range() -> Optional[ByteRange]:
    """
    Translate the Range header into a ByteRange.

    Only a single range in bytes is honoured. Absent, malformed,
    multi-range or non-byte requests get the full content.
    """
    header = request.range
    if header is None or header.units != "bytes" or len(header.ranges) != 1:
        return None

    begin, stop = header.ranges[0]
    if begin < 0:
        return ByteRange.suffix(-begin)
    return ByteRange(start=begin, end=None if stop is None else stop - 1)
