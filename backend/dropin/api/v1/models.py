"""
API Models for response documentation
"""

from flask_restx import fields

from dropin.api.v1 import api

# =============================================================================
# Response Models
# =============================================================================

file_model = api.model(
    "File",
    {
        "storedName": fields.String(
            description="Store-internal name, used in download URLs",
            example="1718000000000-123456789-report.pdf",
        ),
        "displayName": fields.String(description="Original file name", example="report.pdf"),
        "size": fields.Integer(description="Size in bytes", min=0),
        "contentType": fields.String(description="MIME type recorded at upload"),
    },
)

group_response = api.model(
    "CodeGroup",
    {
        "code": fields.String(description="Share code", example="K7QX2"),
        "expiresAt": fields.String(description="Expiry time (ISO timestamp)"),
        "remainingSeconds": fields.Integer(description="Seconds until the code expires"),
        "files": fields.List(fields.Nested(file_model), description="Files in upload order"),
    },
)

upload_response = api.model(
    "UploadResponse",
    {
        "code": fields.String(description="Share code", example="K7QX2"),
        "expiresAt": fields.String(description="Expiry time (ISO timestamp)"),
        "files": fields.List(fields.Nested(file_model), description="Stored files"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing message"),
        "action": fields.String(description="Suggested next step"),
    },
)
