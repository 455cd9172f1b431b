"""
Attachment records (files linked to transactions).
"""

from pydantic import StrictStr

from .decoding import Timestamp, WireModel


class AttachmentUpload(WireModel):
    """Upload slot returned by the attachment upload endpoint.

    The file body is sent to upload_url; file_url is its permanent address
    and is what gets registered against a transaction afterwards.
    """

    file_url: StrictStr = ""
    upload_url: StrictStr = ""


class Attachment(WireModel):
    """A file attached to a transaction."""

    id: StrictStr = ""
    user_id: StrictStr = ""
    # Transaction the attachment belongs to
    external_id: StrictStr = ""
    file_url: StrictStr = ""
    file_type: StrictStr = ""
    created: Timestamp = None
