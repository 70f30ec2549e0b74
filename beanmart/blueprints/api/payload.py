"""Read JSON or multipart request bodies into one plain dict."""
import uuid

from flask import request

from beanmart.errors import InvalidInput

LIST_FIELDS = ("urls", "imageDataArray", "positions")


def request_payload():
    """Merge JSON body or form fields into a dict.

    Multipart forms repeat list fields (``urls`` or ``urls[]``); those are
    collected into lists so both body styles look the same downstream.
    """
    if request.is_json:
        body = request.get_json(silent=True)
        if body is None:
            raise InvalidInput("Malformed JSON body")
        return body

    payload = {key: request.form.get(key) for key in request.form.keys()}
    for field in LIST_FIELDS:
        values = request.form.getlist(field) + request.form.getlist(f"{field}[]")
        if values:
            payload[field] = values
        payload.pop(f"{field}[]", None)
    return payload


def parse_uuid(value, what="image ID"):
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise InvalidInput(f"Invalid {what} format. Expected UUID format.")
