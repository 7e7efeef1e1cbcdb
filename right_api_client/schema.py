from jsonschema import Draft4Validator

from .exceptions import MalformedResponseError

LINK_SCHEMA = {
    "type": "object",
    "properties": {
        "rel": {"type": "string"},
        "href": {"type": "string"}
    },
    "required": ["rel", "href"]
}

ACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "rel": {"type": "string"}
    },
    "required": ["rel"]
}

# Only the keys the client binds methods from are constrained; everything else is an attribute.
ENVELOPE_SCHEMA = {
    "type": "object",
    "properties": {
        "links": {
            "type": "array",
            "items": LINK_SCHEMA
        },
        "actions": {
            "type": "array",
            "items": ACTION_SCHEMA
        }
    }
}

Draft4Validator.check_schema(ENVELOPE_SCHEMA)
_validator = Draft4Validator(ENVELOPE_SCHEMA)


def validate_envelope(envelope):
    """
    Checks that ``envelope`` has the shape needed to bind links and actions.

    :param envelope: a deserialized JSON object
    :raises MalformedResponseError: if the envelope cannot be bound
    """
    errors = sorted(_validator.iter_errors(envelope), key=lambda e: [str(p) for p in e.absolute_path])
    if errors:
        raise MalformedResponseError('Malformed resource envelope: {}'.format(errors[0].message), errors)

    self_links = [link for link in envelope.get('links', ()) if link['rel'] == 'self']
    if len(self_links) > 1:
        raise MalformedResponseError('Resource envelope has {} "self" links'.format(len(self_links)))
    return envelope
