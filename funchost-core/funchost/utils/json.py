import decimal
import json
from datetime import date, datetime

from funchost.utils.strings import to_str


class CustomEncoder(json.JSONEncoder):
    """Helper class to convert JSON documents with datetime, decimals, or bytes."""

    def default(self, o):
        if isinstance(o, decimal.Decimal):
            if o % 1 > 0:
                return float(o)
            else:
                return int(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, (bytes, bytearray)):
            return to_str(bytes(o))
        if isinstance(o, (set, frozenset)):
            return list(o)
        return super(CustomEncoder, self).default(o)


def canonical_json(doc) -> str:
    """Serializes the given document the way funchost writes JSON response bodies."""
    return json.dumps(doc, cls=CustomEncoder)
