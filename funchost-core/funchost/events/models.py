from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from funchost.exceptions import EventDecodeError

REQUIRED_ATTRIBUTES = ("id", "source", "type", "specversion")
OPTIONAL_ATTRIBUTES = ("datacontenttype", "dataschema", "subject", "time")

SPEC_VERSION = "1.0"


@dataclass
class CloudEvent:
    """
    An event in CloudEvents format, as it is passed to event functions. Context attributes that are not part of the
    CloudEvents core attributes are kept in ``extensions``.
    """

    id: str
    source: str
    type: str
    specversion: str = SPEC_VERSION
    data: Any = None
    datacontenttype: Optional[str] = None
    dataschema: Optional[str] = None
    subject: Optional[str] = None
    time: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, attributes: Mapping[str, Any], data: Any = None) -> "CloudEvent":
        """
        Creates a CloudEvent from a dictionary of context attributes.

        :param attributes: the context attributes (names are the lower-case CloudEvents attribute names)
        :param data: the event data
        :return: a new CloudEvent
        :raises EventDecodeError: if a required attribute is missing
        """
        missing = [name for name in REQUIRED_ATTRIBUTES if not attributes.get(name)]
        if missing:
            raise EventDecodeError(f"CloudEvent is missing required attributes: {', '.join(missing)}")

        known = REQUIRED_ATTRIBUTES + OPTIONAL_ATTRIBUTES
        return cls(
            id=str(attributes["id"]),
            source=str(attributes["source"]),
            type=str(attributes["type"]),
            specversion=str(attributes["specversion"]),
            data=data,
            datacontenttype=attributes.get("datacontenttype"),
            dataschema=attributes.get("dataschema"),
            subject=attributes.get("subject"),
            time=attributes.get("time"),
            extensions={k: v for k, v in attributes.items() if k not in known},
        )

    def attributes(self) -> Dict[str, Any]:
        """Returns all context attributes (core attributes that are set, and extensions) as dictionary."""
        result = {
            "id": self.id,
            "source": self.source,
            "type": self.type,
            "specversion": self.specversion,
        }
        for name in OPTIONAL_ATTRIBUTES:
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        result.update(self.extensions)
        return result
