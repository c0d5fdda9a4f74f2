"""Decoding of legacy (background function) events, which are converted into CloudEvents.

A legacy event is a JSON document that either wraps its metadata in a ``context`` object::

    {"context": {"eventId": "...", "timestamp": "...", "eventType": "...", "resource": "..."}, "data": {...}}

or carries the metadata at the top level::

    {"eventId": "...", "timestamp": "...", "eventType": "...", "resource": {...}, "data": {...}}
"""
import json
import re
from typing import Any, Dict, Mapping, Optional, Tuple

from werkzeug.wrappers.request import Request

from funchost.events.models import CloudEvent
from funchost.exceptions import EventDecodeError

PUBSUB_SERVICE = "pubsub.googleapis.com"
STORAGE_SERVICE = "storage.googleapis.com"
FIRESTORE_SERVICE = "firestore.googleapis.com"

# legacy event types and their CloudEvent counterparts
EVENT_TYPES = {
    "google.pubsub.topic.publish": "google.cloud.pubsub.topic.v1.messagePublished",
    "providers/cloud.pubsub/eventTypes/topic.publish": "google.cloud.pubsub.topic.v1.messagePublished",
    "google.storage.object.finalize": "google.cloud.storage.object.v1.finalized",
    "google.storage.object.delete": "google.cloud.storage.object.v1.deleted",
    "google.storage.object.archive": "google.cloud.storage.object.v1.archived",
    "google.storage.object.metadataUpdate": "google.cloud.storage.object.v1.metadataUpdated",
    "providers/cloud.firestore/eventTypes/document.write": "google.cloud.firestore.document.v1.written",
    "providers/cloud.firestore/eventTypes/document.create": "google.cloud.firestore.document.v1.created",
    "providers/cloud.firestore/eventTypes/document.update": "google.cloud.firestore.document.v1.updated",
    "providers/cloud.firestore/eventTypes/document.delete": "google.cloud.firestore.document.v1.deleted",
}

# prefixes of legacy event types, used to determine the service if the resource does not name it
SERVICE_PREFIXES = (
    ("google.pubsub.", PUBSUB_SERVICE),
    ("providers/cloud.pubsub/", PUBSUB_SERVICE),
    ("google.storage.", STORAGE_SERVICE),
    ("providers/cloud.storage/", STORAGE_SERVICE),
    ("providers/cloud.firestore/", FIRESTORE_SERVICE),
)

# resource names that are split into the event source and the event subject
SUBJECT_PATTERNS = {
    STORAGE_SERVICE: re.compile(r"^(projects/[^/]+/buckets/[^/]+)/(objects/.+)$"),
    FIRESTORE_SERVICE: re.compile(r"^(projects/[^/]+/databases/[^/]+)/(documents/.+)$"),
}


def decode_request(request: Request) -> Optional[CloudEvent]:
    """
    Decodes a legacy event from the given HTTP request and converts it into a CloudEvent.

    :param request: the request
    :return: the converted event, or None if the request does not carry a legacy event
    :raises EventDecodeError: if the request carries a legacy event that cannot be converted
    """
    if request.mimetype != "application/json":
        return None

    try:
        doc = json.loads(request.get_data().decode(request.mimetype_params.get("charset") or "utf-8"))
    except (ValueError, LookupError):
        return None

    if not isinstance(doc, dict) or not is_legacy_event(doc):
        return None

    context = doc["context"] if isinstance(doc.get("context"), dict) else doc

    return convert_legacy_event(context, doc.get("data"))


def convert_legacy_event(context: Mapping[str, Any], data: Any) -> CloudEvent:
    """
    Converts the context and data of a legacy event into a CloudEvent.

    :param context: the legacy event context (``eventId``, ``timestamp``, ``eventType``, ``resource``)
    :param data: the legacy event data
    :return: the CloudEvent
    :raises EventDecodeError: if the context lacks an event id or event type
    """
    event_id = context.get("eventId")
    legacy_type = context.get("eventType")
    if not event_id or not legacy_type:
        raise EventDecodeError("Legacy event is missing eventId or eventType")

    timestamp = context.get("timestamp")
    service, resource_name = _parse_resource(context.get("resource"), legacy_type)
    source, subject = _source_and_subject(service, resource_name)

    if service == PUBSUB_SERVICE and isinstance(data, dict):
        message = {k: v for k, v in data.items() if k != "@type"}
        message.setdefault("messageId", event_id)
        if timestamp:
            message.setdefault("publishTime", timestamp)
        data = {"message": message}

    return CloudEvent(
        id=str(event_id),
        source=source,
        type=EVENT_TYPES.get(legacy_type, legacy_type),
        data=data,
        datacontenttype="application/json",
        subject=subject,
        time=timestamp,
    )


def _parse_resource(resource: Any, legacy_type: str) -> Tuple[Optional[str], str]:
    service = None
    if isinstance(resource, dict):
        service = resource.get("service")
        name = resource.get("name") or ""
    else:
        name = resource or ""

    if not service:
        for prefix, prefix_service in SERVICE_PREFIXES:
            if legacy_type.startswith(prefix):
                service = prefix_service
                break

    return service, str(name)


def _source_and_subject(service: Optional[str], resource_name: str) -> Tuple[str, Optional[str]]:
    if not service:
        if not resource_name:
            raise EventDecodeError("Legacy event has neither a resource nor a known event type")
        return resource_name, None
    if not resource_name:
        return f"//{service}", None

    pattern = SUBJECT_PATTERNS.get(service)
    if pattern:
        match = pattern.match(resource_name)
        if match:
            return f"//{service}/{match.group(1)}", match.group(2)

    return f"//{service}/{resource_name}", None


def is_legacy_event(doc: Dict[str, Any]) -> bool:
    return isinstance(doc.get("context"), dict) or "eventId" in doc
