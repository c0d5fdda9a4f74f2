import json

import pytest
from rolo import Request

from funchost.events import decode_event
from funchost.events.legacy import convert_legacy_event, decode_request
from funchost.exceptions import EventDecodeError


def _request(doc, content_type="application/json") -> Request:
    return Request("POST", "/", headers={"Content-Type": content_type}, body=json.dumps(doc))


def test_pubsub_event():
    doc = {
        "context": {
            "eventId": "1215011316659232",
            "timestamp": "2020-05-18T12:13:19.209Z",
            "eventType": "google.pubsub.topic.publish",
            "resource": {
                "service": "pubsub.googleapis.com",
                "name": "projects/sample-project/topics/gcf-test",
                "type": "type.googleapis.com/google.pubsub.v1.PubsubMessage",
            },
        },
        "data": {
            "@type": "type.googleapis.com/google.pubsub.v1.PubsubMessage",
            "attributes": {"attribute1": "value1"},
            "data": "VGhpcyBpcyBhIHNhbXBsZSBtZXNzYWdl",
        },
    }

    event = decode_request(_request(doc))

    assert event.id == "1215011316659232"
    assert event.source == "//pubsub.googleapis.com/projects/sample-project/topics/gcf-test"
    assert event.type == "google.cloud.pubsub.topic.v1.messagePublished"
    assert event.specversion == "1.0"
    assert event.time == "2020-05-18T12:13:19.209Z"
    assert event.datacontenttype == "application/json"
    assert event.subject is None
    assert event.data == {
        "message": {
            "attributes": {"attribute1": "value1"},
            "data": "VGhpcyBpcyBhIHNhbXBsZSBtZXNzYWdl",
            "messageId": "1215011316659232",
            "publishTime": "2020-05-18T12:13:19.209Z",
        }
    }


def test_storage_event_with_top_level_context():
    doc = {
        "eventId": "1147091835525187",
        "timestamp": "2020-04-23T07:38:57.772Z",
        "eventType": "google.storage.object.finalize",
        "resource": {
            "service": "storage.googleapis.com",
            "name": "projects/_/buckets/some-bucket/objects/folder/Test.cs",
        },
        "data": {"bucket": "some-bucket", "name": "folder/Test.cs"},
    }

    event = decode_request(_request(doc))

    assert event.source == "//storage.googleapis.com/projects/_/buckets/some-bucket"
    assert event.subject == "objects/folder/Test.cs"
    assert event.type == "google.cloud.storage.object.v1.finalized"
    assert event.data == {"bucket": "some-bucket", "name": "folder/Test.cs"}


def test_firestore_event_with_string_resource():
    context = {
        "eventId": "7b8f1804-d38b-4b68-b37d-e2fb5d12d5a0-0",
        "timestamp": "2020-09-24T22:17:19.329Z",
        "eventType": "providers/cloud.firestore/eventTypes/document.write",
        "resource": "projects/project-id/databases/(default)/documents/gcf-test/2Vm2mI1d0wIaK2Waj5to",
    }

    event = convert_legacy_event(context, {"value": {}})

    assert event.source == "//firestore.googleapis.com/projects/project-id/databases/(default)"
    assert event.subject == "documents/gcf-test/2Vm2mI1d0wIaK2Waj5to"
    assert event.type == "google.cloud.firestore.document.v1.written"


def test_unknown_event_type_is_kept():
    context = {"eventId": "1", "eventType": "com.example.custom", "resource": "my-resource"}

    event = convert_legacy_event(context, None)

    assert event.type == "com.example.custom"
    assert event.source == "my-resource"


def test_missing_event_id():
    with pytest.raises(EventDecodeError):
        decode_request(_request({"context": {"eventType": "google.pubsub.topic.publish"}, "data": {}}))


def test_missing_resource_and_unknown_type():
    with pytest.raises(EventDecodeError):
        convert_legacy_event({"eventId": "1", "eventType": "com.example.custom"}, None)


@pytest.mark.parametrize(
    "doc, content_type",
    [
        ({"hello": "world"}, "application/json"),
        ([1, 2, 3], "application/json"),
        ({"eventId": "1", "eventType": "google.pubsub.topic.publish"}, "text/plain"),
    ],
)
def test_not_a_legacy_event(doc, content_type):
    assert decode_request(_request(doc, content_type)) is None


def test_decode_event_falls_back_to_legacy_events():
    doc = {"eventId": "1", "eventType": "google.pubsub.topic.publish", "data": {"data": "aGVsbG8="}}

    event = decode_event(_request(doc))

    assert event.source == "//pubsub.googleapis.com"
    assert event.data == {"message": {"data": "aGVsbG8=", "messageId": "1"}}
