from datetime import datetime, timezone

import pytest
from google.cloud.firestore_v1 import GeoPoint
from google.cloud.firestore_v1.types import document as document_pb
from google.type import latlng_pb2

from docbatch import DocumentRef, DocumentSnapshot, ValueDecodeError
from docbatch.common.values import decode_fields, decode_value
from tests.fixtures.fake_firestore import A_TIMESTAMP, DB_PATH, make_doc


def _raw(value: document_pb.Value):
    return document_pb.Value.pb(value)


class TestDecodeValue:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (document_pb.Value(null_value=0), None),
            (document_pb.Value(boolean_value=True), True),
            (document_pb.Value(integer_value=-3), -3),
            (document_pb.Value(double_value=1.5), 1.5),
            (document_pb.Value(string_value="héllo"), "héllo"),
            (document_pb.Value(bytes_value=b"\x00\x01"), b"\x00\x01"),
        ],
    )
    def test_scalars(self, value, expected):
        assert decode_value(_raw(value)) == expected

    def test_timestamp(self):
        ts = datetime(2020, 5, 17, 8, 30, tzinfo=timezone.utc)
        got = decode_value(_raw(document_pb.Value(timestamp_value=ts)))
        assert got == ts

    def test_geo_point(self):
        value = document_pb.Value(geo_point_value=latlng_pb2.LatLng(latitude=1.5, longitude=-2.0))
        assert decode_value(_raw(value)) == GeoPoint(1.5, -2.0)

    def test_nested_array_and_map(self):
        value = document_pb.Value(
            map_value=document_pb.MapValue(
                fields={
                    "tags": document_pb.Value(
                        array_value=document_pb.ArrayValue(
                            values=[document_pb.Value(string_value="a"), document_pb.Value(integer_value=1)]
                        )
                    ),
                    "inner": document_pb.Value(
                        map_value=document_pb.MapValue(fields={"ok": document_pb.Value(boolean_value=False)})
                    ),
                }
            )
        )
        assert decode_value(_raw(value)) == {"tags": ["a", 1], "inner": {"ok": False}}

    def test_reference_without_client_is_a_string(self):
        name = DB_PATH + "/documents/C/a"
        assert decode_value(_raw(document_pb.Value(reference_value=name))) == name

    def test_reference_with_client_is_a_document_ref(self, client):
        name = DB_PATH + "/documents/C/a"
        got = decode_value(_raw(document_pb.Value(reference_value=name)), client)
        assert isinstance(got, DocumentRef)
        assert got == client.doc("C/a")

    def test_reference_to_other_database_stays_a_string(self, client):
        name = "projects/other/databases/(default)/documents/C/a"
        assert decode_value(_raw(document_pb.Value(reference_value=name)), client) == name

    def test_unset_value_is_rejected(self):
        with pytest.raises(ValueDecodeError):
            decode_value(_raw(document_pb.Value()))

    def test_decode_fields(self):
        doc = make_doc("C/a", {"x": document_pb.Value(integer_value=1)})
        assert decode_fields(document_pb.Document.pb(doc).fields) == {"x": 1}


class TestDocumentSnapshot:

    def test_found_snapshot(self, client):
        doc = make_doc("C/a", {"a": document_pb.Value(map_value=document_pb.MapValue(
            fields={"b": document_pb.Value(integer_value=4)}))})
        snap = DocumentSnapshot.from_found(client.doc("C/a"), document_pb.Document.pb(doc), A_TIMESTAMP)

        assert snap.exists
        assert snap.id == "a"
        assert snap.create_time == A_TIMESTAMP
        assert snap.update_time == A_TIMESTAMP
        assert snap.read_time == A_TIMESTAMP
        assert snap.get("a.b") == 4
        with pytest.raises(KeyError):
            snap.get("a.c")

    def test_to_dict_returns_a_copy(self, client):
        doc = make_doc("C/a", {"a": document_pb.Value(map_value=document_pb.MapValue(
            fields={"b": document_pb.Value(integer_value=4)}))})
        snap = DocumentSnapshot.from_found(client.doc("C/a"), document_pb.Document.pb(doc), A_TIMESTAMP)

        data = snap.to_dict()
        data["a"]["b"] = 99
        assert snap.to_dict() == {"a": {"b": 4}}

    def test_missing_snapshot(self, client):
        snap = DocumentSnapshot.missing(client.doc("C/b"), A_TIMESTAMP)

        assert not snap.exists
        assert snap.to_dict() is None
        assert snap.create_time is None
        assert snap.read_time == A_TIMESTAMP
        assert snap.reference.path == DB_PATH + "/documents/C/b"
        with pytest.raises(KeyError):
            snap.get("f")
