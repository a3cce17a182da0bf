"""
Tests for BootcampRepository against a mocked Firestore client.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, call

import pytest
from google.cloud.firestore import GeoPoint
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from devcamper.core.geopoint import GeoPointModel, Location
from devcamper.core.query import FilterClause, FilterOperator, ListQuery, SortField
from devcamper.db.bootcamps import BootcampRepository
from devcamper.models.bootcamp import BootcampCreate, BootcampSelection

from conftest import bootcamp_data


def fake_doc(doc_id, data, exists=True):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = data
    doc.reference = MagicMock(name=f"ref-{doc_id}")
    return doc


def stored(doc_id, lat=42.350846, lng=-71.10383, **overrides):
    data = bootcamp_data(**overrides)
    data.pop("id")
    data["location"] = {"type": "Point", "coordinates": GeoPoint(lat, lng)}
    data["created_at"] = datetime(2024, 1, 15, tzinfo=timezone.utc)
    return fake_doc(doc_id, data)


def chain():
    query = MagicMock()
    for method in ("where", "select", "order_by", "offset", "limit"):
        getattr(query, method).return_value = query
    return query


@pytest.fixture
def db():
    db = MagicMock()
    db.bootcamps = chain()
    db.courses = chain()
    db.collection.side_effect = lambda name: {"bootcamps": db.bootcamps, "courses": db.courses}[name]
    return db


def test_count(db):
    db.bootcamps.count.return_value.get.return_value = [[MagicMock(value=7)]]

    assert BootcampRepository(db).count() == 7


def test_find_builds_query(db):
    db.bootcamps.stream.return_value = [stored("b1")]
    db.courses.stream.return_value = []
    query = ListQuery(
        filters=[
            FilterClause(field="average_cost", operator=FilterOperator.lte, value=10000),
            FilterClause(field="careers", operator=FilterOperator.in_, value=["Business"]),
            FilterClause(field="housing", operator=FilterOperator.eq, value=True),
        ],
        sort=[SortField(field="created_at", descending=True), SortField(field="name")],
        page=2,
        limit=5,
    )

    bootcamps = BootcampRepository(db).find(query)

    assert db.bootcamps.where.call_args_list == [
        call("average_cost", "<=", 10000),
        call("careers", "array_contains_any", ["Business"]),
        call("housing", "==", True),
    ]
    assert db.bootcamps.order_by.call_args_list == [
        call("created_at", direction="DESCENDING"),
        call("name", direction="ASCENDING"),
    ]
    db.bootcamps.offset.assert_called_once_with(5)
    db.bootcamps.limit.assert_called_once_with(5)
    db.bootcamps.select.assert_not_called()
    assert [b.id for b in bootcamps] == ["b1"]
    assert bootcamps[0].location.coordinates.latitude == 42.350846


def test_find_with_projection(db):
    db.bootcamps.stream.return_value = [fake_doc("b1", {"name": "Devworks Bootcamp"})]
    db.courses.stream.return_value = []

    bootcamps = BootcampRepository(db).find(ListQuery(select=["name"]))

    db.bootcamps.select.assert_called_once_with(["name"])
    assert isinstance(bootcamps[0], BootcampSelection)
    assert bootcamps[0].model_dump(mode="json", exclude_unset=True) == {
        "id": "b1",
        "name": "Devworks Bootcamp",
        "courses": [],
    }


def test_find_populates_courses(db):
    db.bootcamps.stream.return_value = [stored("b1"), stored("b2")]
    db.courses.stream.return_value = [
        fake_doc("c1", {"title": "Front End Web Development", "tuition": 8000, "bootcamp": "b1"}),
        fake_doc("c2", {"title": "Full Stack Web Development", "tuition": 10000, "bootcamp": "b1"}),
    ]

    b1, b2 = BootcampRepository(db).find(ListQuery())

    db.courses.where.assert_called_once_with("bootcamp", "in", ["b1", "b2"])
    assert [c.id for c in b1.courses] == ["c1", "c2"]
    assert b2.courses == []


def test_get_missing(db):
    db.bootcamps.document.return_value.get.return_value = fake_doc("nope", None, exists=False)

    assert BootcampRepository(db).get("nope") is None


def test_create_stores_derived_fields(db):
    doc_ref = db.bootcamps.document.return_value
    doc_ref.get.return_value = stored("new-id", lat=34.0, lng=-118.2, name="Devworks Bootcamp")
    bootcamp = BootcampCreate(
        name="Devworks Bootcamp",
        description="Full stack",
        address="Los Angeles",
        careers=["Web Development"],
    )
    location = Location(coordinates=GeoPointModel(latitude=34.0, longitude=-118.2), zipcode="90012")

    created = BootcampRepository(db).create(bootcamp, location)

    data = doc_ref.set.call_args.args[0]
    assert data["slug"] == "devworks-bootcamp"
    assert data["photo"] == "no-photo.jpg"
    assert data["careers"] == ["Web Development"]
    assert data["created_at"] is SERVER_TIMESTAMP
    assert data["location"]["coordinates"] == GeoPoint(34.0, -118.2)
    assert data["geohash"] == location.coordinates.geohash()
    assert len(data["geohash"]) == 9
    assert created.id == "new-id"


def test_update_only_writes_changes(db):
    doc_ref = db.bootcamps.document.return_value
    doc_ref.get.side_effect = [stored("b1"), stored("b1", name="Renamed")]

    updated = BootcampRepository(db).update("b1", {"name": "Renamed"})

    doc_ref.update.assert_called_once_with({"name": "Renamed"})
    assert updated.name == "Renamed"


def test_update_missing(db):
    db.bootcamps.document.return_value.get.return_value = fake_doc("nope", None, exists=False)

    assert BootcampRepository(db).update("nope", {"name": "x"}) is None
    db.bootcamps.document.return_value.update.assert_not_called()


def test_delete_cascades_courses(db):
    doc_ref = db.bootcamps.document.return_value
    doc_ref.get.return_value = stored("b1")
    courses = [fake_doc("c1", {"bootcamp": "b1"}), fake_doc("c2", {"bootcamp": "b1"})]
    db.courses.stream.return_value = courses
    batch = db.batch.return_value

    assert BootcampRepository(db).delete("b1") is True

    db.courses.where.assert_called_once_with("bootcamp", "==", "b1")
    assert batch.delete.call_args_list == [call(courses[0].reference), call(courses[1].reference), call(doc_ref)]
    batch.commit.assert_called_once_with()


def test_delete_missing(db):
    db.bootcamps.document.return_value.get.return_value = fake_doc("nope", None, exists=False)

    assert BootcampRepository(db).delete("nope") is False
    db.batch.assert_not_called()


def test_find_within_filters_by_great_circle_distance(db):
    near = stored("near", lat=34.05, lng=-118.25)
    far = stored("far", lat=40.7128, lng=-74.006)
    db.bootcamps.stream.return_value = [near, far]

    # 10 / 6378 radians is roughly 10 km
    bootcamps = BootcampRepository(db).find_within(-118.2, 34.0, 10 / 6378)

    assert [b.id for b in bootcamps] == ["near"]
    (field_low, op_low, low), (field_high, op_high, high) = [c.args for c in db.bootcamps.where.call_args_list]
    assert (field_low, op_low) == ("geohash", ">=")
    assert (field_high, op_high) == ("geohash", "<=")
    center = GeoPointModel(latitude=34.0, longitude=-118.2).geohash()
    assert low <= center <= high
